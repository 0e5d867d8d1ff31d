"""
GLC Ledger Engine - Tests
=========================
End-to-end behaviour through build_ledger_runtime(): blocked
balances, whitelists, blacklist, supply, delegated spending,
replay and concurrency.
"""

from __future__ import annotations

import gc
import threading

import pytest

from core.commands.rejection import ReasonCode
from core.config.ledger import LedgerConfig
from core.event_store.errors import (
    EventPersistenceError,
    PersistRejectionCode,
    PersistResult,
)
from engines.ledger.events import (
    ALL_EVENT_TYPES,
    SUPPLY_BURNED_V1,
    SUPPLY_MINTED_V1,
    TRANSFER_COMPLETED_V1,
)
from engines.ledger.policies import MAX_UINT256, LedgerReasonCode
from engines.ledger.services import (
    AccountLockTable,
    LedgerInvariantError,
    LedgerProjectionStore,
)
from engines.ledger.wiring import build_ledger_runtime

ADMIN = "0xadmin"
X = "0xalice"
Y = "0xbob"
Z = "0xcarol"


@pytest.fixture
def runtime():
    return build_ledger_runtime(administrator_id=ADMIN)


@pytest.fixture
def ledger(runtime):
    return runtime.service


def _funded(ledger, account=X, amount=100):
    assert ledger.mint(ADMIN, account, amount).is_accepted
    return ledger


# ══════════════════════════════════════════════════════════════
# BLOCKED BALANCES
# ══════════════════════════════════════════════════════════════

class TestBlockedBalance:
    def test_only_unblocked_part_can_be_transferred(self, ledger):
        _funded(ledger)
        assert ledger.block_balance(ADMIN, X, 40).is_accepted

        result = ledger.transfer(X, Y, 70)
        assert result.rejection_code == LedgerReasonCode.INSUFFICIENT_UNBLOCKED_BALANCE
        assert result.reason.subject == X

        assert ledger.transfer(X, Y, 60).is_accepted
        assert ledger.balance_of(X) == 40
        assert ledger.get_blocked_balance(X) == 40
        assert ledger.get_unblocked_balance(X) == 0
        assert ledger.balance_of(Y) == 60

    def test_block_cannot_exceed_balance(self, ledger):
        _funded(ledger)
        assert ledger.block_balance(ADMIN, X, 60).is_accepted
        result = ledger.block_balance(ADMIN, X, 41)
        assert result.rejection_code == LedgerReasonCode.EXCEEDS_AVAILABLE_BALANCE
        assert ledger.get_blocked_balance(X) == 60

    def test_unblocking_more_than_blocked_changes_nothing(self, ledger):
        _funded(ledger)
        ledger.block_balance(ADMIN, X, 30)

        result = ledger.unblock_balance(ADMIN, X, 31)

        assert result.rejection_code == LedgerReasonCode.INSUFFICIENT_BLOCKED_BALANCE
        assert ledger.get_blocked_balance(X) == 30
        assert ledger.unblock_balance(ADMIN, X, 30).is_accepted
        assert ledger.get_blocked_balance(X) == 0

    @pytest.mark.parametrize("operation", ["block_balance", "unblock_balance"])
    def test_zero_amount_rejected(self, ledger, operation):
        _funded(ledger)
        result = getattr(ledger, operation)(ADMIN, X, 0)
        assert result.rejection_code == LedgerReasonCode.INVALID_AMOUNT

    def test_blocked_never_exceeds_balance(self, ledger):
        _funded(ledger)
        ledger.block_balance(ADMIN, X, 70)
        ledger.transfer(X, Y, 30)
        ledger.transfer(X, Y, 1)
        ledger.burn(X, 50)
        for state in ledger.projection_store.accounts().values():
            assert 0 <= state.blocked_balance <= state.balance


# ══════════════════════════════════════════════════════════════
# WHITELIST
# ══════════════════════════════════════════════════════════════

class TestWhitelist:
    def test_allowance_is_consumed_by_transfers(self, ledger):
        _funded(ledger)
        assert ledger.enable_whitelist(ADMIN, X).is_accepted
        assert ledger.add_to_whitelist(ADMIN, X, Y, 50).is_accepted

        assert ledger.transfer(X, Y, 30).is_accepted
        assert ledger.get_whitelisted_amount(X, Y) == 20

        result = ledger.transfer(X, Y, 25)
        assert result.rejection_code == LedgerReasonCode.INSUFFICIENT_ALLOWANCE
        assert ledger.get_whitelisted_amount(X, Y) == 20
        assert ledger.balance_of(Y) == 30

    def test_unlisted_recipient_rejected(self, ledger):
        _funded(ledger)
        ledger.enable_whitelist(ADMIN, X)
        result = ledger.transfer(X, Z, 1)
        assert result.rejection_code == LedgerReasonCode.NOT_WHITELISTED
        assert result.reason.subject == Z

    def test_exhausted_entry_stays_listed_but_blocks(self, ledger):
        _funded(ledger)
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Y, 10)
        assert ledger.transfer(X, Y, 10).is_accepted

        assert ledger.is_whitelisted(X, Y)
        assert ledger.get_whitelisted_amount(X, Y) == 0
        assert ledger.transfer(X, Y, 1).rejection_code == LedgerReasonCode.NOT_WHITELISTED

    def test_zero_allowance_entry_can_be_added(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        assert ledger.add_to_whitelist(ADMIN, X, Y, 0).is_accepted
        assert ledger.is_whitelisted(X, Y)
        assert ledger.transfer(X, Y, 0).rejection_code == LedgerReasonCode.NOT_WHITELISTED

    def test_whitelist_gates_only_the_sender(self, ledger):
        _funded(ledger, Y)
        ledger.enable_whitelist(ADMIN, X)
        assert ledger.transfer(Y, X, 5).is_accepted

    def test_toggle_requires_state_change(self, ledger):
        result = ledger.disable_whitelist(ADMIN, X)
        assert result.rejection_code == LedgerReasonCode.ALREADY_IN_STATE

        assert ledger.enable_whitelist(ADMIN, X).is_accepted
        result = ledger.enable_whitelist(ADMIN, X)
        assert result.rejection_code == LedgerReasonCode.ALREADY_IN_STATE
        assert ledger.is_whitelist_enabled(X)

    def test_disable_keeps_entries_and_stops_gating(self, ledger):
        _funded(ledger)
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Y, 50)
        assert ledger.disable_whitelist(ADMIN, X).is_accepted

        assert ledger.transfer(X, Z, 10).is_accepted
        assert ledger.transfer(X, Y, 10).is_accepted
        assert ledger.get_whitelisted_amount(X, Y) == 50

        assert ledger.enable_whitelist(ADMIN, X).is_accepted
        assert ledger.get_whitelisted_amount(X, Y) == 50
        assert ledger.transfer(X, Z, 1).rejection_code == LedgerReasonCode.NOT_WHITELISTED

    def test_entries_need_an_enabled_whitelist(self, ledger):
        result = ledger.add_to_whitelist(ADMIN, X, Y, 5)
        assert result.rejection_code == LedgerReasonCode.WHITELIST_NOT_ENABLED
        result = ledger.remove_from_whitelist(ADMIN, X, Y)
        assert result.rejection_code == LedgerReasonCode.WHITELIST_NOT_ENABLED

    def test_existing_entry_is_not_overwritten(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Y, 5)

        result = ledger.add_to_whitelist(ADMIN, X, Y, 500)

        assert result.rejection_code == LedgerReasonCode.ALREADY_WHITELISTED
        assert ledger.get_whitelisted_amount(X, Y) == 5

    def test_remove_then_add_sets_new_allowance(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Y, 5)
        assert ledger.remove_from_whitelist(ADMIN, X, Y).is_accepted
        assert not ledger.is_whitelisted(X, Y)
        assert ledger.get_whitelisted_amount(X, Y) == 0

        assert ledger.add_to_whitelist(ADMIN, X, Y, 40).is_accepted
        assert ledger.get_whitelisted_amount(X, Y) == 40

    def test_remove_unknown_counterparty(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        result = ledger.remove_from_whitelist(ADMIN, X, Y)
        assert result.rejection_code == LedgerReasonCode.NOT_WHITELISTED

    def test_transfers_never_raise_allowance(self, ledger):
        _funded(ledger)
        _funded(ledger, Y)
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Y, 50)
        seen = [ledger.get_whitelisted_amount(X, Y)]
        for sender, recipient, amount in ((X, Y, 10), (Y, X, 40), (X, Y, 5), (X, Y, 100)):
            ledger.transfer(sender, recipient, amount)
            seen.append(ledger.get_whitelisted_amount(X, Y))
        assert seen == sorted(seen, reverse=True)
        assert seen[-1] == 35


# ══════════════════════════════════════════════════════════════
# WHITELIST BATCHES
# ══════════════════════════════════════════════════════════════

class TestWhitelistBatches:
    def test_batch_add_and_remove(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        assert ledger.batch_add_to_whitelist(ADMIN, X, [(Y, 10), (Z, 20)]).is_accepted
        assert ledger.get_whitelisted_amount(X, Y) == 10
        assert ledger.get_whitelisted_amount(X, Z) == 20

        assert ledger.batch_remove_from_whitelist(ADMIN, X, [Y, Z]).is_accepted
        assert not ledger.is_whitelisted(X, Y)
        assert not ledger.is_whitelisted(X, Z)

    def test_batch_add_is_all_or_nothing(self, runtime, ledger):
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Z, 1)
        recorded = runtime.event_log.event_count

        result = ledger.batch_add_to_whitelist(ADMIN, X, [(Y, 10), (Z, 20)])

        assert result.rejection_code == LedgerReasonCode.ALREADY_WHITELISTED
        assert result.reason.subject == Z
        assert not ledger.is_whitelisted(X, Y)
        assert ledger.get_whitelisted_amount(X, Z) == 1
        assert runtime.event_log.event_count == recorded

    def test_duplicate_inside_batch_rejected(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        result = ledger.batch_add_to_whitelist(ADMIN, X, [(Y, 1), (Y, 2)])
        assert result.rejection_code == LedgerReasonCode.ALREADY_WHITELISTED
        assert not ledger.is_whitelisted(X, Y)

        result = ledger.batch_remove_from_whitelist(ADMIN, X, [Y])
        assert result.rejection_code == LedgerReasonCode.NOT_WHITELISTED

    def test_repeated_removal_inside_batch_rejected(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Y, 3)

        result = ledger.batch_remove_from_whitelist(ADMIN, X, [Y, Y])

        assert result.rejection_code == LedgerReasonCode.NOT_WHITELISTED
        assert ledger.get_whitelisted_amount(X, Y) == 3

    def test_invalid_amount_inside_batch(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        result = ledger.batch_add_to_whitelist(ADMIN, X, [(Y, 1), (Z, -1)])
        assert result.rejection_code == LedgerReasonCode.INVALID_AMOUNT
        assert not ledger.is_whitelisted(X, Y)

    def test_empty_batch_rejected(self, ledger):
        ledger.enable_whitelist(ADMIN, X)
        assert (
            ledger.batch_add_to_whitelist(ADMIN, X, []).rejection_code
            == LedgerReasonCode.INVALID_BATCH
        )
        assert (
            ledger.batch_remove_from_whitelist(ADMIN, X, []).rejection_code
            == LedgerReasonCode.INVALID_BATCH
        )

    def test_batch_limit_from_config(self):
        ledger = build_ledger_runtime(
            administrator_id=ADMIN,
            config=LedgerConfig(whitelist_batch_limit=2),
        ).service
        ledger.enable_whitelist(ADMIN, X)
        entries = [(f"0xpeer{i}", i) for i in range(3)]

        result = ledger.batch_add_to_whitelist(ADMIN, X, entries)

        assert result.rejection_code == LedgerReasonCode.INVALID_BATCH
        assert ledger.batch_add_to_whitelist(ADMIN, X, entries[:2]).is_accepted

    def test_batch_needs_enabled_whitelist(self, ledger):
        result = ledger.batch_add_to_whitelist(ADMIN, X, [(Y, 1)])
        assert result.rejection_code == LedgerReasonCode.WHITELIST_NOT_ENABLED

    def test_batch_size_checked_before_ledger_state(self, runtime, ledger):
        result = ledger.batch_remove_from_whitelist(ADMIN, X, [])

        assert result.rejection_code == LedgerReasonCode.INVALID_BATCH
        assert result.reason.policy_name == "batch_size_policy"
        assert runtime.event_log.event_count == 0


# ══════════════════════════════════════════════════════════════
# BLACKLIST
# ══════════════════════════════════════════════════════════════

class TestBlacklist:
    def test_blacklisted_account_cannot_send_or_receive(self, ledger):
        _funded(ledger, X)
        _funded(ledger, Y)
        assert ledger.blacklist(ADMIN, Y).is_accepted
        assert ledger.is_blacklisted(Y)

        to_y = ledger.transfer(X, Y, 1)
        from_y = ledger.transfer(Y, X, 1)

        assert to_y.rejection_code == LedgerReasonCode.BLACKLISTED
        assert to_y.reason.subject == Y
        assert from_y.rejection_code == LedgerReasonCode.BLACKLISTED
        assert ledger.balance_of(Y) == 100

    def test_blacklist_wins_over_whitelist(self, ledger):
        _funded(ledger)
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Y, 50)
        ledger.blacklist(ADMIN, Y)
        assert ledger.transfer(X, Y, 1).rejection_code == LedgerReasonCode.BLACKLISTED
        assert ledger.get_whitelisted_amount(X, Y) == 50

    def test_mint_to_blacklisted_rejected(self, ledger):
        ledger.blacklist(ADMIN, Y)
        result = ledger.mint(ADMIN, Y, 10)
        assert result.rejection_code == LedgerReasonCode.BLACKLISTED
        assert ledger.total_supply() == 0

    def test_blacklisted_holder_can_still_burn(self, ledger):
        _funded(ledger, Y)
        ledger.blacklist(ADMIN, Y)
        assert ledger.burn(Y, 40).is_accepted
        assert ledger.balance_of(Y) == 60
        assert ledger.total_supply() == 60

    def test_removal_restores_transfers(self, ledger):
        _funded(ledger)
        ledger.blacklist(ADMIN, X)
        assert ledger.remove_from_blacklist(ADMIN, X).is_accepted
        assert not ledger.is_blacklisted(X)
        assert ledger.transfer(X, Y, 5).is_accepted

    def test_blacklist_operations_are_idempotent(self, runtime, ledger):
        assert ledger.blacklist(ADMIN, X).is_accepted
        assert ledger.blacklist(ADMIN, X).is_accepted
        assert ledger.remove_from_blacklist(ADMIN, Y).is_accepted
        assert ledger.is_blacklisted(X)
        assert runtime.event_log.event_count == 3


# ══════════════════════════════════════════════════════════════
# SUPPLY
# ══════════════════════════════════════════════════════════════

class TestSupply:
    def test_mint_and_burn_move_supply(self, ledger):
        _funded(ledger, X, 70)
        _funded(ledger, Y, 30)
        assert ledger.total_supply() == 100
        assert ledger.burn(X, 20).is_accepted
        assert ledger.total_supply() == 80
        assert ledger.balance_of(X) == 50

    def test_burn_checks_total_balance_and_releases_blocked(self, ledger):
        _funded(ledger)
        ledger.block_balance(ADMIN, X, 80)

        result = ledger.burn(X, 50)

        assert result.is_accepted
        assert result.execution_result.event_type == SUPPLY_BURNED_V1
        assert result.execution_result.event_data["payload"]["blocked_released"] == 30
        assert ledger.balance_of(X) == 50
        assert ledger.get_blocked_balance(X) == 50

    def test_burn_inside_unblocked_part_keeps_blocked(self, ledger):
        _funded(ledger)
        ledger.block_balance(ADMIN, X, 20)
        result = ledger.burn(X, 50)
        assert result.execution_result.event_data["payload"]["blocked_released"] == 0
        assert ledger.get_blocked_balance(X) == 20

    def test_burn_more_than_balance(self, ledger):
        _funded(ledger)
        result = ledger.burn(X, 101)
        assert result.rejection_code == LedgerReasonCode.INSUFFICIENT_BALANCE
        assert ledger.total_supply() == 100

    def test_mint_amount_rules(self, ledger):
        assert ledger.mint(ADMIN, X, 0).rejection_code == LedgerReasonCode.INVALID_AMOUNT
        assert (
            ledger.mint(ADMIN, X, MAX_UINT256 + 1).rejection_code
            == LedgerReasonCode.INVALID_AMOUNT
        )

    def test_zero_burn_is_accepted(self, runtime, ledger):
        _funded(ledger)
        ledger.block_balance(ADMIN, X, 100)

        result = ledger.burn(X, 0)

        assert result.is_accepted
        assert result.execution_result.event_data["payload"]["blocked_released"] == 0
        assert ledger.balance_of(X) == 100
        assert ledger.get_blocked_balance(X) == 100
        assert ledger.total_supply() == 100
        assert runtime.event_log.event_count == 3

    def test_burn_rejects_negative_amount(self, ledger):
        _funded(ledger)
        assert ledger.burn(X, -1).rejection_code == LedgerReasonCode.INVALID_AMOUNT

    def test_supply_cannot_overflow(self, ledger):
        assert ledger.mint(ADMIN, X, MAX_UINT256).is_accepted
        result = ledger.mint(ADMIN, Y, 1)
        assert result.rejection_code == LedgerReasonCode.SUPPLY_OVERFLOW
        assert ledger.total_supply() == MAX_UINT256
        assert ledger.balance_of(Y) == 0

    def test_token_metadata_from_config(self, ledger):
        assert ledger.name == "Gated Ledger Token"
        assert ledger.symbol == "GLT"
        assert ledger.decimals == 18


# ══════════════════════════════════════════════════════════════
# TRANSFERS AND DELEGATED SPENDING
# ══════════════════════════════════════════════════════════════

class TestTransfers:
    def test_transfer_moves_balance(self, ledger):
        _funded(ledger)
        result = ledger.transfer(X, Y, 25)
        assert result.is_accepted
        assert result.execution_result.event_type == TRANSFER_COMPLETED_V1
        payload = result.execution_result.event_data["payload"]
        assert payload["sender"] == X
        assert payload["recipient"] == Y
        assert payload["amount"] == 25
        assert payload["spender"] is None
        assert ledger.balance_of(X) == 75
        assert ledger.balance_of(Y) == 25

    def test_zero_transfer_allowed(self, ledger):
        assert ledger.transfer(X, Y, 0).is_accepted
        assert ledger.balance_of(Y) == 0

    def test_transfer_to_self_keeps_balance(self, ledger):
        _funded(ledger)
        assert ledger.transfer(X, X, 40).is_accepted
        assert ledger.balance_of(X) == 100

    def test_negative_amount_rejected(self, ledger):
        _funded(ledger)
        assert ledger.transfer(X, Y, -1).rejection_code == LedgerReasonCode.INVALID_AMOUNT

    def test_non_integer_amount_raises(self, ledger):
        with pytest.raises(ValueError):
            ledger.transfer(X, Y, 1.5)
        with pytest.raises(ValueError):
            ledger.transfer(X, Y, True)

    def test_approve_overwrites(self, ledger):
        assert ledger.approve(X, Y, 50).is_accepted
        assert ledger.approve(X, Y, 20).is_accepted
        assert ledger.get_spending_allowance(X, Y) == 20
        assert ledger.get_spending_allowance(Y, X) == 0

    def test_transfer_from_consumes_spending_allowance(self, ledger):
        _funded(ledger)
        ledger.approve(X, Y, 50)

        assert ledger.transfer_from(Y, X, Z, 30).is_accepted
        assert ledger.balance_of(Z) == 30
        assert ledger.get_spending_allowance(X, Y) == 20

        result = ledger.transfer_from(Y, X, Z, 30)
        assert result.rejection_code == LedgerReasonCode.INSUFFICIENT_SPENDER_ALLOWANCE
        assert result.reason.subject == Y

    def test_transfer_from_obeys_owner_gates(self, ledger):
        _funded(ledger)
        ledger.approve(X, Y, 100)
        ledger.block_balance(ADMIN, X, 90)
        ledger.enable_whitelist(ADMIN, X)
        ledger.add_to_whitelist(ADMIN, X, Z, 5)

        assert (
            ledger.transfer_from(Y, X, Z, 6).rejection_code
            == LedgerReasonCode.INSUFFICIENT_ALLOWANCE
        )
        assert ledger.transfer_from(Y, X, Z, 5).is_accepted
        assert ledger.get_whitelisted_amount(X, Z) == 0
        assert ledger.get_spending_allowance(X, Y) == 95
        assert (
            ledger.transfer_from(Y, X, Y, 1).rejection_code
            == LedgerReasonCode.NOT_WHITELISTED
        )


# ══════════════════════════════════════════════════════════════
# AUTHORIZATION
# ══════════════════════════════════════════════════════════════

class TestAuthorization:
    @pytest.mark.parametrize("call", [
        lambda s: s.mint(X, X, 10),
        lambda s: s.blacklist(X, Y),
        lambda s: s.remove_from_blacklist(X, Y),
        lambda s: s.enable_whitelist(X, X),
        lambda s: s.disable_whitelist(X, X),
        lambda s: s.add_to_whitelist(X, X, Y, 1),
        lambda s: s.remove_from_whitelist(X, X, Y),
        lambda s: s.batch_add_to_whitelist(X, X, [(Y, 1)]),
        lambda s: s.batch_remove_from_whitelist(X, X, [Y]),
        lambda s: s.block_balance(X, X, 1),
        lambda s: s.unblock_balance(X, X, 1),
    ])
    def test_administrator_operations_need_administrator(self, runtime, call):
        result = call(runtime.service)
        assert result.rejection_code == ReasonCode.PERMISSION_DENIED
        assert result.reason.subject == X
        assert runtime.event_log.event_count == 0

    def test_runtime_needs_an_authority(self):
        with pytest.raises(ValueError):
            build_ledger_runtime()

    @pytest.mark.parametrize("call", [
        lambda s: s.transfer(X, Y, 1),
        lambda s: s.burn(X, 1),
        lambda s: s.mint(ADMIN, X, 1),
    ])
    def test_inactive_ledger_rejects_commands(self, call):
        runtime = build_ledger_runtime(administrator_id=ADMIN, active=False)

        result = call(runtime.service)

        assert result.rejection_code == ReasonCode.NO_ACTIVE_CONTEXT
        assert runtime.event_log.event_count == 0


# ══════════════════════════════════════════════════════════════
# EVENTS, REPLAY AND ATOMICITY
# ══════════════════════════════════════════════════════════════

class TestEventsAndReplay:
    def test_rejection_records_nothing(self, runtime, ledger):
        _funded(ledger)
        recorded = runtime.event_log.event_count
        applied = ledger.projection_store.event_count

        ledger.transfer(X, Y, 1000)
        ledger.unblock_balance(ADMIN, X, 1)
        ledger.disable_whitelist(ADMIN, X)

        assert runtime.event_log.event_count == recorded
        assert ledger.projection_store.event_count == applied

    def test_every_event_type_is_registered(self, runtime):
        for event_type in ALL_EVENT_TYPES:
            assert runtime.event_type_registry.is_registered(event_type)

    def test_accepted_result_carries_stamped_event(self, runtime, ledger):
        result = ledger.mint(ADMIN, X, 5)
        event = result.execution_result.event_data
        assert event["sequence"] == 0
        assert event["event_hash"] == runtime.event_log.last_hash
        assert result.execution_result.projection_applied

    def test_replay_reproduces_state(self, runtime, ledger):
        _funded(ledger, X, 500)
        ledger.block_balance(ADMIN, X, 100)
        ledger.enable_whitelist(ADMIN, X)
        ledger.batch_add_to_whitelist(ADMIN, X, [(Y, 60), (Z, 70)])
        ledger.transfer(X, Y, 50)
        ledger.approve(X, Z, 40)
        ledger.transfer_from(Z, X, Z, 30)
        ledger.remove_from_whitelist(ADMIN, X, Y)
        ledger.disable_whitelist(ADMIN, X)
        ledger.blacklist(ADMIN, Y)
        ledger.burn(X, 350)
        ledger.unblock_balance(ADMIN, X, 10)

        rebuilt = LedgerProjectionStore()
        count = rebuilt.rebuild(runtime.event_log.all_events())

        assert count == runtime.event_log.event_count
        assert rebuilt.accounts() == ledger.projection_store.accounts()
        assert rebuilt.total_supply() == ledger.total_supply()
        assert rebuilt.spending_allowance(X, Z) == ledger.get_spending_allowance(X, Z)
        assert runtime.event_log.verify().valid

    def test_refused_event_leaves_projection_untouched(self):
        class RefusingLog:
            def __call__(self, *, event_data, context, registry, **kwargs):
                return PersistResult(
                    accepted=False,
                    code=PersistRejectionCode.DUPLICATE_EVENT,
                    message="refused",
                )

        ledger = build_ledger_runtime(administrator_id=ADMIN, event_log=RefusingLog()).service

        with pytest.raises(EventPersistenceError) as exc:
            ledger.mint(ADMIN, X, 10)

        assert exc.value.code == PersistRejectionCode.DUPLICATE_EVENT
        assert ledger.balance_of(X) == 0
        assert ledger.projection_store.accounts() == {}

    def test_queries_do_not_create_accounts(self, ledger):
        assert ledger.balance_of("0xnobody") == 0
        assert ledger.get_blocked_balance("0xnobody") == 0
        assert ledger.get_unblocked_balance("0xnobody") == 0
        assert not ledger.is_blacklisted("0xnobody")
        assert not ledger.is_whitelist_enabled("0xnobody")
        assert not ledger.is_whitelisted("0xnobody", X)
        assert ledger.get_whitelisted_amount("0xnobody", X) == 0
        assert ledger.projection_store.accounts() == {}


class TestProjectionInvariants:
    def test_block_beyond_balance_raises(self):
        store = LedgerProjectionStore()
        with pytest.raises(LedgerInvariantError) as exc:
            store.apply("ledger.balance.blocked.v1", {"account": X, "amount": 1})
        assert exc.value.invariant == "BLOCKED_WITHIN_BALANCE"

    def test_negative_balance_raises(self):
        store = LedgerProjectionStore()
        with pytest.raises(LedgerInvariantError):
            store.apply(TRANSFER_COMPLETED_V1, {"sender": X, "recipient": Y, "amount": 1})

    def test_unknown_event_type_raises(self):
        with pytest.raises(LedgerInvariantError):
            LedgerProjectionStore().apply("ledger.unknown.happened.v1", {})

    def test_invariant_failure_after_record_is_recovered_by_rebuild(self):
        class BrokenMintStore(LedgerProjectionStore):
            def _apply(self, event_type, payload):
                if event_type == SUPPLY_MINTED_V1:
                    raise LedgerInvariantError("BALANCE", "corrupted")
                super()._apply(event_type, payload)

        runtime = build_ledger_runtime(
            administrator_id=ADMIN, projection_store=BrokenMintStore(),
        )
        notified = []
        runtime.subscriber_registry.register_subscriber(
            SUPPLY_MINTED_V1, notified.append, "audit",
        )

        with pytest.raises(LedgerInvariantError):
            runtime.service.mint(ADMIN, X, 100)

        assert runtime.event_log.event_count == 1
        assert runtime.service.balance_of(X) == 0
        assert notified == []

        rebuilt = LedgerProjectionStore()
        rebuilt.rebuild(runtime.event_log.all_events())
        assert rebuilt.balance_of(X) == 100
        assert rebuilt.total_supply() == 100


# ══════════════════════════════════════════════════════════════
# SUBSCRIBERS
# ══════════════════════════════════════════════════════════════

class TestSubscribers:
    def test_subscriber_sees_applied_state(self, runtime, ledger):
        _funded(ledger)
        observed = []

        def on_transfer(event):
            observed.append((event["payload"]["amount"], ledger.balance_of(Y)))

        runtime.subscriber_registry.register_subscriber(
            TRANSFER_COMPLETED_V1, on_transfer, "audit",
        )

        ledger.transfer(X, Y, 15)
        ledger.transfer(X, Y, 1000)

        assert observed == [(15, 15)]


# ══════════════════════════════════════════════════════════════
# CONCURRENCY
# ══════════════════════════════════════════════════════════════

class TestConcurrency:
    def test_parallel_transfers_never_overdraw(self, ledger):
        _funded(ledger, X, 100)
        accepted = []

        def spend(recipient):
            for _ in range(50):
                if ledger.transfer(X, recipient, 1).is_accepted:
                    accepted.append(recipient)

        threads = [threading.Thread(target=spend, args=(f"0xsink{i}",)) for i in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(accepted) == 100
        assert ledger.balance_of(X) == 0
        assert sum(ledger.balance_of(f"0xsink{i}") for i in range(6)) == 100

    def test_ring_transfers_conserve_supply(self, runtime, ledger):
        ring = [f"0xring{i}" for i in range(4)]
        for account in ring:
            _funded(ledger, account, 1000)

        rejected = []

        def rotate(index):
            sender, recipient = ring[index], ring[(index + 1) % len(ring)]
            for _ in range(100):
                if not ledger.transfer(sender, recipient, 1).is_accepted:
                    rejected.append(sender)

        threads = [threading.Thread(target=rotate, args=(i,)) for i in range(len(ring))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert rejected == []
        assert sum(ledger.balance_of(account) for account in ring) == ledger.total_supply()
        assert ledger.total_supply() == 4000
        assert runtime.event_log.event_count == 4 + 400
        assert runtime.event_log.verify().valid

    def test_lock_table_drops_idle_accounts(self):
        table = AccountLockTable()

        with table.hold([X, Y, X], supply=True):
            assert len(table) == 2
        assert len(table) == 0

    def test_service_keeps_no_locks_between_commands(self, ledger):
        _funded(ledger)
        for i in range(20):
            ledger.transfer(X, f"0xpeer{i}", 1)
        ledger.transfer(X, Y, 1000)
        gc.collect()

        assert len(ledger._locks) == 0

