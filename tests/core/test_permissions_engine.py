from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from core.commands.base import Command
from core.commands.rejection import ReasonCode
from core.identity.requirements import ADMIN_REQUIRED, HOLDER_ALLOWED
from core.permissions import (
    GRANT_STATUS_INACTIVE,
    InMemoryPermissionProvider,
    LedgerGrant,
    PERMISSION_COMPLIANCE_MANAGE,
    PERMISSION_SUPPLY_MANAGE,
    PermissionEvaluator,
    Role,
    resolve_required_permission,
    single_administrator_provider,
)
from core.policy.permission_policy import permission_authorization_guard
from engines.ledger.commands import ADMIN_COMMAND_TYPES

LEDGER_ID = uuid.uuid4()
OTHER_LEDGER_ID = uuid.uuid4()
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _command(command_type: str, actor_id: str, ledger_id=LEDGER_ID, authority=ADMIN_REQUIRED):
    return Command(
        command_id=uuid.uuid4(),
        command_type=command_type,
        ledger_id=ledger_id,
        actor_id=actor_id,
        payload={},
        issued_at=NOW,
        correlation_id=uuid.uuid4(),
        source_engine="ledger",
        authority_requirement=authority,
    )


class _ExplodingProvider:
    def get_grants_for_actor(self, actor_id, ledger_id):
        raise RuntimeError("directory unavailable")

    def get_role(self, role_id):
        return None


def _compliance_officer_provider():
    role = Role(role_id="compliance-officer", permissions=(PERMISSION_COMPLIANCE_MANAGE,))
    grants = (
        LedgerGrant(actor_id="0xofficer", role_id="compliance-officer", ledger_id=LEDGER_ID),
        LedgerGrant(
            actor_id="0xretired",
            role_id="compliance-officer",
            ledger_id=LEDGER_ID,
            status=GRANT_STATUS_INACTIVE,
        ),
    )
    return InMemoryPermissionProvider(roles=(role,), grants=grants)


def test_every_administrator_command_has_a_permission_mapping() -> None:
    for command_type in ADMIN_COMMAND_TYPES:
        assert resolve_required_permission(command_type) is not None


def test_mint_needs_supply_permission_others_need_compliance() -> None:
    assert resolve_required_permission("ledger.supply.mint.request") == PERMISSION_SUPPLY_MANAGE
    assert (
        resolve_required_permission("ledger.balance.block.request")
        == PERMISSION_COMPLIANCE_MANAGE
    )


def test_single_administrator_holds_every_administrator_permission() -> None:
    provider = single_administrator_provider("0xadmin", LEDGER_ID)
    for command_type in sorted(ADMIN_COMMAND_TYPES):
        result = PermissionEvaluator.evaluate(_command(command_type, "0xadmin"), provider)
        assert result.allowed, command_type


def test_administrator_of_another_ledger_is_denied() -> None:
    provider = single_administrator_provider("0xadmin", OTHER_LEDGER_ID)
    result = PermissionEvaluator.evaluate(
        _command("ledger.blacklist.add.request", "0xadmin"), provider,
    )
    assert not result.allowed
    assert result.rejection_code == ReasonCode.PERMISSION_DENIED


def test_role_without_permission_is_denied() -> None:
    provider = _compliance_officer_provider()
    assert PermissionEvaluator.evaluate(
        _command("ledger.blacklist.add.request", "0xofficer"), provider,
    ).allowed
    result = PermissionEvaluator.evaluate(
        _command("ledger.supply.mint.request", "0xofficer"), provider,
    )
    assert not result.allowed
    assert "ledger.supply.manage" in result.message


def test_inactive_grant_is_ignored() -> None:
    result = PermissionEvaluator.evaluate(
        _command("ledger.blacklist.add.request", "0xretired"),
        _compliance_officer_provider(),
    )
    assert not result.allowed


def test_missing_provider_denies_administrator_commands() -> None:
    result = PermissionEvaluator.evaluate(
        _command("ledger.whitelist.enable.request", "0xadmin"), None,
    )
    assert not result.allowed


def test_unmapped_administrator_command_is_denied() -> None:
    result = PermissionEvaluator.evaluate(
        _command("ledger.owner.transfer.request", "0xadmin"),
        single_administrator_provider("0xadmin", LEDGER_ID),
    )
    assert result.rejection_code == ReasonCode.PERMISSION_MAPPING_MISSING


def test_holder_commands_bypass_provider() -> None:
    result = PermissionEvaluator.evaluate(
        _command("ledger.transfer.execute.request", "0xanyone", authority=HOLDER_ALLOWED),
        None,
    )
    assert result.allowed


def test_guard_treats_provider_failure_as_denial() -> None:
    reason = permission_authorization_guard(
        _command("ledger.blacklist.add.request", "0xadmin"),
        context=None,
        provider=_ExplodingProvider(),
    )
    assert reason is not None
    assert reason.code == ReasonCode.PERMISSION_DENIED
    assert reason.subject == "0xadmin"


def test_guard_uses_only_the_injected_provider() -> None:
    class ContextOfferingProvider:
        def get_permission_provider(self):
            return single_administrator_provider("0xadmin", LEDGER_ID)

    reason = permission_authorization_guard(
        _command("ledger.blacklist.add.request", "0xadmin"),
        context=ContextOfferingProvider(),
        provider=None,
    )
    assert reason is not None
    assert reason.code == ReasonCode.PERMISSION_DENIED


def test_role_rejects_unknown_permission() -> None:
    with pytest.raises(ValueError, match="not valid"):
        Role(role_id="root", permissions=("ledger.everything",))


def test_provider_rejects_duplicate_roles() -> None:
    role = Role(role_id="r", permissions=(PERMISSION_SUPPLY_MANAGE,))
    with pytest.raises(ValueError, match="Duplicate"):
        InMemoryPermissionProvider(roles=(role, role))
