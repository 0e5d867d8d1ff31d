"""
GLC Ledger Engine - Wiring
==========================
Constructs a working ledger: context, dispatcher with the
administrator guard and batch-size policy, command bus, event log
and service.

In-memory by default. Pass a durable projection store and event
log (core.ledger_store) to run against the database.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional

from core.commands.bus import CommandBus
from core.commands.dispatcher import CommandDispatcher
from core.config.ledger import LedgerConfig, load_ledger_config
from core.context.ledger_context import LedgerContext
from core.event_store.log import InMemoryEventLog, build_event_data
from core.event_store.registry import EventTypeRegistry
from core.events.registry import SubscriberRegistry
from core.permissions.provider import single_administrator_provider
from engines.ledger.policies import whitelist_batch_size_policy
from engines.ledger.services import LedgerProjectionStore, LedgerService


@dataclass(frozen=True)
class LedgerRuntime:
    context: LedgerContext
    dispatcher: CommandDispatcher
    command_bus: CommandBus
    event_log: Any
    event_type_registry: EventTypeRegistry
    subscriber_registry: SubscriberRegistry
    service: LedgerService

    @property
    def ledger_id(self) -> uuid.UUID:
        return self.context.ledger_id


def build_ledger_runtime(
    *,
    administrator_id: Optional[str] = None,
    ledger_id: Optional[uuid.UUID] = None,
    permission_provider=None,
    projection_store: Optional[LedgerProjectionStore] = None,
    event_log=None,
    subscriber_registry: Optional[SubscriberRegistry] = None,
    config: Optional[LedgerConfig] = None,
    active: bool = True,
) -> LedgerRuntime:
    """
    Either an administrator_id (single-owner ledger) or an explicit
    permission_provider must be given.
    """
    if permission_provider is None:
        if not administrator_id:
            raise ValueError(
                "build_ledger_runtime needs administrator_id or permission_provider."
            )
    ledger_id = ledger_id or uuid.uuid4()
    context = LedgerContext(ledger_id=ledger_id, active=active)
    config = config or load_ledger_config()
    if permission_provider is None:
        permission_provider = single_administrator_provider(administrator_id, ledger_id)

    subscriber_registry = subscriber_registry or SubscriberRegistry()
    event_type_registry = EventTypeRegistry()
    if event_log is None:
        event_log = InMemoryEventLog(
            ledger_id=ledger_id,
            subscriber_registry=subscriber_registry,
        )

    dispatcher = CommandDispatcher(
        context=context,
        permission_provider=permission_provider,
    )
    dispatcher.register_policy(
        whitelist_batch_size_policy(config.whitelist_batch_limit)
    )
    command_bus = CommandBus(dispatcher=dispatcher)
    service = LedgerService(
        ledger_context=context,
        command_bus=command_bus,
        event_factory=build_event_data,
        persist_event=event_log,
        event_type_registry=event_type_registry,
        projection_store=projection_store,
        config=config,
    )

    return LedgerRuntime(
        context=context,
        dispatcher=dispatcher,
        command_bus=command_bus,
        event_log=event_log,
        event_type_registry=event_type_registry,
        subscriber_registry=subscriber_registry,
        service=service,
    )
