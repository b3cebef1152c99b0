"""Delivery of trigger events after a request has completed."""

from __future__ import annotations

from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from factgraph.logging import get_logger
from factgraph.models.events import TriggerEvent
from factgraph.stores.event_log import TriggerEventLog

log = get_logger("dispatch")

EventHandler = Callable[[TriggerEvent], Awaitable[None]]


class TriggerEventDispatcher:
    """Hands events to every registered handler.

    A failing handler is logged and skipped; it never fails the request that
    produced the event.
    """

    def __init__(self, handlers: list[EventHandler] | None = None):
        self._handlers: list[EventHandler] = list(handlers or [])

    def add_handler(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    async def dispatch(self, events: list[TriggerEvent]) -> int:
        """Deliver ``events``; returns the number of successful deliveries."""
        delivered = 0
        for event in events:
            for handler in self._handlers:
                try:
                    await handler(event)
                    delivered += 1
                except Exception as exc:
                    log.error("trigger_event_dispatch_failed", event_name=event.name.value,
                              event_id=str(event.id), error=str(exc))
        return delivered


def event_log_handler(session_factory: async_sessionmaker[AsyncSession]) -> EventHandler:
    """Handler persisting each event to the trigger event log in its own session."""

    async def _record(event: TriggerEvent) -> None:
        async with session_factory() as session:
            await TriggerEventLog(session).record(event)
            await session.commit()
        log.info("trigger_event_recorded", event_name=event.name.value, event_id=str(event.id),
                 access_mode=event.access_mode.value)

    return _record
