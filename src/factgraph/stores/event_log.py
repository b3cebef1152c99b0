"""Append-only log of dispatched trigger events."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from factgraph.models.events import TriggerEvent
from factgraph.stores.tables import TriggerEventRow, as_utc


class TriggerEventLog:
    """Stores every trigger event handed to the dispatcher."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def record(self, event: TriggerEvent) -> str:
        """Record a dispatched event. Returns the log entry ID."""
        row = TriggerEventRow(
            id=str(event.id),
            name=event.name.value,
            organization_id=str(event.organization) if event.organization else None,
            access_mode=event.access_mode.value,
            timestamp=event.timestamp,
            context=event.context_dump(),
        )
        self._session.add(row)
        await self._session.flush()
        return row.id

    async def query(
        self,
        *,
        name: str | None = None,
        organization_id: str | None = None,
        since: datetime | None = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Query the log with optional filters, newest first."""
        stmt = select(TriggerEventRow)
        if name:
            stmt = stmt.where(TriggerEventRow.name == name)
        if organization_id:
            stmt = stmt.where(TriggerEventRow.organization_id == organization_id)
        if since:
            stmt = stmt.where(TriggerEventRow.timestamp >= since)
        stmt = stmt.order_by(TriggerEventRow.timestamp.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return [
            {
                "id": r.id,
                "name": r.name,
                "organization_id": r.organization_id,
                "access_mode": r.access_mode,
                "timestamp": as_utc(r.timestamp).isoformat() if r.timestamp else None,
                "context": r.context,
            }
            for r in result.scalars().all()
        ]

    async def count(self, name: str | None = None) -> int:
        stmt = select(func.count()).select_from(TriggerEventRow)
        if name:
            stmt = stmt.where(TriggerEventRow.name == name)
        result = await self._session.execute(stmt)
        return result.scalar_one()
