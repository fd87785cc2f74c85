from __future__ import annotations

import asyncio
from collections.abc import Callable

from supabase import Client

from src.domain.entities.edit_record import EditRecord
from src.domain.errors import HistoryWarning
from src.infrastructure.config import Settings
from src.infrastructure.logger import get_logger

logger = get_logger("history")


class HistoryRepository:
    """Edit history backed by a Supabase table, or memory without a client.

    In tenant-scoped mode every read and delete is filtered on ``user_id``,
    and a missing owner yields empty results rather than errors. Calls made
    with an access token run on the client ``user_client`` builds for it, so
    the table's row-level security sees the caller.
    """

    def __init__(
        self,
        client: Client | None,
        settings: Settings,
        *,
        user_client: Callable[[str], Client] | None = None,
    ) -> None:
        self.client = client
        self.user_client = user_client
        self.table = settings.history_table
        self.tenant_scoped = settings.tenant_scoped
        self.default_limit = settings.history_limit_default
        # in-memory fallback
        self._mem: dict[str, EditRecord] = {}

    def _visible_to(self, record: EditRecord, owner_id: str | None) -> bool:
        return not self.tenant_scoped or record.owner_id == owner_id

    def _table(self, access_token: str | None):
        client = self.client
        if access_token and self.user_client is not None:
            client = self.user_client(access_token)
        return client.table(self.table)

    async def append(self, record: EditRecord, access_token: str | None = None) -> None:
        if self.client is None:
            if record.id in self._mem:
                raise HistoryWarning(f"History record {record.id} already exists")
            self._mem[record.id] = record
            return
        try:
            await asyncio.to_thread(self._table(access_token).insert(record.to_row()).execute)
        except Exception as exc:
            raise HistoryWarning(f"Failed to save to history: {exc}") from exc

    async def list(
        self,
        owner_id: str | None = None,
        limit: int | None = None,
        access_token: str | None = None,
    ) -> list[EditRecord]:
        """Newest-first records of ``owner_id``; empty when unavailable."""
        limit = limit or self.default_limit
        if self.tenant_scoped and not owner_id:
            logger.info("Cannot load history: user not authenticated")
            return []

        if self.client is None:
            records = [r for r in self._mem.values() if self._visible_to(r, owner_id)]
            records.sort(key=lambda r: r.created_at, reverse=True)
            return records[:limit]

        try:
            query = self._table(access_token).select("*")
            if self.tenant_scoped:
                query = query.eq("user_id", owner_id)
            res = await asyncio.to_thread(query.order("created_at", desc=True).limit(limit).execute)
        except Exception as exc:
            logger.warning("Failed to load history: %s", exc)
            return []

        records = []
        for row in res.data or []:
            try:
                records.append(EditRecord.from_row(row))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed history row %s: %s", row.get("id"), exc)
        return records

    async def get(
        self, record_id: str, owner_id: str | None = None, access_token: str | None = None
    ) -> EditRecord | None:
        if self.tenant_scoped and not owner_id:
            return None

        if self.client is None:
            record = self._mem.get(record_id)
            if record is None or not self._visible_to(record, owner_id):
                return None
            return record

        try:  # pragma: no cover - network
            query = self._table(access_token).select("*").eq("id", record_id)
            if self.tenant_scoped:
                query = query.eq("user_id", owner_id)
            res = await asyncio.to_thread(query.limit(1).execute)
            rows = res.data or []
            return EditRecord.from_row(rows[0]) if rows else None
        except Exception as exc:  # pragma: no cover - network
            logger.warning("Failed to load history record %s: %s", record_id, exc)
            return None

    async def delete(self, record_id: str, owner_id: str | None = None, access_token: str | None = None) -> bool:
        if self.tenant_scoped and not owner_id:
            logger.info("Cannot delete from history: user not authenticated")
            return False

        if self.client is None:
            record = self._mem.get(record_id)
            if record is None or not self._visible_to(record, owner_id):
                return False
            del self._mem[record_id]
            return True

        try:
            query = self._table(access_token).delete().eq("id", record_id)
            if self.tenant_scoped:
                query = query.eq("user_id", owner_id)
            res = await asyncio.to_thread(query.execute)
            return bool(res.data)
        except Exception as exc:
            logger.warning("Failed to delete from history: %s", exc)
            return False
