import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from supabase import AsyncClient, acreate_client

from kyn.config import settings
from kyn.realtime.broker import FAMILY_COLUMNS, ChangeEvent

logger = logging.getLogger(__name__)


def parse_postgres_change(table: str, family_id: str, payload: Dict[str, Any]) -> Optional[ChangeEvent]:
    """Turn a Supabase Realtime postgres_changes payload into a ChangeEvent"""
    data = payload.get("data", payload) if isinstance(payload, dict) else {}
    event_type = data.get("type") or data.get("eventType")
    if not event_type:
        return None
    return ChangeEvent(
        table=data.get("table") or table,
        event_type=str(event_type).upper(),
        family_id=family_id,
        new=data.get("record") or data.get("new") or {},
        old=data.get("old_record") or data.get("old") or {},
    )


class SupabaseChangeFeed:
    """Opens one Supabase Realtime channel per (table, family id)."""

    def __init__(self, url: str = None, key: str = None):
        self.url = url or settings.supabase_url
        self.key = key or settings.supabase_service_role_key or settings.supabase_key
        self._client: Optional[AsyncClient] = None
        self._pending: Set[asyncio.Task] = set()

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await acreate_client(self.url, self.key)
        return self._client

    async def open(self, table: str, family_id: str,
                   callback: Callable[[ChangeEvent], Awaitable[None]]) -> Any:
        client = await self._get_client()
        column = FAMILY_COLUMNS[table]

        def on_change(payload):
            event = parse_postgres_change(table, family_id, payload)
            if event is None:
                logger.debug(f"Ignoring realtime payload without event type on {table}")
                return
            task = asyncio.get_running_loop().create_task(callback(event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        channel = client.channel(f"{table}_{family_id}")
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=table,
            filter=f"{column}=eq.{family_id}",
            callback=on_change,
        )
        await channel.subscribe()
        return channel

    async def close(self, handle: Any) -> None:
        if self._client is None:
            return
        await self._client.remove_channel(handle)
