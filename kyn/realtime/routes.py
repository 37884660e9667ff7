"""
WebSocket relay for family change notifications.

Clients connect to /ws/families/{family_id}?token=<jwt>&tables=posts,messages
and receive one JSON frame per row change:

    {"type": "change", "table": "posts", "event": "INSERT",
     "record": {...}, "notify": true}

`notify` is true for new rows created by someone else, so the client can show
a toast; every frame means cached data for that table is stale.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from supabase import Client

from kyn.config.permissions_config import role_has_permission
from kyn.core.dependencies import check_family_member
from kyn.core.errors import InsufficientFamilyRole, KynError, NotAuthenticated, NotFamilyMember
from kyn.database.supabase_client import get_supabase
from kyn.modules.auth.service import AuthService
from kyn.modules.families.switcher import FamilyContext
from kyn.modules.profiles.service import ProfileService
from kyn.realtime.broker import FAMILY_COLUMNS, TABLE_PERMISSIONS, ChangeEvent, RealtimeBroker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

DEFAULT_TABLES = "posts,comments,messages,family_members"

CLOSE_UNAUTHORIZED = 4401
CLOSE_FORBIDDEN = 4403
CLOSE_BAD_REQUEST = 4400
CLOSE_SERVER_ERROR = 1011


def get_broker(websocket: WebSocket) -> RealtimeBroker:
    return websocket.app.state.broker


def parse_tables(tables: str) -> List[str]:
    requested = [t.strip() for t in tables.split(",") if t.strip()]
    unknown = [t for t in requested if t not in FAMILY_COLUMNS]
    if unknown or not requested:
        raise ValueError(f"Unknown tables: {', '.join(unknown) or '(none)'}")
    return list(dict.fromkeys(requested))


def check_table_access(context: FamilyContext, tables: List[str]) -> None:
    """Every requested table needs its read permission for the caller's role"""
    for table in tables:
        permission = TABLE_PERMISSIONS[table]
        if not role_has_permission(context.role, permission):
            raise InsufficientFamilyRole(f"Insufficient family role. Required: {permission}")


def change_frame(event: ChangeEvent, profile_id: str) -> dict:
    return {
        "type": "change",
        "table": event.table,
        "event": event.event_type,
        "record": event.public_record(),
        "notify": event.should_notify(profile_id),
    }


@router.websocket("/ws/families/{family_id}")
async def family_changes(
    websocket: WebSocket,
    family_id: str,
    token: Optional[str] = Query(None),
    tables: str = Query(DEFAULT_TABLES),
    supabase: Client = Depends(get_supabase),
):
    """Relay row changes for one family to an authenticated member"""
    try:
        if not token:
            raise NotAuthenticated()
        user = AuthService(supabase).get_current_user(token)
        profile = ProfileService(supabase).get_by_user_id(user["id"])
        context = check_family_member(family_id, profile.id, supabase)
        requested = parse_tables(tables)
        check_table_access(context, requested)
    except (NotFamilyMember, InsufficientFamilyRole) as e:
        logger.debug(f"Rejected realtime connection to family {family_id}: {e.detail}")
        await websocket.close(code=CLOSE_FORBIDDEN)
        return
    except ValueError as e:
        logger.debug(f"Rejected realtime connection: {e}")
        await websocket.close(code=CLOSE_BAD_REQUEST)
        return
    except KynError as e:
        code = CLOSE_SERVER_ERROR if e.status_code >= 500 else CLOSE_UNAUTHORIZED
        await websocket.close(code=code)
        return

    await websocket.accept()
    broker = get_broker(websocket)
    queue: asyncio.Queue = asyncio.Queue()

    async def enqueue(event: ChangeEvent) -> None:
        if event.visible_to(profile.id):
            await queue.put(event)

    async def forward() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json(change_frame(event, profile.id))

    async def close_after_failure() -> None:
        try:
            await websocket.close(code=CLOSE_SERVER_ERROR)
        except Exception as e:
            logger.debug(f"Realtime socket already gone: {e}")

    def on_forward_done(task: asyncio.Task) -> None:
        # The client disconnects after the close, which ends the receive loop below
        if task.cancelled() or task.exception() is None:
            return
        logger.error(f"Realtime forwarding to {profile.id} failed: {task.exception()}")
        asyncio.ensure_future(close_after_failure())

    subscriptions = []
    forward_task = None
    try:
        for table in requested:
            subscriptions.append(await broker.subscribe(table, family_id, enqueue))
        forward_task = asyncio.create_task(forward())
        forward_task.add_done_callback(on_forward_done)
        await websocket.send_json({"type": "subscribed", "family_id": family_id, "tables": requested})
        while True:
            # Client frames are only keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Realtime client {profile.id} disconnected from family {family_id}")
    finally:
        if forward_task is not None:
            forward_task.cancel()
        for subscription in subscriptions:
            await broker.unsubscribe(subscription)
