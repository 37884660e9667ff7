"""
Shared subscription broker for row-change notifications.

One upstream channel is opened per (table, family id) no matter how many
handlers listen to it. Handlers are async callables receiving a ChangeEvent.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

# Column holding the family id for each watched table
FAMILY_COLUMNS = {
    "posts": "family_id",
    "comments": "family_id",
    "messages": "family_id",
    "family_members": "family_id",
    "family_invites": "family_id",
    "families": "id",
    "tasks": "family_id",
    "events": "family_id",
    "event_rsvps": "family_id",
    "polls": "family_id",
    "poll_votes": "family_id",
    "trivia_questions": "family_id",
    "trivia_scores": "family_id",
}

# Family permission a subscriber needs per table. families holds the invite
# password and family_invites the tokens: inviters only.
TABLE_PERMISSIONS = {
    "posts": "feed:read",
    "comments": "feed:read",
    "messages": "messages:read",
    "family_members": "family:read",
    "family_invites": "family:invite",
    "families": "family:invite",
    "tasks": "tasks:read",
    "events": "events:read",
    "event_rsvps": "events:read",
    "polls": "polls:read",
    "poll_votes": "polls:read",
    "trivia_questions": "games:read",
    "trivia_scores": "games:read",
}

# Column naming who caused an INSERT, used to decide whether to notify
AUTHOR_COLUMNS = {
    "posts": "author_id",
    "comments": "author_id",
    "messages": "sender_id",
    "family_invites": "created_by",
    "tasks": "created_by",
    "events": "created_by",
    "polls": "created_by",
    "trivia_questions": "created_by",
}

# Columns never relayed to clients
HIDDEN_COLUMNS = {
    "trivia_questions": ("answer",),
}


@dataclass
class ChangeEvent:
    table: str
    event_type: str  # INSERT | UPDATE | DELETE
    family_id: str
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)

    @property
    def record(self) -> Dict[str, Any]:
        return self.new or self.old

    def public_record(self) -> Dict[str, Any]:
        hidden = HIDDEN_COLUMNS.get(self.table, ())
        return {k: v for k, v in self.record.items() if k not in hidden}

    def author_id(self) -> Optional[str]:
        column = AUTHOR_COLUMNS.get(self.table)
        return self.record.get(column) if column else None

    def should_notify(self, profile_id: str) -> bool:
        """New rows created by someone else get a transient notification"""
        if self.event_type != "INSERT" or self.table not in AUTHOR_COLUMNS:
            return False
        return self.author_id() != profile_id

    def visible_to(self, profile_id: str) -> bool:
        """Direct messages only reach their two participants"""
        if self.table != "messages":
            return True
        record = self.record
        return profile_id in (record.get("sender_id"), record.get("recipient_id"))


Handler = Callable[[ChangeEvent], Awaitable[None]]
TopicKey = Tuple[str, str]


class ChangeFeed(Protocol):
    """Upstream change stream; one handle per (table, family id)."""

    async def open(self, table: str, family_id: str,
                   callback: Callable[[ChangeEvent], Awaitable[None]]) -> Any: ...

    async def close(self, handle: Any) -> None: ...


@dataclass(frozen=True)
class Subscription:
    id: int
    table: str
    family_id: str

    @property
    def key(self) -> TopicKey:
        return (self.table, self.family_id)


class _Topic:
    def __init__(self):
        self.handle: Any = None
        self.handlers: Dict[int, Handler] = {}


class RealtimeBroker:
    def __init__(self, feed: ChangeFeed):
        self.feed = feed
        self._topics: Dict[TopicKey, _Topic] = {}
        self._ids = count(1)
        self._lock = asyncio.Lock()

    def topic_count(self) -> int:
        return len(self._topics)

    def handler_count(self, table: str, family_id: str) -> int:
        topic = self._topics.get((table, family_id))
        return len(topic.handlers) if topic else 0

    async def subscribe(self, table: str, family_id: str, handler: Handler) -> Subscription:
        if table not in FAMILY_COLUMNS:
            raise ValueError(f"Table {table} is not watched")
        subscription = Subscription(id=next(self._ids), table=table, family_id=family_id)
        async with self._lock:
            topic = self._topics.get(subscription.key)
            if topic is None:
                topic = _Topic()
                topic.handle = await self.feed.open(table, family_id, self.dispatch)
                self._topics[subscription.key] = topic
                logger.info(f"Opened realtime channel for {table} in family {family_id}")
            topic.handlers[subscription.id] = handler
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Idempotent; closes the upstream channel with the last handler"""
        async with self._lock:
            topic = self._topics.get(subscription.key)
            if topic is None or topic.handlers.pop(subscription.id, None) is None:
                return
            if topic.handlers:
                return
            del self._topics[subscription.key]
        await self._close_handle(subscription.key, topic.handle)

    async def dispatch(self, event: ChangeEvent) -> None:
        """Fan an upstream event out to every handler of its topic"""
        topic = self._topics.get((event.table, event.family_id))
        if topic is None:
            return
        for subscription_id, handler in list(topic.handlers.items()):
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Realtime handler {subscription_id} failed on {event.table}: {e}")

    async def close(self) -> None:
        async with self._lock:
            topics = list(self._topics.items())
            self._topics.clear()
        for key, topic in topics:
            await self._close_handle(key, topic.handle)

    async def _close_handle(self, key: TopicKey, handle: Any) -> None:
        try:
            await self.feed.close(handle)
            logger.info(f"Closed realtime channel for {key[0]} in family {key[1]}")
        except Exception as e:
            logger.warning(f"Error closing realtime channel {key}: {e}")
