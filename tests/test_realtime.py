"""Realtime broker fan-out, change parsing and the WebSocket relay."""
import pytest
from fastapi.websockets import WebSocketDisconnect

from kyn.main import app
from kyn.realtime.broker import ChangeEvent, RealtimeBroker
from kyn.core.errors import InsufficientFamilyRole
from kyn.modules.families.switcher import FamilyContext
from kyn.realtime.routes import check_table_access, parse_tables
from kyn.realtime.supabase_feed import parse_postgres_change


class FakeChangeFeed:
    def __init__(self):
        self.opened = []
        self.closed = []
        self.callbacks = {}

    async def open(self, table, family_id, callback):
        handle = f"{table}_{family_id}"
        self.opened.append(handle)
        self.callbacks[handle] = callback
        return handle

    async def close(self, handle):
        self.closed.append(handle)


def collector():
    received = []

    async def handler(event):
        received.append(event)
    return handler, received


def insert(table="posts", family_id="f1", **record):
    return ChangeEvent(table=table, event_type="INSERT", family_id=family_id, new=record)


@pytest.fixture
def feed():
    return FakeChangeFeed()


@pytest.fixture
def broker(feed):
    return RealtimeBroker(feed)


class TestRealtimeBroker:
    @pytest.mark.asyncio
    async def test_one_upstream_channel_per_topic(self, broker, feed):
        first, _ = collector()
        second, _ = collector()
        await broker.subscribe("posts", "f1", first)
        await broker.subscribe("posts", "f1", second)
        await broker.subscribe("posts", "f2", first)
        assert feed.opened == ["posts_f1", "posts_f2"]
        assert broker.handler_count("posts", "f1") == 2
        assert broker.topic_count() == 2

    @pytest.mark.asyncio
    async def test_events_reach_every_handler(self, broker, feed):
        first, got_first = collector()
        second, got_second = collector()
        await broker.subscribe("posts", "f1", first)
        await broker.subscribe("posts", "f1", second)

        await feed.callbacks["posts_f1"](insert(content="hello"))
        assert len(got_first) == len(got_second) == 1
        assert got_first[0].record == {"content": "hello"}

    @pytest.mark.asyncio
    async def test_events_stay_within_their_family(self, broker):
        handler, received = collector()
        await broker.subscribe("posts", "f1", handler)
        await broker.dispatch(insert(family_id="f2"))
        await broker.dispatch(insert(table="comments", family_id="f1"))
        assert received == []

    @pytest.mark.asyncio
    async def test_last_unsubscribe_closes_channel(self, broker, feed):
        first, _ = collector()
        second, _ = collector()
        sub_first = await broker.subscribe("posts", "f1", first)
        sub_second = await broker.subscribe("posts", "f1", second)

        await broker.unsubscribe(sub_first)
        assert feed.closed == []
        await broker.unsubscribe(sub_second)
        assert feed.closed == ["posts_f1"]
        assert broker.topic_count() == 0

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self, broker, feed):
        handler, _ = collector()
        subscription = await broker.subscribe("posts", "f1", handler)
        await broker.unsubscribe(subscription)
        await broker.unsubscribe(subscription)
        assert feed.closed == ["posts_f1"]

    @pytest.mark.asyncio
    async def test_resubscribe_reopens_channel(self, broker, feed):
        handler, _ = collector()
        await broker.unsubscribe(await broker.subscribe("posts", "f1", handler))
        await broker.subscribe("posts", "f1", handler)
        assert feed.opened == ["posts_f1", "posts_f1"]

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self, broker):
        async def broken(event):
            raise RuntimeError("boom")
        handler, received = collector()
        await broker.subscribe("posts", "f1", broken)
        await broker.subscribe("posts", "f1", handler)

        await broker.dispatch(insert())
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unknown_table(self, broker):
        handler, _ = collector()
        with pytest.raises(ValueError):
            await broker.subscribe("passwords", "f1", handler)

    @pytest.mark.asyncio
    async def test_close_releases_everything(self, broker, feed):
        handler, _ = collector()
        await broker.subscribe("posts", "f1", handler)
        await broker.subscribe("messages", "f1", handler)
        await broker.close()
        assert sorted(feed.closed) == ["messages_f1", "posts_f1"]
        assert broker.topic_count() == 0


class TestChangeEvent:
    def test_notifies_on_new_rows_from_others(self):
        assert insert(author_id="p2").should_notify("p1") is True

    def test_no_notification_for_own_rows(self):
        assert insert(author_id="p1").should_notify("p1") is False

    def test_no_notification_for_updates(self):
        event = ChangeEvent(table="posts", event_type="UPDATE", family_id="f1", new={"author_id": "p2"})
        assert event.should_notify("p1") is False

    def test_membership_changes_only_refresh(self):
        assert insert(table="family_members", profile_id="p2").should_notify("p1") is False

    def test_messages_visible_to_participants_only(self):
        event = insert(table="messages", sender_id="p1", recipient_id="p2")
        assert event.visible_to("p1") and event.visible_to("p2")
        assert not event.visible_to("p3")
        assert event.should_notify("p2") is True

    def test_delete_uses_old_record(self):
        event = ChangeEvent(table="posts", event_type="DELETE", family_id="f1", old={"id": "x"})
        assert event.record == {"id": "x"}

    def test_public_record_hides_trivia_answers(self):
        event = insert(table="trivia_questions", id="q1", question="Grandpa's home town?", answer="Leeds")
        assert event.public_record() == {"id": "q1", "question": "Grandpa's home town?"}
        assert event.record["answer"] == "Leeds"

    def test_public_record_keeps_other_tables_whole(self):
        assert insert(content="hi", author_id="p1").public_record() == {"content": "hi", "author_id": "p1"}


class TestParsePostgresChange:
    def test_realtime_payload(self):
        payload = {
            "data": {
                "schema": "public",
                "table": "posts",
                "type": "INSERT",
                "record": {"id": "1", "family_id": "f1", "author_id": "p1"},
                "old_record": None,
            },
            "ids": [1],
        }
        event = parse_postgres_change("posts", "f1", payload)
        assert event.event_type == "INSERT"
        assert event.record["author_id"] == "p1"
        assert event.old == {}

    def test_flat_payload(self):
        event = parse_postgres_change("comments", "f1", {"eventType": "update", "new": {"id": "c"}, "old": {}})
        assert event.event_type == "UPDATE"
        assert event.table == "comments"

    def test_payload_without_type(self):
        assert parse_postgres_change("posts", "f1", {"data": {}}) is None


class TestParseTables:
    def test_deduplicates(self):
        assert parse_tables("posts, messages,posts") == ["posts", "messages"]

    @pytest.mark.parametrize("tables", ["", "posts,secrets", " , "])
    def test_rejects_unknown_or_empty(self, tables):
        with pytest.raises(ValueError):
            parse_tables(tables)


class TestWebSocketRelay:
    @pytest.fixture
    def relay_broker(self, feed):
        original = app.state.broker
        app.state.broker = RealtimeBroker(feed)
        yield app.state.broker
        app.state.broker = original

    def connect(self, client, family_id, token=None, tables=None):
        params = []
        if token:
            params.append(f"token={token}")
        if tables:
            params.append(f"tables={tables}")
        query = f"?{'&'.join(params)}" if params else ""
        return client.websocket_connect(f"/ws/families/{family_id}{query}")

    def test_requires_token(self, client, relay_broker, alice_family):
        with pytest.raises(WebSocketDisconnect) as exc:
            with self.connect(client, alice_family["id"]):
                pass
        assert exc.value.code == 4401

    def test_rejects_non_members(self, client, relay_broker, bob, alice_family):
        with pytest.raises(WebSocketDisconnect) as exc:
            with self.connect(client, alice_family["id"], token=bob.token):
                pass
        assert exc.value.code == 4403

    def test_rejects_unknown_tables(self, client, relay_broker, alice, alice_family):
        with pytest.raises(WebSocketDisconnect) as exc:
            with self.connect(client, alice_family["id"], token=alice.token, tables="secrets"):
                pass
        assert exc.value.code == 4400

    def test_member_subscribes(self, client, relay_broker, feed, alice, alice_family):
        family_id = alice_family["id"]
        with self.connect(client, family_id, token=alice.token, tables="posts,messages") as ws:
            frame = ws.receive_json()
            assert frame == {"type": "subscribed", "family_id": family_id, "tables": ["posts", "messages"]}
            assert relay_broker.handler_count("posts", family_id) == 1
            assert feed.opened == [f"posts_{family_id}", f"messages_{family_id}"]
    @pytest.mark.parametrize("tables", ["families", "posts,family_invites"])
    def test_members_cannot_watch_invite_secrets(self, client, relay_broker, feed, bob, alice_family,
                                                 add_member, tables):
        add_member(alice_family["id"], bob)
        with pytest.raises(WebSocketDisconnect) as exc:
            with self.connect(client, alice_family["id"], token=bob.token, tables=tables):
                pass
        assert exc.value.code == 4403
        assert feed.opened == []

    def test_admin_watches_invites(self, client, relay_broker, alice, alice_family):
        family_id = alice_family["id"]
        with self.connect(client, family_id, token=alice.token, tables="families,family_invites") as ws:
            assert ws.receive_json()["tables"] == ["families", "family_invites"]

    def test_change_from_another_member_notifies(self, client, relay_broker, feed, alice, bob,
                                                 alice_family, add_member):
        family_id = alice_family["id"]
        add_member(family_id, bob)
        with self.connect(client, family_id, token=alice.token, tables="posts") as ws:
            ws.receive_json()
            record = {"id": "post-1", "family_id": family_id, "author_id": bob.profile_id, "content": "hi"}
            ws.portal.call(feed.callbacks[f"posts_{family_id}"], insert(family_id=family_id, **record))
            assert ws.receive_json() == {
                "type": "change", "table": "posts", "event": "INSERT", "record": record, "notify": True,
            }

    def test_own_change_refreshes_without_notifying(self, client, relay_broker, feed, alice, alice_family):
        family_id = alice_family["id"]
        with self.connect(client, family_id, token=alice.token, tables="posts") as ws:
            ws.receive_json()
            event = insert(family_id=family_id, id="post-1", author_id=alice.profile_id)
            ws.portal.call(feed.callbacks[f"posts_{family_id}"], event)
            assert ws.receive_json()["notify"] is False

    def test_messages_between_others_are_not_forwarded(self, client, relay_broker, feed, alice, bob, carol,
                                                       alice_family, add_member):
        family_id = alice_family["id"]
        add_member(family_id, bob)
        add_member(family_id, carol)
        with self.connect(client, family_id, token=alice.token, tables="messages,posts") as ws:
            ws.receive_json()
            private = insert(table="messages", family_id=family_id, id="m1",
                             sender_id=bob.profile_id, recipient_id=carol.profile_id)
            ws.portal.call(feed.callbacks[f"messages_{family_id}"], private)
            public = insert(family_id=family_id, id="post-1", author_id=bob.profile_id)
            ws.portal.call(feed.callbacks[f"posts_{family_id}"], public)

            frame = ws.receive_json()
            assert (frame["table"], frame["record"]["id"]) == ("posts", "post-1")

    def test_trivia_answers_are_not_relayed(self, client, relay_broker, feed, alice, alice_family):
        family_id = alice_family["id"]
        with self.connect(client, family_id, token=alice.token, tables="trivia_questions") as ws:
            ws.receive_json()
            event = insert(table="trivia_questions", family_id=family_id, id="q1",
                           question="Where was Grandpa born?", answer="Leeds", created_by=alice.profile_id)
            ws.portal.call(feed.callbacks[f"trivia_questions_{family_id}"], event)
            record = ws.receive_json()["record"]
            assert record["question"] == "Where was Grandpa born?"
            assert "answer" not in record

    def test_forwarding_failure_closes_the_socket(self, client, relay_broker, feed, alice, alice_family):
        family_id = alice_family["id"]
        with pytest.raises(WebSocketDisconnect) as exc:
            with self.connect(client, family_id, token=alice.token, tables="posts") as ws:
                ws.receive_json()
                # A set cannot be encoded as JSON, so sending the frame fails
                broken = insert(family_id=family_id, id="post-1", tags={"a", "b"})
                ws.portal.call(feed.callbacks[f"posts_{family_id}"], broken)
                ws.receive_json()
        assert exc.value.code == 1011
        assert relay_broker.topic_count() == 0



class TestTableAccess:
    def test_members_read_shared_tables(self):
        member = FamilyContext(profile_id="p1", family_id="f1", role="member")
        check_table_access(member, ["posts", "comments", "messages", "family_members", "tasks", "trivia_scores"])

    @pytest.mark.parametrize("table", ["families", "family_invites"])
    def test_members_cannot_watch_invite_secrets(self, table):
        member = FamilyContext(profile_id="p1", family_id="f1", role="member")
        with pytest.raises(InsufficientFamilyRole):
            check_table_access(member, ["posts", table])

    def test_admins_watch_everything(self):
        admin = FamilyContext(profile_id="p1", family_id="f1", role="admin")
        check_table_access(admin, ["families", "family_invites"])
