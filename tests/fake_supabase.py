"""In-memory stand-in for the Supabase client used by the tests.

Implements the slice of the postgrest query builder the services use, the stored
procedures from supabase/migrations, and auth.get_user().
"""

import copy
import uuid
from datetime import datetime, timedelta, timezone
from itertools import count
from types import SimpleNamespace

from postgrest.exceptions import APIError

UNIQUE_CONSTRAINTS = {
    "profiles": [("profiles_user_id_key", ("user_id",))],
    "families": [
        ("families_created_by_key", ("created_by",)),
        ("families_created_by_name_key", ("created_by", "name")),
    ],
    "family_members": [("family_members_family_id_profile_id_key", ("family_id", "profile_id"))],
    "family_invites": [("family_invites_token_key", ("token",))],
    "profile_preferences": [("profile_preferences_pkey", ("profile_id", "key"))],
    "event_rsvps": [("event_rsvps_event_id_profile_id_key", ("event_id", "profile_id"))],
    "poll_votes": [("poll_votes_poll_id_profile_id_key", ("poll_id", "profile_id"))],
    "trivia_scores": [("trivia_scores_family_id_profile_id_key", ("family_id", "profile_id"))],
}

DEFAULTS = {
    "profiles": {"email": None, "full_name": None, "avatar_url": None, "updated_at": None},
    "families": {"invite_password": None},
    "family_members": {"role": "member", "parent_id": None},
    "family_invites": {"used": False, "created_by": None},
    "tasks": {"description": None, "assigned_to": None, "due_date": None, "completed": False, "created_by": None},
    "events": {"description": None, "location": None, "created_by": None},
    "polls": {"created_by": None},
    "trivia_questions": {"created_by": None},
    "trivia_scores": {"score": 0},
}

TIMESTAMP_COLUMNS = {
    "family_members": "joined_at",
    "profile_preferences": None,
    "trivia_scores": "updated_at",
}

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def unique_violation(constraint):
    return APIError({
        "code": "23505",
        "message": f'duplicate key value violates unique constraint "{constraint}"',
        "details": None,
        "hint": None,
    })


def raised(message):
    return APIError({"code": "P0001", "message": message, "details": None, "hint": None})


def _sort_key(value):
    return (value is None, "" if value is None else value)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.orderings = []
        self.limit_count = None
        self.offset_count = 0

    # Builders
    def select(self, columns="*"):
        self.action = "select"
        self.columns = columns
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def upsert(self, payload, on_conflict=None):
        self.action = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.orderings.append((column, desc))
        return self

    def limit(self, count_):
        self.limit_count = count_
        return self

    def offset(self, count_):
        self.offset_count = count_
        return self

    # Execution
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self.columns.split(",") if c.strip()]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self):
        self.db.calls.append((self.table_name, self.action))
        failure = self.db.failures.get((self.table_name, self.action))
        if failure is not None:
            raise failure
        rows = self.db.rows(self.table_name)

        if self.action == "select":
            selected = [r for r in rows if self._matches(r)]
            for column, desc in reversed(self.orderings):
                selected.sort(key=lambda r: _sort_key(r.get(column)), reverse=desc)
            selected = selected[self.offset_count:]
            if self.limit_count is not None:
                selected = selected[:self.limit_count]
            return FakeResponse([self._project(r) for r in selected])

        if self.action == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([copy.deepcopy(self.db.insert_row(self.table_name, p)) for p in payload])

        if self.action == "upsert":
            keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
            existing = [r for r in rows if all(r.get(k) == self.payload.get(k) for k in keys)]
            if existing:
                existing[0].update(copy.deepcopy(self.payload))
                return FakeResponse([copy.deepcopy(existing[0])])
            return FakeResponse([copy.deepcopy(self.db.insert_row(self.table_name, self.payload))])

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.action == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse([copy.deepcopy(r) for r in removed])

        raise AssertionError(f"Unsupported action {self.action}")


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.calls.append(("rpc", self.name))
        failure = self.db.failures.get(("rpc", self.name))
        if failure is not None:
            raise failure
        return FakeResponse(getattr(self.db, f"_rpc_{self.name}")(**self.params))


class FakeAuth:
    def __init__(self):
        self.users_by_token = {}
        self.accounts = {}

    def add_user(self, token, user_id, email):
        self.users_by_token[token] = SimpleNamespace(id=user_id, email=email, user_metadata={})

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.accounts:
            raise Exception("User already registered")
        user = SimpleNamespace(
            id=str(uuid.uuid4()), email=email,
            user_metadata=credentials.get("options", {}).get("data", {}),
        )
        self.accounts[email] = (credentials["password"], user)
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        password, user = self.accounts.get(credentials["email"], (None, None))
        if user is None or password != credentials["password"]:
            raise Exception("Invalid login credentials")
        token = f"token-{uuid.uuid4()}"
        self.users_by_token[token] = user
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=token))

    def get_user(self, jwt=None):
        user = self.users_by_token.get(jwt)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self, clock=None):
        self.tables = {}
        self.calls = []
        self.failures = {}
        self.auth = FakeAuth()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._ticks = count(1)

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def fail(self, table, action, error=None):
        """Make the next and later `action` calls on `table` raise"""
        self.failures[(table, action)] = error or APIError({"code": "XX000", "message": "boom"})

    def _timestamp(self):
        return (BASE_TIME + timedelta(seconds=next(self._ticks))).isoformat()

    def _check_unique(self, table, row, ignore=None):
        for name, columns in UNIQUE_CONSTRAINTS.get(table, []):
            for other in self.rows(table):
                if other is ignore:
                    continue
                if all(other.get(c) == row.get(c) for c in columns):
                    raise unique_violation(name)

    def insert_row(self, table, payload):
        row = dict(DEFAULTS.get(table, {}))
        if table != "profile_preferences":
            row["id"] = str(uuid.uuid4())
        stamp_column = TIMESTAMP_COLUMNS.get(table, "created_at")
        if stamp_column:
            row[stamp_column] = self._timestamp()
        row.update(copy.deepcopy(payload))
        self._check_unique(table, row)
        self.rows(table).append(row)
        return row

    # Stored procedures (see supabase/migrations/0001_kyn_schema.sql)
    def _rpc_create_family_with_admin(self, p_name, p_creator_id):
        family = self.insert_row("families", {"name": p_name, "created_by": p_creator_id})
        try:
            self.insert_row("family_members", {
                "family_id": family["id"], "profile_id": p_creator_id, "role": "admin",
            })
        except APIError:
            self.tables["families"].remove(family)
            raise
        return [copy.deepcopy(family)]

    def _rpc_redeem_family_invite(self, p_invite_id, p_profile_id):
        invite = next((i for i in self.rows("family_invites") if i["id"] == p_invite_id), None)
        if invite is None or invite["used"]:
            raise raised("invite_unavailable")
        if datetime.fromisoformat(invite["expires_at"]) <= self.clock():
            raise raised("invite_unavailable")
        member = {"family_id": invite["family_id"], "profile_id": p_profile_id, "role": "member"}
        self._check_unique("family_members", member)
        invite["used"] = True
        return [copy.deepcopy(self.insert_row("family_members", member))]

    def _rpc_increment_trivia_score(self, p_family_id, p_profile_id):
        score = next(
            (s for s in self.rows("trivia_scores")
             if s["family_id"] == p_family_id and s["profile_id"] == p_profile_id),
            None,
        )
        if score is None:
            score = self.insert_row("trivia_scores", {"family_id": p_family_id, "profile_id": p_profile_id})
        score["score"] += 1
        score["updated_at"] = self._timestamp()
        return [copy.deepcopy(score)]
