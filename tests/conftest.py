"""
Shared pytest fixtures for the kyn-backend test suite.

Every test talks to an in-memory FakeSupabase injected through FastAPI's
dependency overrides, so no network or database is needed. Rate limiting is
switched off before the app is imported.
"""
import os
import uuid

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from kyn.database.supabase_client import get_supabase
from kyn.main import app
from kyn.modules.auth.service import clear_auth_cache
from tests.fake_supabase import FakeSupabase


# ---------------------------------------------------------------------------
# Application / database lifecycle
# ---------------------------------------------------------------------------

@pytest.fixture
def db():
    fake = FakeSupabase()
    app.dependency_overrides[get_supabase] = lambda: fake
    clear_auth_cache()
    yield fake
    app.dependency_overrides.clear()
    clear_auth_cache()


@pytest.fixture
def client(db):
    return TestClient(app)


# ---------------------------------------------------------------------------
# Account helpers
# ---------------------------------------------------------------------------

class Account:
    """An authenticated user with an onboarded profile"""

    def __init__(self, db, name, email, onboard=True):
        self.token = f"token-{uuid.uuid4()}"
        self.user_id = str(uuid.uuid4())
        self.email = email
        self.name = name
        db.auth.add_user(self.token, self.user_id, email)
        self.profile_id = None
        if onboard:
            row = db.insert_row("profiles", {
                "user_id": self.user_id,
                "email": email.lower(),
                "full_name": name,
            })
            self.profile_id = row["id"]

    @property
    def headers(self):
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def make_account(db):
    def _make(name="Test User", email=None, onboard=True):
        email = email or f"{uuid.uuid4().hex[:8]}@example.com"
        return Account(db, name, email, onboard=onboard)
    return _make


@pytest.fixture
def alice(make_account):
    return make_account("Alice", "alice@example.com")


@pytest.fixture
def bob(make_account):
    return make_account("Bob", "bob@example.com")


@pytest.fixture
def carol(make_account):
    return make_account("Carol", "carol@example.com")


@pytest.fixture
def alice_family(client, alice):
    """Alice's family, with Alice as admin"""
    response = client.post("/api/v1/families", json={"name": "Smith"}, headers=alice.headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def add_member(db):
    """Insert a membership row directly, bypassing the invite flow"""
    def _add(family_id, account, role="member"):
        return db.insert_row("family_members", {
            "family_id": family_id,
            "profile_id": account.profile_id,
            "role": role,
        })
    return _add
