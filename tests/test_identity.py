"""Auth account resolution and profile onboarding."""


class TestAuthentication:
    def test_missing_token_is_rejected(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["code"] == "not_authenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_unknown_token_is_rejected(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["code"] == "not_authenticated"

    def test_me_reports_onboarding_state(self, client, make_account):
        fresh = make_account("Fresh", onboard=False)
        response = client.get("/api/v1/auth/me", headers=fresh.headers)
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == fresh.user_id
        assert body["onboarded"] is False
        assert body["profile_id"] is None

    def test_me_includes_profile_id_after_onboarding(self, client, alice):
        body = client.get("/api/v1/auth/me", headers=alice.headers).json()
        assert body["onboarded"] is True
        assert body["profile_id"] == alice.profile_id


class TestRegisterAndLogin:
    credentials = {"email": "erin@example.com", "password": "s3cret-pass"}

    def test_register_then_login(self, client):
        registered = client.post("/api/v1/auth/register", json={**self.credentials, "full_name": "Erin"})
        assert registered.status_code == 201
        assert registered.json()["email"] == "erin@example.com"

        login = client.post("/api/v1/auth/login", json=self.credentials)
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
        assert me["id"] == registered.json()["user_id"]
        assert me["onboarded"] is False

    def test_duplicate_registration(self, client):
        client.post("/api/v1/auth/register", json=self.credentials)
        response = client.post("/api/v1/auth/register", json=self.credentials)
        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"

    def test_wrong_password(self, client):
        client.post("/api/v1/auth/register", json=self.credentials)
        response = client.post("/api/v1/auth/login", json={**self.credentials, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["code"] == "not_authenticated"

    def test_logout(self, client, alice):
        response = client.post("/api/v1/auth/logout", headers=alice.headers)
        assert response.status_code == 200


class TestProfiles:
    def test_profile_missing_before_onboarding(self, client, make_account):
        fresh = make_account("Fresh", onboard=False)
        response = client.get("/api/v1/profiles/me", headers=fresh.headers)
        assert response.status_code == 404
        assert response.json()["code"] == "profile_not_found"

    def test_onboarding_creates_profile(self, client, make_account):
        fresh = make_account("Fresh", email="Dana@Example.com", onboard=False)
        response = client.post(
            "/api/v1/profiles/onboarding",
            json={"full_name": "Dana Smith", "avatar_url": "https://img/dana.png"},
            headers=fresh.headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == fresh.user_id
        assert body["email"] == "dana@example.com"
        assert body["full_name"] == "Dana Smith"

        me = client.get("/api/v1/profiles/me", headers=fresh.headers).json()
        assert me["id"] == body["id"]

    def test_repeated_onboarding_keeps_one_profile(self, client, db, make_account):
        fresh = make_account("Fresh", onboard=False)
        first = client.post("/api/v1/profiles/onboarding", json={"full_name": "One"}, headers=fresh.headers)
        second = client.post("/api/v1/profiles/onboarding", json={"full_name": "Two"}, headers=fresh.headers)
        assert first.json()["id"] == second.json()["id"]
        assert second.json()["full_name"] == "Two"
        assert len([p for p in db.rows("profiles") if p["user_id"] == fresh.user_id]) == 1

    def test_onboarding_requires_name(self, client, make_account):
        fresh = make_account("Fresh", onboard=False)
        response = client.post("/api/v1/profiles/onboarding", json={"full_name": ""}, headers=fresh.headers)
        assert response.status_code == 422

    def test_update_profile(self, client, alice):
        response = client.patch(
            "/api/v1/profiles/me", json={"full_name": "Alice Smith"}, headers=alice.headers
        )
        assert response.status_code == 200
        assert response.json()["full_name"] == "Alice Smith"
        assert response.json()["updated_at"] is not None


class TestAppEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_feature_flags_are_booleans(self, client):
        body = client.get("/api/v1/config/features").json()
        assert set(body) == {"maps", "weather", "video"}
        assert all(isinstance(v, bool) for v in body.values())
