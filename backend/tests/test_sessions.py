from app.core.config import settings

from conftest import ADMIN_PASSWORD, USER_PASSWORD, change_password, login


class TestLogin:
    def test_login_returns_user_and_sets_cookie(self, client):
        r = client.post(
            "/api/login",
            json={"username": settings.ADMIN_USERNAME, "password": settings.ADMIN_INITIAL_PASSWORD},
        )
        assert r.status_code == 200
        assert r.json()["username"] == settings.ADMIN_USERNAME
        assert settings.SESSION_COOKIE_NAME in r.cookies

    def test_bad_password_is_unauthenticated(self, client):
        r = client.post("/api/login", json={"username": settings.ADMIN_USERNAME, "password": "nope"})
        assert r.status_code == 401
        assert "error" in r.json()

    def test_unknown_user_is_unauthenticated(self, client):
        r = client.post("/api/login", json={"username": "ghost", "password": "x"})
        assert r.status_code == 401

    def test_login_requires_a_principal(self, client):
        r = client.post("/api/login", json={"password": "x"})
        assert r.status_code == 400

    def test_login_by_email(self, client, admin, make_user):
        _, headers = make_user("mailer")
        r = client.put("/api/me", json={"email": "mailer@example.com"}, headers=headers)
        assert r.status_code == 200
        headers = login(client, USER_PASSWORD, email="mailer@example.com")
        assert client.get("/api/me", headers=headers).json()["username"] == "mailer"

    def test_no_token_is_unauthenticated(self, client):
        assert client.get("/api/me").status_code == 401

    def test_garbage_token_is_unauthenticated(self, client):
        r = client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401

    def test_cookie_session_is_accepted(self, client, admin):
        r = client.post("/api/login", json={"username": settings.ADMIN_USERNAME, "password": ADMIN_PASSWORD})
        assert r.status_code == 200
        # cookie jar now carries the session
        assert client.get("/api/me").status_code == 200


class TestForcedPasswordChange:
    def test_new_admin_is_gated(self, client):
        headers = login(client, settings.ADMIN_INITIAL_PASSWORD, username=settings.ADMIN_USERNAME)
        r = client.get("/api/me", headers=headers)
        assert r.status_code == 403
        assert r.json()["error"] == "Password change required"

    def test_gate_covers_every_operation(self, client):
        headers = login(client, settings.ADMIN_INITIAL_PASSWORD, username=settings.ADMIN_USERNAME)
        assert client.get("/api/teams", headers=headers).status_code == 403
        assert client.post("/api/teams", json={"name": "t"}, headers=headers).status_code == 403

    def test_change_invalidates_the_calling_session(self, client):
        headers = login(client, settings.ADMIN_INITIAL_PASSWORD, username=settings.ADMIN_USERNAME)
        change_password(client, headers, settings.ADMIN_INITIAL_PASSWORD, ADMIN_PASSWORD)

        assert client.get("/api/me", headers=headers).status_code == 401
        fresh = login(client, ADMIN_PASSWORD, username=settings.ADMIN_USERNAME)
        assert client.get("/api/me", headers=fresh).status_code == 200

    def test_wrong_old_password_is_rejected(self, client):
        headers = login(client, settings.ADMIN_INITIAL_PASSWORD, username=settings.ADMIN_USERNAME)
        r = client.put(
            "/api/me/password",
            json={"old_password": "wrong", "new_password": "whatever"},
            headers=headers,
        )
        assert r.status_code == 400
        # nothing changed: still gated, still logged in
        assert client.get("/api/me", headers=headers).status_code == 403

    def test_new_user_is_gated_until_change(self, client, admin):
        r = client.post("/api/users", json={"username": "fresh", "password": "initial"}, headers=admin)
        assert r.status_code == 200
        headers = login(client, "initial", username="fresh")
        assert client.get("/api/me", headers=headers).status_code == 403


class TestSessionInvalidation:
    def test_password_change_kills_every_session(self, client, make_user):
        _, first = make_user("multi")
        second = login(client, USER_PASSWORD, username="multi")
        assert client.get("/api/me", headers=first).status_code == 200

        change_password(client, second, USER_PASSWORD, "next-pass")

        assert client.get("/api/me", headers=first).status_code == 401
        assert client.get("/api/me", headers=second).status_code == 401

    def test_logout_revokes_only_that_session(self, client, make_user):
        _, first = make_user("leaver")
        second = login(client, USER_PASSWORD, username="leaver")

        assert client.post("/api/logout", headers=first).status_code == 200
        assert client.get("/api/me", headers=first).status_code == 401
        assert client.get("/api/me", headers=second).status_code == 200

    def test_logout_is_gated_until_password_change(self, client):
        headers = login(client, settings.ADMIN_INITIAL_PASSWORD, username=settings.ADMIN_USERNAME)
        r = client.post("/api/logout", headers=headers)
        assert r.status_code == 403
        assert r.json()["error"] == "Password change required"
        # the session survived the rejected call
        assert client.get("/api/me", headers=headers).status_code == 403

    def test_health_needs_no_session(self, client):
        r = client.get("/healthz")
        assert r.status_code == 200
        assert r.json() == {"ok": True}
