"""End-to-end tests for the ``/auth`` endpoints through the Flask test client.

Users created up front are committed into the test's SAVEPOINT before any
request runs; assertions re-query rather than refresh instances held across
requests.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from freezegun import freeze_time

from solips_auth.models.user import User
from tests.factories.user import DEFAULT_PASSWORD, UserFactory

SIGNUP = {"email": "s12345@gsm.hs.kr", "userId": "alice", "password": "Passw0rd!"}


def _user(session, **kwargs) -> dict:
    """Create and commit a user, returning its public identity."""
    user = UserFactory(**kwargs)
    session.commit()
    return {"id": user.id, "email": user.email, "userId": user.user_id}


def _stored(session, user_id: str = "alice") -> User:
    return session.query(User).filter_by(user_id=user_id).one()


def _login(client, user_id: str = "alice", password: str = DEFAULT_PASSWORD):
    return client.post("/auth/login", json={"userId": user_id, "password": password})


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _assert_error(resp, status: int, code: str) -> dict:
    body = resp.get_json()
    assert resp.status_code == status, body
    assert body["success"] is False
    assert body["code"] == code
    assert body["message"]
    assert body["timestamp"]
    return body


# --------------------------------- Signup --------------------------------- #
class TestSignup:
    def test_created(self, client):
        resp = client.post("/auth/signup", json=SIGNUP)
        body = resp.get_json()

        assert resp.status_code == 201
        assert set(body) == {"id", "email", "userId"}
        assert body["email"] == "s12345@gsm.hs.kr"
        assert body["userId"] == "alice"

    def test_duplicate_email(self, client, session):
        _user(session, email="s12345@gsm.hs.kr")
        _assert_error(client.post("/auth/signup", json=SIGNUP), 409, "USER-001")

    def test_duplicate_user_id(self, client, session):
        _user(session, user_id="alice")
        _assert_error(client.post("/auth/signup", json=SIGNUP), 409, "USER-002")

    def test_missing_fields(self, client):
        body = _assert_error(client.post("/auth/signup", json={}), 400, "COMMON-002")
        assert set(body["errors"]) == {"email", "userId", "password"}

    def test_invalid_values(self, client):
        payload = {**SIGNUP, "email": "alice@example.com", "password": "weak"}
        body = _assert_error(client.post("/auth/signup", json=payload), 400, "COMMON-001")
        assert set(body["errors"]) == {"email", "password"}

    def test_non_json_body(self, client):
        resp = client.post("/auth/signup", data="nope", content_type="text/plain")
        _assert_error(resp, 400, "COMMON-002")


# --------------------------------- Login ---------------------------------- #
class TestLogin:
    def test_ok(self, client, session, token_provider):
        identity = _user(session, user_id="alice")

        resp = _login(client)
        body = resp.get_json()

        assert resp.status_code == 200
        assert body["tokenType"] == "Bearer"
        assert body["expiresIn"] == 3600
        assert body["user"] == identity
        assert token_provider.extract_subject(body["accessToken"]) == "alice"
        assert token_provider.validate(body["refreshToken"])
        assert _stored(session).refresh_token == body["refreshToken"]

    @pytest.mark.parametrize(
        ("user_id", "password"),
        [("alice", "Wr0ng!pw"), ("nobody", DEFAULT_PASSWORD)],
    )
    def test_invalid_credentials(self, client, session, user_id, password):
        _user(session, user_id="alice")
        body = _assert_error(_login(client, user_id, password), 401, "AUTH-001")
        assert body["message"] == "Invalid user id or password"

    def test_missing_password(self, client):
        resp = client.post("/auth/login", json={"userId": "alice"})
        body = _assert_error(resp, 400, "COMMON-002")
        assert set(body["errors"]) == {"password"}


# --------------------------------- Logout --------------------------------- #
class TestLogout:
    def test_requires_bearer(self, client):
        _assert_error(client.post("/auth/logout"), 401, "AUTH-002")

    def test_rejects_garbage_bearer(self, client):
        _assert_error(client.post("/auth/logout", headers=_bearer("garbage")), 401, "AUTH-002")

    def test_clears_refresh_token(self, client, session):
        _user(session, user_id="alice")
        tokens = _login(client).get_json()

        resp = client.post("/auth/logout", headers=_bearer(tokens["accessToken"]))

        assert resp.status_code == 200
        assert resp.data == b""
        stored = _stored(session)
        assert stored.refresh_token is None
        assert stored.refresh_token_expires_at is None

    def test_twice_is_fine(self, client, session):
        _user(session, user_id="alice")
        access = _login(client).get_json()["accessToken"]

        assert client.post("/auth/logout", headers=_bearer(access)).status_code == 200
        assert client.post("/auth/logout", headers=_bearer(access)).status_code == 200

    def test_expired_access_token(self, client, session):
        _user(session, user_id="alice")
        with freeze_time("2026-01-15 12:00:00") as frozen:
            access = _login(client).get_json()["accessToken"]
            frozen.tick(timedelta(seconds=3600))
            resp = client.post("/auth/logout", headers=_bearer(access))
            _assert_error(resp, 401, "AUTH-002")


# --------------------------------- Refresh -------------------------------- #
class TestRefresh:
    def test_ok(self, client, session, token_provider):
        _user(session, user_id="alice")
        tokens = _login(client).get_json()

        resp = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
        body = resp.get_json()

        assert resp.status_code == 200
        assert set(body) == {"accessToken", "tokenType", "expiresIn"}
        assert body["tokenType"] == "Bearer"
        assert token_provider.extract_subject(body["accessToken"]) == "alice"
        assert _stored(session).refresh_token == tokens["refreshToken"]

    def test_garbage(self, client):
        resp = client.post("/auth/refresh", json={"refreshToken": "garbage"})
        _assert_error(resp, 401, "AUTH-002")

    def test_missing(self, client):
        _assert_error(client.post("/auth/refresh", json={}), 400, "COMMON-002")

    def test_superseded_by_newer_login(self, client, session):
        _user(session, user_id="alice")
        first = _login(client).get_json()["refreshToken"]
        _login(client)

        resp = client.post("/auth/refresh", json={"refreshToken": first})
        _assert_error(resp, 401, "AUTH-004")

    def test_stored_expiry_passed(self, client, session):
        _user(session, user_id="alice")
        token = _login(client).get_json()["refreshToken"]
        stored = _stored(session)
        stored.refresh_token_expires_at = datetime.now(UTC) - timedelta(seconds=5)
        session.commit()

        resp = client.post("/auth/refresh", json={"refreshToken": token})
        _assert_error(resp, 401, "AUTH-003")


# ------------------------------ Check user id ----------------------------- #
class TestCheckUserId:
    def test_available(self, client):
        resp = client.get("/auth/check-userid", query_string={"userId": "alice"})
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["available"] is True
        assert body["message"]

    def test_taken(self, client, session):
        _user(session, user_id="alice")
        resp = client.get("/auth/check-userid", query_string={"userId": "alice"})
        assert resp.get_json()["available"] is False

    def test_missing_param(self, client):
        _assert_error(client.get("/auth/check-userid"), 400, "COMMON-002")


# ------------------------------ Cross-cutting ----------------------------- #
def test_request_id_is_echoed(client):
    resp = client.get("/auth/check-userid?userId=x", headers={"X-Request-ID": "req-42"})
    assert resp.headers["X-Request-ID"] == "req-42"


def test_request_id_is_generated(client):
    assert client.get("/auth/check-userid?userId=x").headers.get("X-Request-ID")


def test_request_id_is_not_carried_over_between_requests(client):
    first = client.get("/auth/check-userid?userId=x", headers={"X-Request-ID": "req-1"})
    second = client.get("/auth/check-userid?userId=x", headers={"X-Request-ID": "req-2"})
    third = client.get("/auth/check-userid?userId=x")

    assert first.headers["X-Request-ID"] == "req-1"
    assert second.headers["X-Request-ID"] == "req-2"
    assert third.headers["X-Request-ID"] not in {"req-1", "req-2"}


def test_unknown_route_uses_envelope(client):
    _assert_error(client.get("/auth/nope"), 404, "not_found")


def test_wrong_method_uses_envelope(client):
    _assert_error(client.get("/auth/login"), 405, "method_not_allowed")


def test_full_scenario(client, session, token_provider):
    assert client.post("/auth/signup", json=SIGNUP).status_code == 201

    tokens = _login(client, "alice", "Passw0rd!").get_json()
    _assert_error(_login(client, "alice", "wrong"), 401, "AUTH-001")

    refreshed = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert token_provider.extract_subject(refreshed.get_json()["accessToken"]) == "alice"

    assert client.post("/auth/logout", headers=_bearer(tokens["accessToken"])).status_code == 200
    assert _stored(session).refresh_token is None

    resp = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    _assert_error(resp, 401, "AUTH-004")
