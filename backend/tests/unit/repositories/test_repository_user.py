"""Unit tests for UserRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from solips_auth.repositories.user import UserRepository
from tests.factories.user import UserFactory

EXPIRES = datetime(2026, 2, 1, tzinfo=UTC)


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository(session=session)

    def test_exists_by_email_is_case_insensitive(self, repo, session):
        UserFactory(email="s10001@gsm.hs.kr")
        session.commit()

        assert repo.exists_by_email(" S10001@GSM.HS.KR ")

    def test_get_by_user_id(self, repo, session):
        u = UserFactory(user_id="alice")
        session.commit()

        assert repo.get_by_user_id("alice").id == u.id
        assert repo.get_by_user_id("alice", for_update=True).id == u.id
        assert repo.get_by_user_id("nobody") is None

    def test_surface_is_limited_to_service_lookups(self, repo):
        for name in ("get", "get_for_update", "get_by_email"):
            assert not hasattr(repo, name)

    def test_exists_flags(self, repo, session):
        UserFactory(email="s10002@gsm.hs.kr", user_id="bob")
        session.commit()

        assert repo.exists_by_email("s10002@gsm.hs.kr")
        assert not repo.exists_by_email("s99999@gsm.hs.kr")
        assert repo.exists_by_user_id("bob")
        assert not repo.exists_by_user_id("carol")

    def test_get_by_refresh_token_matches_exact_string(self, repo, session):
        u = UserFactory()
        u.assign_refresh_token("rt-value", EXPIRES)
        session.commit()

        assert repo.get_by_refresh_token("rt-value").id == u.id
        assert repo.get_by_refresh_token("rt-valu") is None
        assert repo.get_by_refresh_token("rt-value ") is None

    def test_clear_refresh_token(self, repo, session):
        u = UserFactory(user_id="dave")
        u.assign_refresh_token("rt-dave", EXPIRES)
        session.commit()

        assert repo.clear_refresh_token("dave") == 1
        session.commit()
        session.refresh(u)
        assert u.refresh_token is None
        assert u.refresh_token_expires_at is None

    def test_clear_refresh_token_unknown_user_is_noop(self, repo):
        assert repo.clear_refresh_token("ghost") == 0

    def test_unknown_filter_key_rejected(self, repo):
        with pytest.raises(ValueError, match="password_hash"):
            repo.find_one(password_hash="x")
