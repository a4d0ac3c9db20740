import pytest

from solips_auth.models.user import User
from solips_auth.uow import SQLAlchemyUnitOfWork as RWuow
from tests.factories.user import UserFactory


class TestSQLAlchemyUnitOfWork:
    def test_commits_on_success(self, session):
        with RWuow() as uow:
            user = UserFactory.build(user_id="committed")
            uow.users.add(user)

        assert session.query(User).filter_by(user_id="committed").count() == 1

    def test_rolls_back_on_error(self, session):
        with pytest.raises(RuntimeError, match="boom"), RWuow() as uow:
            uow.users.add(UserFactory.build(user_id="rolled-back"))
            raise RuntimeError("boom")

        assert session.query(User).filter_by(user_id="rolled-back").count() == 0

    def test_repositories_share_the_uow_session(self, session):
        with RWuow() as uow:
            assert uow.users.session is uow.session
