import pytest

from solips_auth.models.user import User
from solips_auth.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from tests.factories.user import UserFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, session):
        """
        Ensure that attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_allows_reads(self, session):
        UserFactory(user_id="reader")
        session.commit()

        with ROuow() as uow:
            assert uow.users.get_by_user_id("reader") is not None
            assert uow.session.query(User).count() >= 1

    def test_disallows_commit(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_guard_removed_after_exit(self, session):
        with ROuow():
            pass

        session.add(UserFactory.build(user_id="after-ro"))
        session.flush()
        assert session.query(User).filter_by(user_id="after-ro").count() == 1

    def test_attaches_to_running_transaction_without_rolling_it_back(self, session):
        # An outer scope has already begun a transaction and staged a row
        session.add(UserFactory.build(user_id="staged"))
        session.flush()

        with ROuow() as uow:
            assert uow.users.exists_by_user_id("staged")

        assert session.query(User).filter_by(user_id="staged").count() == 1
