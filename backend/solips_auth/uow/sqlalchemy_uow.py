"""
SQLAlchemy implementations of UnitOfWork for Flask.
"""

from __future__ import annotations

from contextlib import suppress

from sqlalchemy import event
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import Session, SessionTransaction

from solips_auth.core.extensions import db
from solips_auth.repositories import UserRepository
from solips_auth.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write UoW using the Flask-scoped session.

    Commits when the block exits cleanly, rolls back when it raises.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only UoW backed by the Flask-scoped session.

    - Tries to own a fresh transaction; if one is already running on the
      session it attaches to it instead.
    - Blocks ORM flushes carrying new/dirty/deleted objects.
    - Rolls back on exit only when it owns the transaction, so state staged
      by an outer scope is never discarded.
    - ``commit()`` always raises.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)
        self._txn_ctx: SessionTransaction | None = None
        self._guard_installed = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._txn_ctx = None
        try:
            self._txn_ctx = self.session.begin()
        except InvalidRequestError:
            # A transaction is already begun on this session; attach to it.
            pass
        event.listen(self.session, "before_flush", self._block_writes)
        self._guard_installed = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._txn_ctx is not None:
                with suppress(Exception):
                    self.session.rollback()
                self._txn_ctx = None
        finally:
            if self._guard_installed:
                with suppress(Exception):
                    event.remove(self.session, "before_flush", self._block_writes)
                self._guard_installed = False

    def commit(self) -> None:
        """
        Disallow commit in a read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    @staticmethod
    def _block_writes(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
            )
