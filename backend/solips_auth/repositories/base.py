"""Generic repository base for SQLAlchemy 2.x.

Persistence-only concerns shared by repositories:

- Session access (injected session or the Flask-scoped one).
- Lookups by whitelisted equality filters, with an optional ``FOR UPDATE`` lock.
- Existence checks that select only the primary key.
- No business logic, no commit/rollback: services own transactions through
  a Unit of Work.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from solips_auth.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model`` and MAY override ``_filterable_fields``
    to whitelist equality filters.

    This class NEVER opens, commits or rolls back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        :param session: Session shared across the Unit of Work scope. When
            ``None`` the Flask-scoped session is used.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        pk = getattr(self.model, "id", None)
        if pk is None:
            raise RuntimeError(f"{self.model.__name__} has no detectable primary key.")
        return cast(InstrumentedAttribute[Any], pk)

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public filter keys to model attributes."""
        return {}

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any],
    ) -> Select[Any]:
        """Apply whitelisted equality filters.

        :raises ValueError: On keys missing from ``_filterable_fields()``.
        """
        allowed = self._filterable_fields()
        unknown = [k for k in filters if k not in allowed]
        if unknown:
            raise ValueError(f"Unknown or non-filterable fields: {unknown}")
        clauses = [allowed[k] == v for k, v in filters.items()]
        return stmt.where(and_(*clauses)) if clauses else stmt

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize the PK."""
        self.session.add(instance)
        self.flush()
        return instance

    def find_one(self, *, for_update: bool = False, **filters: Any) -> E | None:
        """Find a single entity by whitelisted equality filters.

        :param for_update: Lock the row (``SELECT ... FOR UPDATE``) on dialects
            that support it; ignored by SQLite.
        """
        stmt: Select[Any] = self._apply_equality_filters(select(self.model), filters)
        if for_update:
            stmt = stmt.with_for_update()
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, **filters: Any) -> bool:
        """Return ``True`` when at least one row matches the filters."""
        stmt: Select[Any] = select(self._pk_attr())
        stmt = self._apply_equality_filters(stmt, filters)
        return self.session.execute(stmt.limit(1)).first() is not None

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()
