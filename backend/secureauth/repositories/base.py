"""Generic repository base for SQLAlchemy 2.x.

Repositories are thin and persistence-focused:
- They never implement use cases or domain policies.
- They never call commit/rollback; the Unit of Work owns transactions.
- Eager-loading is opt-in via ``_default_eagerload`` to avoid N+1.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from secureauth.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model`` and MAY override ``_default_eagerload``.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``secureauth.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the active SQLAlchemy session."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def _default_eagerload(self, stmt: Select[Any]) -> Select[Any]:
        """Attach eager-loading options to lookups (identity by default)."""
        return stmt

    # ------------------------------ CRUD ------------------------------------

    def get(self, id_: Any) -> E | None:
        """Fetch an entity by primary key.

        :param id_: Primary key value.
        :returns: Entity or ``None``.
        """
        pk = getattr(self.model, "id")
        stmt = self._default_eagerload(select(self.model).where(pk == id_))
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def add(self, instance: E) -> E:
        """Stage a new entity in the session (no flush)."""
        self.session.add(instance)
        return instance

    def flush(self) -> None:
        """Flush pending changes so database constraints fire early."""
        self.session.flush()
