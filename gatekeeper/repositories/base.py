"""Unit of work, error translation, and the soft-delete aware repository base."""

import functools
import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from gatekeeper.core.errors import InfrastructureError, WriteConflictError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
F = TypeVar("F", bound=Callable[..., Any])


def _translate(exc: SQLAlchemyError, what: str) -> InfrastructureError:
    if isinstance(exc, IntegrityError):
        logger.warning("%s hit a constraint: %s", what, exc.orig)
        return WriteConflictError()
    logger.exception("%s failed", what)
    return InfrastructureError()


def db_operation(func_: F) -> F:
    """Translate SQLAlchemy failures raised by a repository method into InfrastructureError."""

    @functools.wraps(func_)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func_(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise _translate(exc, f"Database operation {func_.__qualname__}") from exc

    return wrapper  # type: ignore[return-value]


class UnitOfWork:
    """
    Groups repository calls into one transaction on a session.

    ``with uow.begin():`` commits when the outermost block exits cleanly and
    rolls back on any exception. Nested blocks join the outer transaction, so a
    service method can call another unit-of-work method without committing
    half of its changes.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._depth = 0

    @contextmanager
    def begin(self) -> Iterator[Session]:
        self._depth += 1
        outermost = self._depth == 1
        try:
            yield self.session
            if outermost:
                self.session.commit()
        except SQLAlchemyError as exc:
            if outermost:
                self.session.rollback()
            raise _translate(exc, "Unit of work") from exc
        except BaseException:
            if outermost:
                self.session.rollback()
            raise
        finally:
            self._depth -= 1


@contextmanager
def on_write_conflict(recheck: Callable[[], None]) -> Iterator[None]:
    """
    Give a unique-index clash from a concurrent writer its domain meaning.

    Wrap the outermost unit of work with it. After the rollback ``recheck``
    re-runs the uniqueness lookups, which now see the other writer's committed
    row and raise the named error. If they find nothing the conflict propagates.
    """
    try:
        yield
    except WriteConflictError:
        recheck()
        raise


def escape_like(keyword: str) -> str:
    """Escape LIKE wildcards so a keyword matches literally."""
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def not_deleted(model: type) -> Any:
    """The single definition of "active row" for soft-deletable models."""
    return model.deleted_at.is_(None)


class BaseRepository(Generic[ModelT]):
    """
    CRUD helpers for a soft-deletable model.

    Every read goes through ``_active()``, which applies ``not_deleted``.
    Lookups return None for a missing row instead of raising.
    """

    model: type[ModelT]
    search_columns: tuple[str, ...] = ()

    def __init__(self, session: Session) -> None:
        self.session = session

    def _active(self) -> Query:
        return self.session.query(self.model).filter(not_deleted(self.model))

    @db_operation
    def get(self, entity_id: int) -> ModelT | None:
        return self._active().filter(self.model.id == entity_id).first()

    @db_operation
    def get_by(self, column: str, value: Any) -> ModelT | None:
        return self._active().filter(getattr(self.model, column) == value).first()

    @db_operation
    def get_many(self, ids: Iterable[int]) -> list[ModelT]:
        ids = list(ids)
        if not ids:
            return []
        return self._active().filter(self.model.id.in_(ids)).all()

    @db_operation
    def exists_with(self, column: str, value: Any, exclude_id: int | None = None) -> bool:
        """True if an active row other than exclude_id has column == value."""
        query = self._active().filter(getattr(self.model, column) == value)
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return query.first() is not None

    @db_operation
    def add(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        self.session.flush()
        return entity

    @db_operation
    def soft_delete(self, entity: ModelT) -> None:
        entity.mark_deleted()
        self.session.flush()

    @db_operation
    def flush(self) -> None:
        self.session.flush()

    @db_operation
    def list_page(
        self,
        page: int,
        page_size: int,
        keyword: str | None = None,
    ) -> tuple[list[ModelT], int]:
        """
        One page of active rows, newest first, plus the total match count.

        keyword is a case-insensitive substring match over search_columns.
        """
        query = self._active()
        if keyword and self.search_columns:
            pattern = f"%{escape_like(keyword.lower())}%"
            query = query.filter(
                or_(
                    *(
                        func.lower(getattr(self.model, column)).like(pattern, escape="\\")
                        for column in self.search_columns
                    )
                )
            )
        total = query.count()
        items = (
            query.order_by(self.model.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total
