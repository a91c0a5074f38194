import asyncio
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Callable, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from app.core.database.engine import SessionLocal
from app.core.errors import PlaceServiceError, StorageError, TransactionError
from app.utils import get_logger

log = get_logger(__name__)


class TransactionScope:
    """
    A single unit of work on its own session.

    Every write that has to be atomic with another write is given the scope explicitly; nothing written through
    `scope.db` is visible to other sessions until `commit()`.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._transaction: Optional[AsyncSessionTransaction] = None

    @property
    def is_active(self) -> bool:
        return self._transaction is not None and self._transaction.is_active

    async def begin(self) -> "TransactionScope":
        if self._transaction is not None:
            raise RuntimeError("Transaction scope already started")
        self._transaction = await self.db.begin()
        return self

    async def commit(self) -> None:
        if not self.is_active:
            raise RuntimeError("Transaction scope is not active")
        await self._transaction.commit()  # type: ignore
        self._transaction = None

    async def abort(self) -> None:
        """Roll back everything written through this scope. Safe to call more than once."""
        transaction, self._transaction = self._transaction, None
        if transaction is not None:
            await transaction.rollback()


@asynccontextmanager
async def transaction_scope(
    session_factory: Callable[[], AsyncSession] = SessionLocal,
) -> AsyncIterator[TransactionScope]:
    """
    Open a scope, commit it when the block exits normally and abort it otherwise.

    Service errors raised inside the block are re-raised as is after the abort, anything else (database errors,
    failed commits) becomes a TransactionError. Either way nothing from the block has been committed.
    """
    async with session_factory() as db:
        scope = TransactionScope(db)
        await scope.begin()
        try:
            yield scope
            await scope.commit()
        except (PlaceServiceError, asyncio.CancelledError):
            await scope.abort()
            raise
        except Exception as e:
            log.exception("Aborting transaction")
            await scope.abort()
            raise TransactionError() from e


@contextmanager
def storage_errors() -> Iterator[None]:
    """Report database failures outside a transaction scope (reads, pool timeouts) as a StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        log.exception("Storage error")
        raise StorageError() from e
