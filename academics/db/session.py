from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from academics.core.config import settings
from academics.core.exceptions import ConflictError, ServiceError, TransactionAbortedError
from academics.core.logging import get_logger

logger = get_logger(__name__)

# pool_pre_ping: check connection is alive before use (avoids "connection is closed" errors
# when DB or network closed idle connections).
# pool_recycle: discard connections after this many seconds to avoid stale connections.
engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    future=True,
    pool_pre_ping=True,
    pool_recycle=300,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    conflict_message: Optional[str] = None,
    **conflict_details,
) -> AsyncIterator[AsyncSession]:
    """Run the enclosed reads and writes as one unit: commit once, or roll back and re-raise.

    Unique-constraint violations surface as ConflictError (using conflict_message when given),
    other storage failures as TransactionAbortedError. Domain errors raised inside the block
    are re-raised flagged as rolled back.
    """
    try:
        yield db
        await db.commit()
    except ServiceError as e:
        await db.rollback()
        logger.warning("transaction_rolled_back", reason=e.code, error=e.message)
        raise e.mark_rolled_back()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("transaction_rolled_back", reason="integrity", error=str(e.orig))
        raise ConflictError(
            conflict_message or "The change violates a uniqueness rule",
            **conflict_details,
        ).mark_rolled_back() from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("transaction_aborted", error=str(e))
        raise TransactionAbortedError() from e
