import asyncio
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from academics.core import models  # noqa: F401  registers every table on Base.metadata
from academics.core.config import settings
from academics.core.logging import get_logger, setup_logging
from academics.db.session import Base, engine

logger = get_logger(__name__)


def required_tables() -> List[str]:
    """Table names in dependency order (referenced tables first)."""
    return [t.name for t in Base.metadata.sorted_tables]


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """
    Ensure that every table of the academic-records schema exists in the connected database.
    Missing tables are created; existing ones are left untouched. Returns the names created.
    """
    async with db_engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        missing = [name for name in required_tables() if name not in existing]
        if missing:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    if missing:
        logger.info("schema_tables_created", tables=missing)
    else:
        logger.info("schema_up_to_date", tables=len(required_tables()))
    return missing


async def main() -> None:
    setup_logging(settings)
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
