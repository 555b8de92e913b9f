"""Create the account tables on a fresh database.

Standalone script (not an Alembic migration) for stores that are not
managed by Alembic, e.g. a local development database. Existing tables
are left untouched.

Usage:
    cd backend && python -m scripts.init_db
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


async def main() -> None:
    """CLI entry point: create the schema on the configured database."""
    from fost_accounts.core.config import settings
    from fost_accounts.core.database import engine, init_db

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info(
        "Initialising account schema on %s:%d/%s",
        settings.database_host,
        settings.database_port,
        settings.database_name,
    )
    try:
        await init_db(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
