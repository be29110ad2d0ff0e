"""Create the catalog tables if they do not exist yet."""

import asyncio
import logging

from cinesync.database import engine
from cinesync.models import Base

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")


def main() -> None:
    asyncio.run(init_db())


if __name__ == "__main__":
    main()
