"""Drop and recreate every table; ``--seed`` also loads the demo data."""
import argparse
import asyncio
import logging

from core.database import engine
from models.base import Base
# register every table on Base.metadata
from models import battle, knight, profile, user  # noqa: F401
from utils.seed_db import seed

log = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


async def async_reset_database(with_seed: bool = False):
    async with engine.begin() as conn:
        log.info("Dropping %d tables...", len(Base.metadata.tables))
        await conn.run_sync(Base.metadata.drop_all, checkfirst=True)
        log.info("Recreating tables...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    log.info("Knight battles schema has been reset.")

    if with_seed:
        await seed()
    await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="load demo knights, members and battles")
    args = parser.parse_args()
    asyncio.run(async_reset_database(with_seed=args.seed))


if __name__ == "__main__":
    main()
