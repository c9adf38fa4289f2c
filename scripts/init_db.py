"""
Database initialization script

Creates collections and indexes, and optionally grants the admin role:
    python scripts/init_db.py
    python scripts/init_db.py --promote admin@example.com
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables before settings are read
load_dotenv()

from app.core.config import settings  # noqa: E402
from app.core.logging import setup_logging, get_logger  # noqa: E402
from app.db.indexes import create_indexes  # noqa: E402
from app.db.mongo import (  # noqa: E402
    close_mongo_connection,
    connect_to_mongo,
    get_database,
    get_users_collection,
    REFERRAL_CODES_COLLECTION,
    USERS_COLLECTION,
)
from utils.validation_utils import normalize_email  # noqa: E402

setup_logging()
logger = get_logger("scripts.init_db")


async def ensure_collections():
    db = get_database()
    existing = await db.list_collection_names()
    for name in (USERS_COLLECTION, REFERRAL_CODES_COLLECTION):
        if name not in existing:
            await db.create_collection(name)
            logger.info(f"Created collection '{name}'")
        else:
            logger.info(f"Collection '{name}' already exists")


async def promote(email: str) -> bool:
    result = await get_users_collection().update_one(
        {"email": normalize_email(email)},
        {"$set": {"role": settings.ADMIN_ROLE}}
    )
    if result.matched_count == 0:
        logger.error(f"No user with email {email}")
        return False
    logger.info(f"{email} now has role {settings.ADMIN_ROLE}")
    return True


async def main(args) -> int:
    await connect_to_mongo()
    try:
        await ensure_collections()
        await create_indexes()
        if args.promote and not await promote(args.promote):
            return 1
    finally:
        await close_mongo_connection()
    logger.info("Database initialization complete")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the accounts database")
    parser.add_argument("--promote", metavar="EMAIL", help="grant the admin role to this user")
    sys.exit(asyncio.run(main(parser.parse_args())))
