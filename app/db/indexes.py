"""
app/db/indexes.py

Purpose: Database index management

- Unique indexes backing the account invariants (email, PAN card, referral code)
- Performance indexes for admin listing and referral lookups
"""

from pymongo import ASCENDING, DESCENDING

from app.db.mongo import get_users_collection, get_referral_codes_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        referral_codes = get_referral_codes_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        # Email is optional: sparse so users without one don't collide
        await users.create_index(
            [("email", ASCENDING)], unique=True, sparse=True, name="email_unique"
        )
        logger.debug("Created unique sparse index on users.email")

        await users.create_index([("pan_card", ASCENDING)], unique=True, name="pan_card_unique")
        logger.debug("Created unique index on users.pan_card")

        await users.create_index(
            [("referral_code", ASCENDING)], unique=True, name="user_referral_code_unique"
        )
        logger.debug("Created unique index on users.referral_code")

        await users.create_index([("referred_by", ASCENDING)], name="referred_by_idx")
        logger.debug("Created index on users.referred_by")

        # Admin listing, newest first
        await users.create_index(
            [("created_at", DESCENDING), ("_id", DESCENDING)], name="created_at_idx"
        )
        logger.debug("Created index on users.created_at")

        # ==============================================
        # REFERRAL CODES COLLECTION INDEXES
        # ==============================================

        await referral_codes.create_index(
            [("code", ASCENDING)], unique=True, name="code_unique"
        )
        logger.debug("Created unique index on referral_codes.code")

        await referral_codes.create_index([("user_id", ASCENDING)], name="owner_idx")
        logger.debug("Created index on referral_codes.user_id")

        logger.info("All database indexes created successfully")

        user_indexes = await users.index_information()
        referral_indexes = await referral_codes.index_information()

        logger.info(
            f"Index summary: Users={len(user_indexes)}, "
            f"ReferralCodes={len(referral_indexes)}"
        )

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
