"""
app/services/referral_service.py

Purpose: Referral code management

- Generate a unique code for each new user
- Verify a code supplied at registration
- Record redemptions (idempotent per redeeming user)
- Referral statistics for the code owner
"""

import re
import secrets
import string
from dataclasses import dataclass
from typing import Any, Dict, Optional

from bson import ObjectId

from app.db.mongo import get_referral_codes_collection
from app.core.logging import get_logger, LogContext
from app.models.referral_code import new_referral_code_document, new_usage_entry
from utils.constants import (
    REFERRAL_FALLBACK_PREFIX,
    REFERRAL_MAX_ATTEMPTS,
    REFERRAL_PREFIX_LENGTH,
    REFERRAL_SUFFIX_LENGTH,
)
from utils.validation_utils import normalize_referral_code

logger = get_logger(__name__)

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class ReferrerDetails:
    """Owner of a verified referral code."""
    referrer_id: ObjectId
    referrer_name: str
    referral_code: str


def _name_prefix(name: Optional[str]) -> str:
    letters = re.sub(r"[^A-Za-z]", "", name or "").upper()
    return letters[:REFERRAL_PREFIX_LENGTH] or REFERRAL_FALLBACK_PREFIX


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


async def generate_referral_code(name: str) -> str:
    """
    Generates a referral code that no existing ReferralCode uses.

    Format: up to 4 letters of the name + 4 random characters (e.g. ANNA7K2Q).

    Args:
        name: Name of the user the code is for

    Returns:
        Unused referral code
    """
    codes = get_referral_codes_collection()
    prefix = _name_prefix(name)

    for _ in range(REFERRAL_MAX_ATTEMPTS):
        candidate = prefix + _random_suffix(REFERRAL_SUFFIX_LENGTH)
        if await codes.find_one({"code": candidate}, {"_id": 1}) is None:
            return candidate

    # Prefix space is crowded; the unique index still guards the insert
    candidate = prefix + _random_suffix(REFERRAL_SUFFIX_LENGTH * 2)
    logger.warning(f"Referral code space crowded for prefix {prefix}, using long code")
    return candidate


async def verify_referral_code(code: Optional[str]) -> Optional[ReferrerDetails]:
    """
    Resolves a referral code to its owner.

    Returns:
        ReferrerDetails, or None if the code does not exist
    """
    normalized = normalize_referral_code(code)
    if not normalized:
        return None

    referral = await get_referral_codes_collection().find_one({"code": normalized})
    if not referral:
        logger.info(f"Referral code not found: {normalized}")
        return None

    return ReferrerDetails(
        referrer_id=referral["user_id"],
        referrer_name=referral.get("user_name", ""),
        referral_code=referral["code"],
    )


async def get_referral_code(code: Optional[str]) -> Optional[Dict[str, Any]]:
    normalized = normalize_referral_code(code)
    if not normalized:
        return None
    return await get_referral_codes_collection().find_one({"code": normalized})


async def create_referral_code(code: str, user_id: ObjectId, user_name: str) -> Dict[str, Any]:
    """
    Persists the ReferralCode record of a newly registered user.
    """
    with LogContext(user_id=str(user_id), referral_code=code):
        document = new_referral_code_document(code, user_id, user_name)
        result = await get_referral_codes_collection().insert_one(document)
        document["_id"] = result.inserted_id
        logger.info("Referral code created")
        return document


async def update_referral_usage(code: str, user_id: ObjectId, user_name: Optional[str] = None) -> bool:
    """
    Records that a user redeemed a code.

    A user already listed in the code's usages is not added twice.

    Returns:
        True if a new usage entry was recorded
    """
    with LogContext(user_id=str(user_id), referral_code=code):
        result = await get_referral_codes_collection().update_one(
            {"code": code, "usages.user_id": {"$ne": user_id}},
            {
                "$push": {"usages": new_usage_entry(user_id, user_name)},
                "$inc": {"usage_count": 1},
            }
        )

        recorded = result.modified_count > 0
        if recorded:
            logger.info("Referral usage recorded")
        else:
            logger.warning("Referral usage not recorded (unknown code or repeat redemption)")

        return recorded


async def delete_referral_codes_for_user(user_id: ObjectId) -> int:
    """
    Removes the codes owned by a user. Usage entries the user left on
    other codes are kept as history.

    Returns:
        Number of deleted codes
    """
    result = await get_referral_codes_collection().delete_many({"user_id": user_id})
    if result.deleted_count:
        logger.info(f"Deleted {result.deleted_count} referral code(s) of user {user_id}")
    return result.deleted_count


async def get_referral_stats(user_id: ObjectId) -> Optional[Dict[str, Any]]:
    """
    Returns the ReferralCode record owned by a user, or None.
    """
    return await get_referral_codes_collection().find_one({"user_id": user_id})
