"""
app/services/user_service.py

Purpose: User account management

- Registration with referral attribution
- Login and session user lookup
- Profile, avatar, address and password updates
- Admin listing and deletion
- Applying a referral code to an existing account
"""

from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.db.mongo import get_users_collection
from app.core.config import settings
from app.core.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.core.security import hash_password, verify_password
from app.models.user import new_address_document, new_user_document
from app.services import referral_service, upload_service
from app.services.referral_service import ReferrerDetails
from utils import constants
from utils.validation_utils import (
    normalize_email,
    normalize_pan_card,
    sanitize_input,
    to_object_id,
)

logger = get_logger(__name__)

# Never load password hashes unless a password is being checked
WITHOUT_PASSWORD = {"password": 0}


def _conflict_from_duplicate(error: DuplicateKeyError) -> ConflictError:
    """
    Maps a unique index violation (lost race with a concurrent write) to a ConflictError.
    """
    key_pattern = (error.details or {}).get("keyPattern") or {}
    message = str(error)
    if "email" in key_pattern or "email" in message:
        return ConflictError(constants.MSG_EMAIL_EXISTS)
    if "pan_card" in key_pattern or "pan_card" in message:
        return ConflictError(constants.MSG_PAN_EXISTS)
    return ConflictError("Duplicate value")


async def _find_user(user_id, with_password: bool = False) -> Optional[Dict[str, Any]]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    projection = None if with_password else WITHOUT_PASSWORD
    return await get_users_collection().find_one({"_id": oid}, projection)


# ============================================================================
# REGISTRATION
# ============================================================================

async def register_user(
    name: Optional[str],
    password: Optional[str],
    phone_number: Optional[str],
    pan_card: Optional[str],
    gender: Optional[str],
    email: Optional[str] = None,
    input_referral_code: Optional[str] = None,
    avatar: Optional[str] = None,
) -> Tuple[Dict[str, Any], Optional[ReferrerDetails]]:
    """
    Creates a user, their referral code and, when a valid code was supplied,
    the usage entry on the referrer's code.

    If a step after the user insert fails, the user and their referral code
    are removed again before the error propagates.

    Args:
        avatar: Stored upload filename; the default avatar is used when None

    Returns:
        (created user document, referrer details or None)

    Raises:
        ValidationError: Missing fields or unknown referral code
        ConflictError: Email or PAN card already registered
    """
    name = sanitize_input(name or "", max_length=100)
    phone_number = (phone_number or "").strip()
    gender = (gender or "").strip()

    missing = [
        field for field, value in (
            ("name", name),
            ("password", password),
            ("phoneNumber", phone_number),
            ("panCard", (pan_card or "").strip()),
            ("gender", gender),
        )
        if not value
    ]
    if missing:
        raise ValidationError(constants.MSG_MISSING_REQUIRED_FIELDS, details={"missing": missing})

    referrer = None
    if input_referral_code:
        referrer = await referral_service.verify_referral_code(input_referral_code)
        if not referrer:
            raise ValidationError(constants.MSG_INVALID_REFERRAL_CODE)

    new_code = await referral_service.generate_referral_code(name)

    users = get_users_collection()

    email = normalize_email(email)
    if email:
        if await users.find_one({"email": email}, {"_id": 1}):
            logger.warning("Registration rejected: email already exists")
            raise ConflictError(constants.MSG_EMAIL_EXISTS)

    pan_card = normalize_pan_card(pan_card)
    if await users.find_one({"pan_card": pan_card}, {"_id": 1}):
        logger.warning("Registration rejected: PAN card already registered")
        raise ConflictError(constants.MSG_PAN_EXISTS)

    user = new_user_document(
        name=name,
        password_hash=hash_password(password),
        phone_number=phone_number,
        pan_card=pan_card,
        gender=gender,
        avatar=avatar or settings.DEFAULT_AVATAR,
        referral_code=new_code,
        email=email,
        referred_by=referrer.referrer_id if referrer else None,
    )

    try:
        result = await users.insert_one(user)
    except DuplicateKeyError as e:
        raise _conflict_from_duplicate(e) from e
    user["_id"] = result.inserted_id

    with LogContext(user_id=str(user["_id"]), referral_code=new_code):
        try:
            await referral_service.create_referral_code(new_code, user["_id"], name)
            if referrer:
                await referral_service.update_referral_usage(referrer.referral_code, user["_id"], name)
        except Exception:
            logger.error("Registration failed after user insert, rolling back", exc_info=True)
            await _rollback_registration(user["_id"])
            raise

        logger.info(
            "User registered" + (f" (referred by {referrer.referrer_id})" if referrer else "")
        )

    user.pop("password", None)
    return user, referrer


async def _rollback_registration(user_id: ObjectId) -> None:
    """
    Compensates a partially completed registration.
    """
    try:
        await referral_service.delete_referral_codes_for_user(user_id)
        await get_users_collection().delete_one({"_id": user_id})
        logger.info(f"Rolled back registration of user {user_id}")
    except Exception as e:
        logger.critical(f"Rollback of user {user_id} failed, manual cleanup needed: {e}")


# ============================================================================
# LOGIN / SESSION
# ============================================================================

async def authenticate(email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    """
    Verifies login credentials.

    Returns:
        User document (without password)

    Raises:
        ValidationError: email or password missing
        NotFoundError: no user with that email
        AuthError: wrong password
    """
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError(constants.MSG_MISSING_LOGIN_FIELDS)

    user = await get_users_collection().find_one({"email": email})
    if not user:
        raise NotFoundError(constants.MSG_LOGIN_USER_NOT_FOUND)

    if not verify_password(password, user.get("password")):
        logger.warning(f"Failed login for user {user['_id']}")
        raise AuthError(constants.MSG_WRONG_CREDENTIALS)

    logger.info(f"User {user['_id']} logged in")
    user.pop("password", None)
    return user


async def get_user(user_id) -> Dict[str, Any]:
    """
    Raises:
        NotFoundError: if the id does not resolve
    """
    user = await _find_user(user_id)
    if not user:
        raise NotFoundError(constants.MSG_USER_MISSING)
    return user


async def get_user_or_none(user_id) -> Optional[Dict[str, Any]]:
    return await _find_user(user_id)


# ============================================================================
# PROFILE
# ============================================================================

async def update_user_info(
    user_id,
    password: Optional[str],
    email: Optional[str] = None,
    name: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Updates name/email/phone after re-verifying the current password.

    The account is the session user's; email is a field to change,
    never a lookup key.

    Raises:
        NotFoundError: session user no longer exists
        AuthError: password does not match
        ConflictError: new email belongs to another account
    """
    with LogContext(user_id=str(user_id)):
        user = await _find_user(user_id, with_password=True)
        if not user:
            raise NotFoundError(constants.MSG_USER_NOT_FOUND)

        if not verify_password(password, user.get("password")):
            logger.warning("Profile update rejected: wrong password")
            raise AuthError(constants.MSG_WRONG_CREDENTIALS)

        changes: Dict[str, Any] = {}
        if name is not None and sanitize_input(name, max_length=100):
            changes["name"] = sanitize_input(name, max_length=100)
        if phone_number is not None and phone_number.strip():
            changes["phone_number"] = phone_number.strip()

        new_email = normalize_email(email)
        if new_email and new_email != user.get("email"):
            owner = await get_users_collection().find_one(
                {"email": new_email, "_id": {"$ne": user["_id"]}}, {"_id": 1}
            )
            if owner:
                logger.warning("Profile update rejected: email belongs to another account")
                raise ConflictError(constants.MSG_EMAIL_EXISTS)
            changes["email"] = new_email

        if not changes:
            user.pop("password", None)
            return user

        try:
            updated = await get_users_collection().find_one_and_update(
                {"_id": user["_id"]},
                {"$set": changes},
                projection=WITHOUT_PASSWORD,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise _conflict_from_duplicate(e) from e

        logger.info(f"Profile updated: {', '.join(sorted(changes))}")
        return updated


async def update_avatar(user_id, filename: str) -> Dict[str, Any]:
    """
    Points the user's avatar at a newly stored file and deletes the old one.

    A missing previous file is logged and ignored.

    Returns:
        Updated user document
    """
    with LogContext(user_id=str(user_id)):
        user = await _find_user(user_id)
        if not user:
            raise NotFoundError(constants.MSG_USER_NOT_FOUND)

        updated = await get_users_collection().find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"avatar": filename}},
            projection=WITHOUT_PASSWORD,
            return_document=ReturnDocument.AFTER,
        )

        previous = user.get("avatar")
        if previous and previous != filename:
            upload_service.discard_file(previous)

        logger.info("Avatar updated")
        return updated


async def upsert_address(user_id, address_id: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Adds an address, or merges fields into the address with `address_id`.

    At most one address per address_type: another address (different id)
    with the same type is a conflict.

    Args:
        fields: Supplied address fields keyed by stored name

    Returns:
        Updated user document
    """
    with LogContext(user_id=str(user_id)):
        user = await _find_user(user_id)
        if not user:
            raise NotFoundError(constants.MSG_USER_NOT_FOUND)

        addresses: List[Dict[str, Any]] = user.get("addresses", [])
        oid = to_object_id(address_id)
        address_type = fields.get("address_type")

        if address_type:
            same_type = next(
                (a for a in addresses if a.get("address_type") == address_type and a.get("_id") != oid),
                None
            )
            if same_type:
                raise ConflictError(constants.MSG_ADDRESS_EXISTS.format(address_type=address_type))

        existing = next((a for a in addresses if oid is not None and a.get("_id") == oid), None)
        users = get_users_collection()

        if existing:
            if fields:
                query: Dict[str, Any] = {"_id": user["_id"], "addresses._id": oid}
                if address_type:
                    # Filter rejects the update if another address took this type meanwhile
                    query["$nor"] = [{
                        "addresses": {"$elemMatch": {"address_type": address_type, "_id": {"$ne": oid}}}
                    }]
                result = await users.update_one(
                    query,
                    {"$set": {f"addresses.$.{key}": value for key, value in fields.items()}}
                )
                if result.matched_count == 0:
                    if address_type:
                        raise ConflictError(constants.MSG_ADDRESS_EXISTS.format(address_type=address_type))
                    raise NotFoundError(constants.MSG_ADDRESS_NOT_FOUND)
            logger.info(f"Address {oid} updated")
        else:
            if not address_type:
                raise ValidationError(constants.MSG_ADDRESS_TYPE_REQUIRED)

            new_address = new_address_document(fields)
            # Filter rejects the push if a same-type address appeared meanwhile
            result = await users.update_one(
                {"_id": user["_id"], "addresses.address_type": {"$ne": address_type}},
                {"$push": {"addresses": new_address}}
            )
            if result.modified_count == 0:
                raise ConflictError(constants.MSG_ADDRESS_EXISTS.format(address_type=address_type))
            logger.info(f"Address {new_address['_id']} added ({address_type})")

        return await get_user(user["_id"])


async def delete_address(user_id, address_id: str) -> Dict[str, Any]:
    """
    Removes an address by id. Unknown ids are a no-op.

    Returns:
        Updated user document
    """
    user = await get_user(user_id)

    oid = to_object_id(address_id)
    if oid is not None:
        result = await get_users_collection().update_one(
            {"_id": user["_id"]},
            {"$pull": {"addresses": {"_id": oid}}}
        )
        if result.modified_count:
            logger.info(f"Address {oid} deleted from user {user['_id']}")

    return await get_user(user["_id"])


async def change_password(
    user_id,
    old_password: Optional[str],
    new_password: Optional[str],
    confirm_password: Optional[str],
) -> None:
    """
    Replaces the password after checking the old one and the confirmation.

    Raises:
        AuthError: old password incorrect
        ValidationError: new password missing or confirmation mismatch
    """
    with LogContext(user_id=str(user_id)):
        user = await _find_user(user_id, with_password=True)
        if not user:
            raise NotFoundError(constants.MSG_USER_NOT_FOUND)

        if not verify_password(old_password, user.get("password")):
            logger.warning("Password change rejected: old password incorrect")
            raise AuthError(constants.MSG_OLD_PASSWORD_INCORRECT)

        if new_password != confirm_password:
            raise ValidationError(constants.MSG_PASSWORD_MISMATCH)

        if not new_password:
            raise ValidationError(constants.MSG_NEW_PASSWORD_REQUIRED)

        await get_users_collection().update_one(
            {"_id": user["_id"]},
            {"$set": {"password": hash_password(new_password)}}
        )
        logger.info("Password changed")


# ============================================================================
# ADMIN
# ============================================================================

async def list_users() -> List[Dict[str, Any]]:
    """
    Returns all users, newest first.
    """
    cursor = get_users_collection().find(
        {},
        WITHOUT_PASSWORD,
        sort=[("created_at", DESCENDING), ("_id", DESCENDING)]
    )
    return await cursor.to_list(length=None)


async def delete_user(user_id) -> None:
    """
    Deletes a user together with their referral code and avatar file.

    Raises:
        NotFoundError: no user with that id
    """
    user = await _find_user(user_id)
    if not user:
        raise NotFoundError(constants.MSG_ADMIN_USER_NOT_FOUND)

    await get_users_collection().delete_one({"_id": user["_id"]})
    await referral_service.delete_referral_codes_for_user(user["_id"])
    upload_service.discard_file(user.get("avatar"))

    logger.info(f"User {user['_id']} deleted")


# ============================================================================
# REFERRALS
# ============================================================================

async def apply_referral(referral_code: Optional[str], user_id) -> None:
    """
    Links an existing user to the owner of `referral_code`, once.

    The referred_by write is conditional on it still being unset, so
    concurrent applications cannot both succeed. If recording the usage
    fails the link is reverted.

    Raises:
        NotFoundError: unknown code or user
        ValidationError: own code, or a referral was already applied
    """
    referral = await referral_service.get_referral_code(referral_code)
    if not referral:
        raise NotFoundError(constants.MSG_REFERRAL_NOT_FOUND)

    oid = to_object_id(user_id)
    if oid is not None and referral["user_id"] == oid:
        raise ValidationError(constants.MSG_OWN_REFERRAL_CODE)

    user = await _find_user(oid)
    if not user:
        raise NotFoundError(constants.MSG_USER_NOT_FOUND)

    if user.get("referred_by"):
        raise ValidationError(constants.MSG_REFERRAL_ALREADY_USED)

    with LogContext(user_id=str(oid), referral_code=referral["code"]):
        users = get_users_collection()
        result = await users.update_one(
            {"_id": oid, "referred_by": None},
            {"$set": {"referred_by": referral["user_id"]}}
        )
        if result.modified_count == 0:
            raise ValidationError(constants.MSG_REFERRAL_ALREADY_USED)

        try:
            await referral_service.update_referral_usage(referral["code"], oid, user.get("name"))
        except Exception:
            logger.error("Recording referral usage failed, reverting referred_by", exc_info=True)
            await users.update_one(
                {"_id": oid, "referred_by": referral["user_id"]},
                {"$set": {"referred_by": None}}
            )
            raise

        logger.info(f"Referral applied (referrer {referral['user_id']})")
