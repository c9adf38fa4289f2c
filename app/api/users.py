"""
app/api/users.py

Purpose: User account endpoints

- Registration (multipart, optional avatar) and login
- Session introspection and logout
- Profile, avatar, address and password maintenance
- User lookup, admin listing and deletion
- Referral code application and statistics

Handlers raise typed errors; the centralized handlers in app/core/errors.py
turn them into responses.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.api.deps import get_current_user, is_admin, require_admin
from app.core.exceptions import AuthError, NotFoundError, ShopAccountsError, UnexpectedError, ValidationError
from app.core.logging import get_logger
from app.schemas.referral import ApplyReferralRequest, ReferralStatsOut, ReferrerOut
from app.schemas.user import (
    AddressRequest,
    LoginRequest,
    UpdatePasswordRequest,
    UpdateUserInfoRequest,
    serialize_public_user,
    serialize_user,
)
from app.services import referral_service, upload_service, user_service
from app.services.session_service import clear_session_cookie, send_token
from utils import constants

logger = get_logger(__name__)
router = APIRouter()


def _ok(status_code: int = 200, **payload: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": True, **payload})


# ============================================================================
# REGISTRATION / LOGIN
# ============================================================================

@router.post("/create-user")
async def create_user(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    phone_number: Optional[str] = Form(None, alias="phoneNumber"),
    pan_card: Optional[str] = Form(None, alias="panCard"),
    gender: Optional[str] = Form(None),
    input_referral_code: Optional[str] = Form(None, alias="inputReferralCode"),
    file: Optional[UploadFile] = File(None),
):
    """
    Registers a user and issues a session token.

    Any uploaded avatar is deleted again when registration fails.
    """
    avatar = None
    try:
        if upload_service.has_upload(file):
            avatar = await upload_service.save_upload(file)

        user, referrer = await user_service.register_user(
            name=name,
            password=password,
            phone_number=phone_number,
            pan_card=pan_card,
            gender=gender,
            email=email,
            input_referral_code=input_referral_code,
            avatar=avatar,
        )
    except ShopAccountsError:
        upload_service.discard_file(avatar)
        raise
    except Exception as e:
        upload_service.discard_file(avatar)
        logger.error(f"Unexpected registration failure: {e}", exc_info=True)
        raise UnexpectedError(str(e), status_code=400) from e

    referrer_out = None
    if referrer:
        referrer_out = ReferrerOut(
            name=referrer.referrer_name,
            referral_code=referrer.referral_code,
        ).model_dump(by_alias=True)

    return send_token(user, 201, extra={"referrer": referrer_out})


@router.post("/login-user")
async def login_user(request: LoginRequest):
    user = await user_service.authenticate(request.email, request.password)
    return send_token(user, 201)


# ============================================================================
# SESSION
# ============================================================================

@router.get("/getuser")
async def get_user(user: Dict[str, Any] = Depends(get_current_user)):
    return _ok(200, user=serialize_user(user))


@router.get("/logout")
async def logout():
    """
    Clears the session cookie. Tokens are not revoked server-side.
    """
    response = _ok(201, message=constants.MSG_LOGOUT)
    clear_session_cookie(response)
    return response


# ============================================================================
# PROFILE
# ============================================================================

@router.put("/update-user-info")
async def update_user_info(
    request: UpdateUserInfoRequest,
    user: Dict[str, Any] = Depends(get_current_user),
):
    updated = await user_service.update_user_info(
        user["_id"],
        password=request.password,
        email=request.email,
        name=request.name,
        phone_number=request.phone_number,
    )
    return _ok(201, user=serialize_user(updated))


@router.put("/update-avatar")
async def update_avatar(
    image: Optional[UploadFile] = File(None),
    user: Dict[str, Any] = Depends(get_current_user),
):
    if not upload_service.has_upload(image):
        raise ValidationError(constants.MSG_AVATAR_REQUIRED)

    filename = await upload_service.save_upload(image)
    try:
        updated = await user_service.update_avatar(user["_id"], filename)
    except Exception:
        upload_service.discard_file(filename)
        raise

    return _ok(200, user=serialize_user(updated))


@router.put("/update-user-addresses")
async def update_user_addresses(
    request: AddressRequest,
    user: Dict[str, Any] = Depends(get_current_user),
):
    updated = await user_service.upsert_address(user["_id"], request.id, request.stored_fields())
    return _ok(200, user=serialize_user(updated))


@router.delete("/delete-user-address/{address_id}")
async def delete_user_address(
    address_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
):
    updated = await user_service.delete_address(user["_id"], address_id)
    return _ok(200, user=serialize_user(updated))


@router.put("/update-user-password")
async def update_user_password(
    request: UpdatePasswordRequest,
    user: Dict[str, Any] = Depends(get_current_user),
):
    await user_service.change_password(
        user["_id"],
        old_password=request.old_password,
        new_password=request.new_password,
        confirm_password=request.confirm_password,
    )
    return _ok(200, message=constants.MSG_PASSWORD_UPDATED)


# ============================================================================
# LOOKUP / ADMIN
# ============================================================================

@router.get("/user-info/{user_id}")
async def user_info(
    user_id: str,
    viewer: Dict[str, Any] = Depends(get_current_user),
):
    """
    Full record for yourself (or for admins); public fields otherwise.
    """
    user = await user_service.get_user_or_none(user_id)
    if not user:
        raise NotFoundError(constants.MSG_USER_NOT_FOUND)

    if user["_id"] == viewer["_id"] or is_admin(viewer):
        return _ok(201, user=serialize_user(user))
    return _ok(201, user=serialize_public_user(user))


@router.get("/admin-all-users")
async def admin_all_users(admin: Dict[str, Any] = Depends(require_admin)):
    users = await user_service.list_users()
    return _ok(201, users=[serialize_user(u) for u in users])


@router.delete("/delete-user/{user_id}")
async def delete_user(
    user_id: str,
    admin: Dict[str, Any] = Depends(require_admin),
):
    await user_service.delete_user(user_id)
    logger.info(f"Admin {admin['_id']} deleted user {user_id}")
    return _ok(201, message=constants.MSG_USER_DELETED)


# ============================================================================
# REFERRALS
# ============================================================================

@router.post("/apply-referral")
async def apply_referral(
    request: ApplyReferralRequest,
    user: Dict[str, Any] = Depends(get_current_user),
):
    """
    Applies someone else's referral code to the session user, once.
    """
    if request.user_id and request.user_id != str(user["_id"]):
        raise AuthError(constants.MSG_REFERRAL_OTHER_ACCOUNT)

    await user_service.apply_referral(request.referral_code, user["_id"])
    return _ok(200, message=constants.MSG_REFERRAL_APPLIED)


@router.get("/referral-stats")
async def referral_stats(user: Dict[str, Any] = Depends(get_current_user)):
    referral = await referral_service.get_referral_stats(user["_id"])
    if not referral:
        raise NotFoundError(constants.MSG_REFERRAL_NOT_FOUND)

    stats = ReferralStatsOut.from_document(referral)
    return _ok(200, referral=stats.model_dump(by_alias=True, mode="json"))
