"""
app/services/session_service.py

Purpose: Session token issuance

- Issues a signed token for an authenticated user
- Sets / clears the HTTP-only session cookie
- Resolves the session token of an incoming request
"""

from typing import Any, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.security import create_access_token, decode_access_token
from app.schemas.user import serialize_user
from utils.time_utils import cookie_expiry, cookie_max_age


def _cookie_options() -> Dict[str, Any]:
    # Cross-site frontends need SameSite=None, which browsers only accept with Secure
    if settings.is_production:
        return {"httponly": True, "secure": True, "samesite": "none", "path": "/"}
    return {"httponly": True, "secure": False, "samesite": "lax", "path": "/"}


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=cookie_max_age(settings.JWT_EXPIRES_DAYS),
        expires=cookie_expiry(settings.JWT_EXPIRES_DAYS),
        **_cookie_options(),
    )


def clear_session_cookie(response: Response) -> None:
    """Replaces the session cookie with an empty, already expired one."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME, **_cookie_options())


def send_token(user: Dict[str, Any], status_code: int = 201, extra: Optional[Dict[str, Any]] = None) -> JSONResponse:
    """
    Builds the login/registration response: user, token and session cookie.

    Args:
        user: Stored user document
        status_code: HTTP status of the response
        extra: Additional top-level response fields

    Returns:
        JSONResponse with the session cookie set
    """
    token = create_access_token(str(user["_id"]))
    content = {"success": True, "user": serialize_user(user)}
    if extra:
        content.update(extra)
    content["token"] = token

    response = JSONResponse(status_code=status_code, content=content)
    set_session_cookie(response, token)
    return response


def session_user_id(request: Request) -> Optional[str]:
    """
    Returns the user id carried by the request's session cookie, if valid.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload:
        return None
    return payload.get("sub")
