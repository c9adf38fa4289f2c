"""
app/api/deps.py

Purpose: Route dependencies

- Resolves the session user from the token cookie
- Role check for admin routes
"""

from typing import Any, Dict

from fastapi import Depends, Request

from app.core.config import settings
from app.core.exceptions import AuthenticationRequiredError, ForbiddenError, NotFoundError
from app.services import user_service
from app.services.session_service import session_user_id
from utils import constants


async def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Returns the authenticated user's document.

    Raises:
        AuthenticationRequiredError: no cookie, or an invalid/expired token
        NotFoundError: the token's user no longer exists
    """
    user_id = session_user_id(request)
    if not user_id:
        raise AuthenticationRequiredError(constants.MSG_LOGIN_REQUIRED)

    user = await user_service.get_user_or_none(user_id)
    if not user:
        raise NotFoundError(constants.MSG_USER_MISSING)

    request.state.user = user
    return user


def is_admin(user: Dict[str, Any]) -> bool:
    return user.get("role") == settings.ADMIN_ROLE


async def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not is_admin(user):
        raise ForbiddenError(constants.MSG_ROLE_FORBIDDEN.format(role=user.get("role")))
    return user
