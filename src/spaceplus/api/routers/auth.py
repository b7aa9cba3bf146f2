"""Admin authentication endpoints.

Login issues a database-backed session whose raw token is set as the
HTTP-only ``admin_token`` cookie. Logout revokes the session and clears the
cookie.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from spaceplus.api.dependencies import DbSession
from spaceplus.api.middleware.auth import (
    AuthenticatedUser,
    get_client_ip,
    require_authenticated_user,
)
from spaceplus.api.middleware.errors import AuthenticationError
from spaceplus.api.schemas.auth import AdminUserInfo, LoginRequest, LoginResponse
from spaceplus.api.schemas.common import ApiResponse
from spaceplus.core.config import AuthSettings
from spaceplus.services.session import DeviceInfo, InvalidCredentialsError, SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_settings(request: Request) -> AuthSettings:
    settings = request.app.state.settings
    return settings.auth if settings else AuthSettings()


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: DbSession,
) -> ApiResponse[LoginResponse]:
    """Sign in with email and password.

    A wrong email or password returns 401 and sets no cookie.
    A successful login also deletes expired sessions.
    """
    auth = _auth_settings(request)
    service = SessionService(db, session_duration_hours=auth.session_duration_hours)

    try:
        admin = await service.authenticate_admin(body.email, body.password)
    except InvalidCredentialsError as e:
        raise AuthenticationError("Invalid email or password") from e

    # Expired sessions are swept on each successful login
    await service.cleanup_expired_sessions()
    token = await service.create_session(
        admin.admin_user_id,
        device_info=DeviceInfo(
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        ),
    )
    await db.commit()

    response.set_cookie(
        key=auth.cookie_name,
        value=token.access_token,
        httponly=True,
        samesite="strict",
        secure=auth.cookie_secure,
        max_age=auth.session_duration_hours * 3600,
        path="/",
    )
    logger.info("Admin %s signed in (session %s)", admin.admin_user_id, token.session_id)

    return ApiResponse(
        data=LoginResponse(
            user=AdminUserInfo(
                id=admin.admin_user_id,
                name=admin.name,
                email=admin.email,
                role=admin.role.value,
            )
        ),
        message="Login successful",
    )


@router.post("/logout")
async def logout(request: Request, response: Response, db: DbSession) -> ApiResponse[None]:
    """Revoke the current session, if any, and clear the cookie."""
    auth = _auth_settings(request)
    token = request.cookies.get(auth.cookie_name)
    if token:
        revoked = await SessionService(db).revoke_token(token, reason="logout")
        await db.commit()
        if revoked:
            logger.info("Admin session revoked on logout")

    response.delete_cookie(auth.cookie_name, path="/")
    return ApiResponse(message="Logged out")


@router.get("/me")
async def me(
    user: Annotated[AuthenticatedUser, Depends(require_authenticated_user)],
) -> ApiResponse[AdminUserInfo]:
    return ApiResponse(
        data=AdminUserInfo(
            id=user.admin_user_id,
            name=user.name,
            email=user.email,
            role=user.role,
        )
    )
