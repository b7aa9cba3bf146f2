"""Admin session authentication.

SessionAuthMiddleware resolves the ``admin_token`` cookie (or a Bearer token)
to an AuthenticatedUser and stores it in the request context. It never
rejects a request itself; route dependencies (require_authenticated_user and
require_admin_user) decide what is protected.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Depends, Request
from starlette.middleware.base import BaseHTTPMiddleware

from spaceplus.api.middleware.errors import AuthenticationError, AuthorizationError
from spaceplus.db.models import AdminRole, AdminUser

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from contextlib import AbstractAsyncContextManager
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession
    from starlette.responses import Response

logger = logging.getLogger(__name__)

current_user_ctx: ContextVar[AuthenticatedUser | None] = ContextVar("current_user", default=None)

DEFAULT_COOKIE_NAME = "admin_token"


@dataclass
class AuthenticatedUser:
    """The admin behind the current request."""

    admin_user_id: UUID
    email: str
    name: str
    role: str
    session_id: UUID | None = None
    is_active: bool = True
    ip_address: str | None = None
    user_agent: str | None = None

    def has_role(self, *roles: str) -> bool:
        return self.role in roles

    @property
    def is_admin(self) -> bool:
        return self.role == AdminRole.ADMIN.value


def get_current_user() -> AuthenticatedUser | None:
    return current_user_ctx.get()


def set_current_user(user: AuthenticatedUser | None) -> None:
    current_user_ctx.set(user)


def get_client_ip(request: Request) -> str | None:
    """Client address, honoring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Validates session tokens and sets the user context."""

    def __init__(
        self,
        app: Any,
        *,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
        cookie_name: str = DEFAULT_COOKIE_NAME,
    ) -> None:
        super().__init__(app)
        self._session_factory = session_factory
        self._cookie_name = cookie_name

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        set_current_user(None)
        token = self._extract_token(request)

        if token:
            try:
                user = await self._load_user(token, request)
            except Exception:
                # Route dependencies answer 401 for an unresolved session
                logger.exception("Could not resolve admin session")
                user = None
            if user:
                set_current_user(user)
                request.state.user = user

        return await call_next(request)

    def _extract_token(self, request: Request) -> str | None:
        """Cookie first (the browser CMS), then a Bearer header (scripts)."""
        scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
        bearer = credentials.strip() if scheme.lower() == "bearer" else None
        return request.cookies.get(self._cookie_name) or bearer or None

    async def _load_user(self, token: str, request: Request) -> AuthenticatedUser | None:
        from spaceplus.services.session import SessionService

        async with self._session_factory() as db:
            session = await SessionService(db).validate_session(token)
            if session is None:
                return None

            admin = await db.get(AdminUser, session.admin_user_id)
            await db.commit()

        if admin is None or not admin.is_active:
            return None

        return AuthenticatedUser(
            admin_user_id=admin.admin_user_id,
            email=admin.email,
            name=admin.name,
            role=admin.role.value,
            session_id=session.session_id,
            is_active=admin.is_active,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )


async def require_authenticated_user(request: Request) -> AuthenticatedUser:
    """Any signed-in admin account, whatever its role."""
    user = get_current_user() or getattr(request.state, "user", None)
    if user is None:
        raise AuthenticationError()
    if not user.is_active:
        raise AuthorizationError("Account is inactive")
    return user


async def require_admin_user(
    user: Annotated[AuthenticatedUser, Depends(require_authenticated_user)],
) -> AuthenticatedUser:
    """Only the ``admin`` role manages social sources and the scheduler."""
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user
