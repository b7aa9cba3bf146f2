"""SpacePlus API middleware components.

This module provides middleware for:
- Request ID tracking
- Consistent error response formatting
- Admin session authentication
"""

from spaceplus.api.middleware.auth import (
    AuthenticatedUser,
    SessionAuthMiddleware,
    get_current_user,
    require_admin_user,
    require_authenticated_user,
    set_current_user,
)
from spaceplus.api.middleware.errors import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ErrorHandlerMiddleware,
    NotFoundError,
    ValidationAPIError,
    register_exception_handlers,
)
from spaceplus.api.middleware.request_id import RequestIDLogFilter, RequestIDMiddleware

__all__ = [
    "APIError",
    "AuthenticatedUser",
    "AuthenticationError",
    "AuthorizationError",
    "ErrorHandlerMiddleware",
    "NotFoundError",
    "RequestIDLogFilter",
    "RequestIDMiddleware",
    "SessionAuthMiddleware",
    "ValidationAPIError",
    "get_current_user",
    "register_exception_handlers",
    "require_admin_user",
    "require_authenticated_user",
    "set_current_user",
]
