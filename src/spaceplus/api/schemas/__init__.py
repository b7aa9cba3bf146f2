"""Pydantic schemas for the SpacePlus API.

This package contains request/response schemas organized by API namespace.
"""

from spaceplus.api.schemas.auth import AdminUserInfo, LoginRequest, LoginResponse
from spaceplus.api.schemas.cases import CaseDetail, CaseSummary
from spaceplus.api.schemas.common import ApiResponse, Page
from spaceplus.api.schemas.news import NewsDetail, NewsSummary
from spaceplus.api.schemas.social import (
    SchedulerActionRequest,
    SchedulerOverview,
    SocialPostResponse,
    SocialSourceCreate,
    SocialSourceDetail,
    SocialSourceResponse,
    SocialSourceUpdate,
)

__all__ = [
    "AdminUserInfo",
    "ApiResponse",
    "CaseDetail",
    "CaseSummary",
    "LoginRequest",
    "LoginResponse",
    "NewsDetail",
    "NewsSummary",
    "Page",
    "SchedulerActionRequest",
    "SchedulerOverview",
    "SocialPostResponse",
    "SocialSourceCreate",
    "SocialSourceDetail",
    "SocialSourceResponse",
    "SocialSourceUpdate",
]
