"""
API Module - Black Box Interface

Purpose: HTTP request/response shapes
Interface: pydantic models consumed by the FastAPI routes
Hidden: camelCase aliasing, option validation, secret masking

The API module only describes data - it contains no business logic.
All logic is delegated to the session module.
"""

from .models import (
    CreateSessionRequest,
    DeleteSessionResponse,
    ErrorResponse,
    HealthResponse,
    ProxyRequest,
    ServiceInfoResponse,
    SessionInfo,
    SessionListResponse,
    SessionOptionsView,
    SessionResponse,
    ViewportRequest,
)

__all__ = [
    "CreateSessionRequest",
    "ProxyRequest",
    "ViewportRequest",
    "SessionInfo",
    "SessionOptionsView",
    "SessionResponse",
    "SessionListResponse",
    "DeleteSessionResponse",
    "ErrorResponse",
    "ServiceInfoResponse",
    "HealthResponse",
]
