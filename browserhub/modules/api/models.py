"""
browserhub HTTP data models.

JSON bodies use camelCase keys (``wsEndpoint``, ``userAgent``); the Python
side uses snake_case. Both spellings are accepted on input.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from browserhub.modules.session import (
    LaunchOptions,
    ProxyConfig,
    Session,
    SessionStatus,
    Viewport,
)
from browserhub.modules.session.models import DEFAULT_VIEWPORT_HEIGHT, DEFAULT_VIEWPORT_WIDTH


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request Models (API Input)


class ProxyRequest(CamelModel):
    """Upstream proxy for the browser."""

    server: str = Field(..., min_length=1, description="Proxy URL, e.g. http://proxy:8080")
    username: Optional[str] = Field(None, description="Proxy username")
    password: Optional[str] = Field(None, description="Proxy password (never echoed back)")


class ViewportRequest(CamelModel):
    """Browser window size."""

    width: int = Field(default=DEFAULT_VIEWPORT_WIDTH, gt=0, le=10000)
    height: int = Field(default=DEFAULT_VIEWPORT_HEIGHT, gt=0, le=10000)


class CreateSessionRequest(CamelModel):
    """Request to create a browser session. Every field is optional."""

    headless: bool = Field(default=True, description="Run without a visible window")
    proxy: Optional[ProxyRequest] = Field(None, description="Upstream proxy")
    viewport: ViewportRequest = Field(default_factory=ViewportRequest)
    user_agent: Optional[str] = Field(None, description="User-Agent override")

    @field_validator("user_agent")
    @classmethod
    def blank_user_agent_means_default(cls, v):
        """An empty override falls back to the browser's own user agent."""
        if v is not None and not v.strip():
            return None
        return v

    def to_launch_options(self) -> LaunchOptions:
        proxy = None
        if self.proxy is not None:
            proxy = ProxyConfig(
                server=self.proxy.server,
                username=self.proxy.username,
                password=self.proxy.password,
            )
        return LaunchOptions(
            headless=self.headless,
            proxy=proxy,
            viewport=Viewport(width=self.viewport.width, height=self.viewport.height),
            user_agent=self.user_agent,
        )


# Response Models (API Output)


class ProxyView(CamelModel):
    server: str
    username: Optional[str] = None


class ViewportView(CamelModel):
    width: int
    height: int


class SessionOptionsView(CamelModel):
    """Launch options as stored on the session, minus secrets."""

    headless: bool
    proxy: Optional[ProxyView] = None
    viewport: ViewportView
    user_agent: Optional[str] = None

    @classmethod
    def from_options(cls, options: LaunchOptions) -> "SessionOptionsView":
        proxy = None
        if options.proxy is not None:
            proxy = ProxyView(server=options.proxy.server, username=options.proxy.username)
        return cls(
            headless=options.headless,
            proxy=proxy,
            viewport=ViewportView(width=options.viewport.width, height=options.viewport.height),
            user_agent=options.user_agent,
        )


class SessionInfo(CamelModel):
    """Public view of one browser session."""

    id: str
    ws_endpoint: str = Field(..., description="CDP WebSocket URL")
    cdp_url: str = Field(..., description="Alias of wsEndpoint")
    created_at: datetime
    status: SessionStatus
    options: SessionOptionsView

    @classmethod
    def from_session(cls, session: Session) -> "SessionInfo":
        return cls(
            id=session.id,
            ws_endpoint=session.endpoint,
            cdp_url=session.endpoint,
            created_at=session.created_at,
            status=session.status,
            options=SessionOptionsView.from_options(session.options),
        )


class SessionResponse(CamelModel):
    """Response carrying a single session."""

    success: bool = True
    session: SessionInfo


class SessionListResponse(CamelModel):
    """All registered sessions, oldest first."""

    success: bool = True
    count: int
    sessions: List[SessionInfo]


class DeleteSessionResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """Standard error response."""

    success: bool = False
    error: str = Field(..., description="Error message")
    cause: Optional[str] = Field(None, description="Machine-readable failure cause")


class ServiceInfoResponse(CamelModel):
    service: str
    version: str
    status: str
    active_sessions: int


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = Field(..., description="Health status")
    timestamp: datetime


__all__ = [
    # Request models
    "CreateSessionRequest",
    "ProxyRequest",
    "ViewportRequest",
    # Response models
    "SessionInfo",
    "SessionOptionsView",
    "SessionResponse",
    "SessionListResponse",
    "DeleteSessionResponse",
    "ErrorResponse",
    "ServiceInfoResponse",
    "HealthResponse",
]
