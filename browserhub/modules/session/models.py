"""
Session data model.

A Session binds one registry entry to one live browser process. Launch
options are frozen at creation and kept verbatim for introspection.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

DEFAULT_VIEWPORT_WIDTH = 1920
DEFAULT_VIEWPORT_HEIGHT = 1080


class SessionStatus(str, Enum):
    """Lifecycle state of a browser session."""

    ACTIVE = "active"
    TERMINATING = "terminating"
    TERMINATED = "terminated"


_TRANSITIONS = {
    SessionStatus.ACTIVE: SessionStatus.TERMINATING,
    SessionStatus.TERMINATING: SessionStatus.TERMINATED,
}


@dataclass(frozen=True)
class Viewport:
    """Browser window size in pixels."""

    width: int = DEFAULT_VIEWPORT_WIDTH
    height: int = DEFAULT_VIEWPORT_HEIGHT

    def __post_init__(self):
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"Viewport {name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class ProxyConfig:
    """Upstream proxy for all browser traffic."""

    server: str
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.server:
            raise ValueError("Proxy server must not be empty")


@dataclass(frozen=True)
class LaunchOptions:
    """
    Launch configuration requested by the caller.

    Unset fields take the defaults: headless, no proxy, 1920x1080 viewport
    and the driver's own user agent.
    """

    headless: bool = True
    proxy: Optional[ProxyConfig] = None
    viewport: Viewport = field(default_factory=Viewport)
    user_agent: Optional[str] = None


@dataclass(eq=False)
class Session:
    """One externally controllable browser process."""

    id: str
    endpoint: str
    options: LaunchOptions
    handle: Any = field(repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: SessionStatus = SessionStatus.ACTIVE

    def advance(self, target: SessionStatus) -> None:
        """
        Move the session one step along active -> terminating -> terminated.

        Raises:
            ValueError: If the transition would go backwards or skip a step
        """
        if _TRANSITIONS.get(self.status) != target:
            raise ValueError(
                f"Invalid session transition {self.status.value} -> {target.value}"
            )
        self.status = target
