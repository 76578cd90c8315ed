"""
Structured session events.

The registry reports what happened instead of logging it; whoever builds
the registry decides where events go.
"""
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, Optional, Protocol

SESSION_CREATED = "session.created"
SESSION_LAUNCH_FAILED = "session.launch_failed"
SESSION_LAUNCH_DISCARDED = "session.launch_discarded"
SESSION_TERMINATED = "session.terminated"
SESSION_TERMINATION_FAILED = "session.termination_failed"
REGISTRY_SHUTDOWN = "registry.shutdown"


@dataclass(frozen=True)
class SessionEvent:
    type: str
    session_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class SessionEventListener(Protocol):
    """Receives registry events. Must not block."""

    def __call__(self, event: SessionEvent) -> None:
        ...
