"""
Session Module - Black Box Interface

Purpose: Own every browser process the service launches
Interface: create(), get(), list(), terminate(), count(), shutdown_all()
Hidden: In-memory storage, locking, id issuance, lifecycle transitions

Replaceable with any registry that honours the same lifecycle guarantees.
"""

from .errors import (
    LaunchError,
    LaunchFailureCause,
    RegistryError,
    ShuttingDown,
    TerminationError,
)
from .events import SessionEvent, SessionEventListener
from .interfaces import BrowserDriver, LaunchResult
from .models import LaunchOptions, ProxyConfig, Session, SessionStatus, Viewport
from .registry import SessionRegistry, generate_session_id

__all__ = [
    "SessionRegistry",
    "generate_session_id",
    "Session",
    "SessionStatus",
    "LaunchOptions",
    "ProxyConfig",
    "Viewport",
    "BrowserDriver",
    "LaunchResult",
    "SessionEvent",
    "SessionEventListener",
    "RegistryError",
    "LaunchError",
    "LaunchFailureCause",
    "ShuttingDown",
    "TerminationError",
]
