"""
Session registry error taxonomy.

Callers branch on the exception type, never on message text. A missing
session is not an error: lookups return None and terminate returns False.
"""

from enum import Enum


class LaunchFailureCause(str, Enum):
    """Why a browser launch did not produce a session."""

    DRIVER = "driver"    # driver raised while starting the process
    TIMEOUT = "timeout"  # launch exceeded the allowed time


class RegistryError(Exception):
    """Base class for errors surfaced by the session registry."""


class LaunchError(RegistryError):
    """The browser driver failed to start a process. Never retried internally."""

    def __init__(self, detail: str, cause: LaunchFailureCause = LaunchFailureCause.DRIVER):
        self.detail = detail
        self.cause = cause
        super().__init__(detail or cause.value)


class ShuttingDown(RegistryError):
    """create() was rejected because registry shutdown has begun."""

    def __init__(self, message: str = "Session registry is shutting down"):
        super().__init__(message)


class TerminationError(RegistryError):
    """
    The driver failed to cleanly stop a browser process.

    Non-fatal: the session has already left the registry. Instances are
    reported through session events and shutdown_all(), not raised.
    """

    def __init__(self, session_id: str, detail: str):
        self.session_id = session_id
        self.detail = detail
        super().__init__(f"Failed to terminate session {session_id}: {detail}")
