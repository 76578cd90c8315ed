"""Collaborator interfaces consumed by the session registry."""
from dataclasses import dataclass
from typing import Any, Protocol

from .models import LaunchOptions


@dataclass(frozen=True)
class LaunchResult:
    """What a driver hands back for one started browser."""
    endpoint: str
    handle: Any


class BrowserDriver(Protocol):
    """Protocol for browser drivers - allows swappable implementations."""

    async def launch(self, options: LaunchOptions) -> LaunchResult:
        """
        Start one browser process.

        Raises any exception on failure. If cancelled mid-launch, the driver
        must release whatever it already started before re-raising.
        """
        ...

    async def terminate(self, handle: Any) -> None:
        """Stop the process behind *handle*. Raises on failure."""
        ...
