"""
Driver Module - Black Box Interface

Purpose: Start and stop browser processes that expose a CDP endpoint
Interface: launch(options), terminate(handle)
Hidden: Executable discovery, command-line flags, readiness probing

Any object implementing session.BrowserDriver can replace it.
"""

from .chromium import (
    ChromiumDriver,
    ChromiumProcess,
    build_launch_args,
    find_bundled_chromium,
    find_system_chrome,
    read_devtools_active_port,
)

__all__ = [
    "ChromiumDriver",
    "ChromiumProcess",
    "build_launch_args",
    "find_bundled_chromium",
    "find_system_chrome",
    "read_devtools_active_port",
]
