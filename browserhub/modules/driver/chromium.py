"""
Chromium driver: one Chrome process per session, exposed over CDP.

Chrome is started with remote debugging on an OS-assigned port and an
isolated profile directory. The browser-level WebSocket URL comes from the
DevTools ``/json/version`` endpoint.
"""

import asyncio
import logging
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass
from typing import List, Optional, Tuple

import httpx
from playwright.async_api import async_playwright

from browserhub.modules.session import LaunchOptions, LaunchResult

logger = logging.getLogger("browserhub.driver")

# Container-friendly defaults, applied to every launch
BASE_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--no-first-run",
    "--no-default-browser-check",
]

DEVTOOLS_ACTIVE_PORT = "DevToolsActivePort"


def find_system_chrome() -> Optional[str]:
    """Find a Chrome, Chromium or Edge binary installed on the system."""
    system = platform.system()
    if system == "Darwin":
        candidates = [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
            "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
        ]
        for candidate in candidates:
            if os.path.isfile(candidate):
                return candidate
        return None

    for candidate in (
        "google-chrome",
        "google-chrome-stable",
        "chromium",
        "chromium-browser",
        "microsoft-edge",
        "microsoft-edge-stable",
    ):
        path = shutil.which(candidate)
        if path:
            return path
    return None


async def find_bundled_chromium() -> Optional[str]:
    """Path of Playwright's bundled Chromium, if it has been installed."""
    async with async_playwright() as p:
        path = p.chromium.executable_path
    return path if path and os.path.isfile(path) else None


def build_launch_args(executable: str, options: LaunchOptions, user_data_dir: str) -> List[str]:
    """Command line for one browser process."""
    viewport = options.viewport
    args = [
        executable,
        "--remote-debugging-port=0",
        f"--user-data-dir={user_data_dir}",
        *BASE_ARGS,
        f"--window-size={viewport.width},{viewport.height}",
    ]
    if options.headless:
        args.append("--headless=new")
    if options.proxy is not None:
        # Credentials cannot go on the command line; CDP clients answer auth challenges
        args.append(f"--proxy-server={options.proxy.server}")
    if options.user_agent:
        args.append(f"--user-agent={options.user_agent}")
    args.append("about:blank")
    return args


def read_devtools_active_port(user_data_dir: str) -> Optional[Tuple[int, str]]:
    """
    Parse the ``DevToolsActivePort`` file Chrome writes once debugging is up.

    Returns:
        (port, browser_path) or None if the file is missing or incomplete
    """
    path = os.path.join(user_data_dir, DEVTOOLS_ACTIVE_PORT)
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError:
        return None
    if len(lines) < 2 or not lines[0].strip().isdigit():
        return None
    return int(lines[0].strip()), lines[1].strip()


@dataclass
class ChromiumProcess:
    """Driver handle: the running process and the profile it owns."""

    process: asyncio.subprocess.Process
    user_data_dir: str
    port: Optional[int] = None

    @property
    def pid(self) -> int:
        return self.process.pid


class ChromiumDriver:
    def __init__(
        self,
        executable_path: Optional[str] = None,
        startup_timeout: Optional[float] = 30.0,
        terminate_timeout: float = 5.0,
        poll_interval: float = 0.1,
    ):
        """
        Initialize Chromium driver.

        Args:
            executable_path: Browser binary; auto-detected when omitted
            startup_timeout: Seconds to wait for DevTools to come up (None = until cancelled)
            terminate_timeout: Grace period before SIGKILL, and for the kill itself
            poll_interval: Seconds between readiness probes
        """
        self.executable_path = executable_path
        self.startup_timeout = startup_timeout
        self.terminate_timeout = terminate_timeout
        self.poll_interval = poll_interval

    async def resolve_executable(self) -> str:
        """
        Pick the browser binary: configured path, system install, then
        Playwright's bundled Chromium. The result is cached.
        """
        if self.executable_path:
            return self.executable_path

        path = find_system_chrome() or await find_bundled_chromium()
        if not path:
            raise RuntimeError(
                "No Chrome/Chromium executable found. "
                "Set CHROME_PATH or run `playwright install chromium`."
            )
        logger.info(f"Using browser executable {path}")
        self.executable_path = path
        return path

    async def launch(self, options: LaunchOptions) -> LaunchResult:
        executable = await self.resolve_executable()
        user_data_dir = await asyncio.to_thread(tempfile.mkdtemp, prefix="browserhub-")
        args = build_launch_args(executable, options, user_data_dir)

        logger.debug(f"Launching {os.path.basename(executable)} with profile {user_data_dir}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError:
            await _remove_profile(user_data_dir)
            raise

        browser = ChromiumProcess(process=process, user_data_dir=user_data_dir)
        try:
            endpoint = await self._wait_for_endpoint(browser)
        except BaseException:
            # Includes cancellation: never leave a half-started browser behind
            await self._stop(browser)
            raise
        return LaunchResult(endpoint=endpoint, handle=browser)

    async def terminate(self, handle: ChromiumProcess) -> None:
        await self._stop(handle)

    async def _wait_for_endpoint(self, browser: ChromiumProcess) -> str:
        loop = asyncio.get_running_loop()
        deadline = None if self.startup_timeout is None else loop.time() + self.startup_timeout

        async with httpx.AsyncClient(timeout=1.0) as client:
            while deadline is None or loop.time() < deadline:
                if browser.process.returncode is not None:
                    raise RuntimeError(
                        f"Chrome exited unexpectedly (code {browser.process.returncode})"
                    )

                active = read_devtools_active_port(browser.user_data_dir)
                if active is not None:
                    port, _ = active
                    try:
                        response = await client.get(f"http://127.0.0.1:{port}/json/version")
                        if response.status_code == 200:
                            ws_url = response.json().get("webSocketDebuggerUrl")
                            if ws_url:
                                browser.port = port
                                logger.debug(f"DevTools ready on port {port} (pid {browser.pid})")
                                return ws_url
                    except (httpx.HTTPError, ValueError):
                        pass  # not ready yet

                await asyncio.sleep(self.poll_interval)

        raise TimeoutError(
            f"Chrome failed to start with remote debugging within {self.startup_timeout}s"
        )

    async def _stop(self, browser: ChromiumProcess) -> None:
        """SIGTERM, grace period, SIGKILL. The profile directory is always removed."""
        process = browser.process
        try:
            if process.returncode is None:
                try:
                    process.terminate()
                except ProcessLookupError:
                    return
                try:
                    await asyncio.wait_for(process.wait(), self.terminate_timeout)
                except TimeoutError:
                    logger.debug(f"Chrome pid {browser.pid} ignored SIGTERM, killing")
                    process.kill()
                    await asyncio.wait_for(process.wait(), self.terminate_timeout)
        finally:
            await _remove_profile(browser.user_data_dir)


async def _remove_profile(user_data_dir: str) -> None:
    """Delete a profile directory off the event loop; profiles run to tens of MB."""
    await asyncio.to_thread(shutil.rmtree, user_data_dir, ignore_errors=True)
