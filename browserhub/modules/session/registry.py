import asyncio
import secrets
from typing import Callable, Dict, List, Optional, Set

from .errors import LaunchError, LaunchFailureCause, ShuttingDown, TerminationError
from .events import (
    REGISTRY_SHUTDOWN,
    SESSION_CREATED,
    SESSION_LAUNCH_DISCARDED,
    SESSION_LAUNCH_FAILED,
    SESSION_TERMINATED,
    SESSION_TERMINATION_FAILED,
    SessionEvent,
    SessionEventListener,
)
from .interfaces import BrowserDriver, LaunchResult
from .models import LaunchOptions, Session, SessionStatus

SESSION_ID_PREFIX = "sess_"


def generate_session_id() -> str:
    """Return a collision-resistant session id, e.g. ``sess_Xk3v9QpL0aZb2YcD``."""
    return SESSION_ID_PREFIX + secrets.token_urlsafe(12)


class SessionRegistry:
    def __init__(
        self,
        driver: BrowserDriver,
        launch_timeout: Optional[float] = None,
        listener: Optional[SessionEventListener] = None,
        id_factory: Callable[[], str] = generate_session_id,
    ):
        """
        Initialize session registry.

        Args:
            driver: Browser driver that launches and terminates processes
            launch_timeout: Default seconds allowed for one launch (None = no limit)
            listener: Optional callable receiving SessionEvent objects
            id_factory: Session id generator
        """
        self.driver = driver
        self.launch_timeout = launch_timeout
        self._listener = listener
        self._id_factory = id_factory

        self._sessions: Dict[str, Session] = {}
        # Every id ever handed out, kept for the registry's lifetime so a
        # terminated or failed id is never issued again (about 100 bytes each)
        self._issued_ids: Set[str] = set()
        self._lock = asyncio.Lock()
        self._shutting_down = False

        # Launches and terminations currently talking to the driver
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    async def create(
        self, options: Optional[LaunchOptions] = None, timeout: Optional[float] = None
    ) -> Session:
        """
        Launch a browser and register it as a new active session.

        Args:
            options: Launch configuration (defaults apply when omitted)
            timeout: Seconds allowed for the launch; overrides launch_timeout

        Returns:
            The registered Session

        Raises:
            ShuttingDown: Shutdown has begun, before or during the launch
            LaunchError: The driver failed or the launch timed out

        Logic:
        1. Reserve a fresh id (under the lock, rejected once shutting down)
        2. Launch outside the lock so other operations proceed
        3. Insert the session only after the process is running
        4. If shutdown began meanwhile, tear the new process down instead
        """
        options = options or LaunchOptions()

        async with self._lock:
            if self._shutting_down:
                raise ShuttingDown()
            session_id = self._reserve_id()
            self._begin_work()

        try:
            result = await self._launch(session_id, options, timeout)

            async with self._lock:
                if not self._shutting_down:
                    session = Session(
                        id=session_id,
                        endpoint=result.endpoint,
                        options=options,
                        handle=result.handle,
                    )
                    self._sessions[session_id] = session
                else:
                    session = None

            if session is None:
                await self._discard_launch(session_id, result.handle, reason="shutting_down")
                raise ShuttingDown()

            self._publish(SESSION_CREATED, session_id, endpoint=session.endpoint)
            return session
        finally:
            self._end_work()

    def get(self, session_id: str) -> Optional[Session]:
        """Look up a live session. Returns None if not found."""
        return self._sessions.get(session_id)

    def list(self) -> List[Session]:
        """Snapshot of all registered sessions, in insertion order."""
        return list(self._sessions.values())

    def count(self) -> int:
        """Number of registered sessions."""
        return len(self._sessions)

    async def terminate(self, session_id: str) -> bool:
        """
        Terminate a session and remove it from the registry.

        Returns:
            True if this call removed the session, False if it was not found

        The session leaves the map before the driver is called, so exactly
        one of several concurrent calls for the same id sees it. A driver
        failure is published as a TerminationError and does not change the
        result.
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return False
            session.advance(SessionStatus.TERMINATING)
            self._begin_work()

        # Shielded: a cancelled caller must not leave the process running
        await asyncio.shield(self._finish_termination(session))
        return True

    async def shutdown_all(self) -> List[TerminationError]:
        """
        Terminate every session and refuse further creates.

        Waits for in-flight launches and terminations to settle, so no
        process started by this registry outlives the call.

        Returns:
            Termination failures, one per session that did not stop cleanly
        """
        async with self._lock:
            first_call = not self._shutting_down
            self._shutting_down = True
            sessions = list(self._sessions.values())
            self._sessions.clear()
            for session in sessions:
                session.advance(SessionStatus.TERMINATING)
                self._begin_work()

        if first_call:
            self._publish(REGISTRY_SHUTDOWN, None, sessions=len(sessions))

        results = await asyncio.shield(
            asyncio.gather(*(self._finish_termination(s) for s in sessions))
        )
        await self._idle.wait()
        return [error for error in results if error is not None]

    async def _launch(
        self, session_id: str, options: LaunchOptions, timeout: Optional[float]
    ) -> LaunchResult:
        timeout = self.launch_timeout if timeout is None else timeout
        deadline = asyncio.timeout(timeout)
        try:
            async with deadline:
                result = await self.driver.launch(options)
        except Exception as e:
            # Only our own deadline is a timeout; a driver's TimeoutError keeps its detail
            if isinstance(e, TimeoutError) and deadline.expired():
                error = LaunchError(
                    f"Browser launch exceeded {timeout}s", LaunchFailureCause.TIMEOUT
                )
            else:
                error = LaunchError(str(e) or type(e).__name__, LaunchFailureCause.DRIVER)
            self._publish(SESSION_LAUNCH_FAILED, session_id, cause=error.cause.value, error=error.detail)
            raise error from e

        if not result.endpoint:
            await self._discard_launch(session_id, result.handle, reason="empty_endpoint")
            error = LaunchError("Driver returned an empty endpoint", LaunchFailureCause.DRIVER)
            self._publish(SESSION_LAUNCH_FAILED, session_id, cause=error.cause.value, error=error.detail)
            raise error
        return result

    async def _finish_termination(self, session: Session) -> Optional[TerminationError]:
        try:
            error = await self._release_handle(session.id, session.handle)
        finally:
            session.advance(SessionStatus.TERMINATED)
            self._end_work()

        if error is not None:
            self._publish(SESSION_TERMINATION_FAILED, session.id, error=error.detail)
        else:
            self._publish(SESSION_TERMINATED, session.id)
        return error

    async def _discard_launch(self, session_id: str, handle, reason: str) -> None:
        """
        Release a browser that was launched but never registered.

        Shielded like terminate(); the release holds its own unit of work so
        shutdown_all() waits for it even if the creating caller is cancelled.
        """
        self._begin_work()
        await asyncio.shield(self._release_discarded(session_id, handle, reason))

    async def _release_discarded(self, session_id: str, handle, reason: str) -> None:
        try:
            error = await self._release_handle(session_id, handle)
        finally:
            self._end_work()

        data = {"reason": reason}
        if error is not None:
            data["error"] = error.detail
        self._publish(SESSION_LAUNCH_DISCARDED, session_id, **data)

    async def _release_handle(self, session_id: str, handle) -> Optional[TerminationError]:
        """Invoke driver termination once; failures are returned, not raised."""
        try:
            await self.driver.terminate(handle)
        except Exception as e:
            return TerminationError(session_id, str(e) or type(e).__name__)
        return None

    def _reserve_id(self) -> str:
        session_id = self._id_factory()
        while session_id in self._issued_ids:
            session_id = self._id_factory()
        self._issued_ids.add(session_id)
        return session_id

    def _begin_work(self) -> None:
        self._in_flight += 1
        self._idle.clear()

    def _end_work(self) -> None:
        self._in_flight -= 1
        if self._in_flight == 0:
            self._idle.set()

    def _publish(self, event_type: str, session_id: Optional[str], **data) -> None:
        if self._listener is not None:
            self._listener(SessionEvent(type=event_type, session_id=session_id, data=data))
