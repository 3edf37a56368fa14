"""
Session registry.

Owns the open connections to target hosts, keyed by a caller-chosen
session id. Instances are created by whoever serves requests and passed
to the code that needs them; nothing here is module-global.
"""

import logging
import threading
from typing import Callable, Optional

from .controller import HostController
from .exceptions import SessionNotFoundError
from .profile import NetworkProfile
from .runner import CommandRunner, SSHRunner

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Thread-safe map of session id to HostController.

    Args:
        connect: Factory opening a runner; called with host, username,
            password and port. Defaults to SSHRunner.connect.
        profiles: Profiles handed to every controller.
    """

    def __init__(
        self,
        connect: Optional[Callable[..., CommandRunner]] = None,
        profiles: Optional[dict[str, NetworkProfile]] = None,
    ):
        self._connect = connect or SSHRunner.connect
        self.profiles = profiles or {}
        self._sessions: dict[str, HostController] = {}
        self._lock = threading.Lock()

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def connect(
        self,
        session_id: str,
        host: str,
        username: str,
        password: Optional[str] = None,
        port: int = 22,
    ) -> HostController:
        """
        Open a session, replacing any existing one with the same id.

        Raises:
            ConnectionFailedError: If the host cannot be reached.
        """
        self.disconnect(session_id)

        runner = self._connect(host=host, username=username, password=password, port=port)
        controller = HostController(runner, profiles=self.profiles)

        with self._lock:
            previous = self._sessions.pop(session_id, None)
            self._sessions[session_id] = controller
        if previous is not None:
            previous.close()

        logger.info(f"Session {session_id} connected to {host}:{port}")
        return controller

    def get(self, session_id: str) -> HostController:
        """
        Raises:
            SessionNotFoundError: If no session is open under this id.
        """
        with self._lock:
            controller = self._sessions.get(session_id)
        if controller is None:
            raise SessionNotFoundError(session_id)
        return controller

    def disconnect(self, session_id: str) -> bool:
        """Close a session. Returns False if there was none."""
        with self._lock:
            controller = self._sessions.pop(session_id, None)
        if controller is None:
            return False

        try:
            controller.close()
        except Exception as e:
            logger.warning(f"Error closing session {session_id}: {e}")
        logger.info(f"Session {session_id} disconnected")
        return True

    def close_all(self) -> None:
        with self._lock:
            session_ids = list(self._sessions)
        for session_id in session_ids:
            self.disconnect(session_id)
