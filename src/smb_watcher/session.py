"""Lifecycle of one authenticated session and opened share."""

import logging
import threading
from typing import Callable, Optional, Tuple

from .config import SmbCredentials
from .errors import translate_error
from .exceptions import ConnectError
from .interfaces import RemoteSession, RemoteTree, ShareClient

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """
    Owns the session and share for a single watch.

    ``open`` connects once and hands back the tree plus a closer that
    releases both. Retry policy is left to the caller.
    """

    def __init__(self, client: ShareClient):
        self.client = client
        self._session: Optional[RemoteSession] = None
        self._tree: Optional[RemoteTree] = None
        self._closed = False
        self._lock = threading.Lock()

    def open(self, credentials: SmbCredentials) -> Tuple[RemoteTree, Callable[[], None]]:
        """
        Authenticate and connect to the configured share.

        Args:
            credentials: Server, account and share settings

        Returns:
            (tree, closer) tuple

        Raises:
            ConnectError: If authentication or the share connection fails
        """
        with self._lock:
            if self._session is not None or self._closed:
                raise ConnectError("Session coordinator has already been used")

        logger.info(
            "Connecting to %s on %s as (%s)",
            credentials.share, credentials.host, credentials.account,
        )

        try:
            session = self.client.authenticate(credentials)
        except Exception as e:
            logger.debug("Authentication failed: %r", e)
            raise ConnectError(
                f"Failed to connect to SMB server: {translate_error(e)}", e
            ) from e

        try:
            tree = session.open_share(credentials.share)
        except Exception as e:
            logger.debug("Share connect failed: %r", e)
            self._release(session.close, "session")
            raise ConnectError(
                f"Failed to connect to SMB server: {translate_error(e)}", e
            ) from e

        with self._lock:
            self._session = session
            self._tree = tree

        logger.info("Connected to share %s on %s", credentials.share, credentials.host)
        return tree, self.close

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._closed

    def close(self) -> None:
        """Release the share and the session. Safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            tree, session = self._tree, self._session
            self._tree = None
            self._session = None

        if tree is not None:
            self._release(tree.close, "share")
        if session is not None:
            self._release(session.close, "session")
            logger.info("Disconnected from SMB server")

    @staticmethod
    def _release(close: Callable[[], None], what: str) -> None:
        try:
            close()
        except Exception as e:
            logger.warning("Error closing %s: %s", what, translate_error(e))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
