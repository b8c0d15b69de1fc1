"""Abstract interfaces for the remote filesystem client the watcher drives."""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from .config import SmbCredentials
from .models import DirectoryEntry, RawChangeRecord


NotificationCallback = Callable[[Sequence[RawChangeRecord]], None]
ErrorCallback = Callable[[BaseException], None]
CancelFunction = Callable[[], None]


class RemoteTree(ABC):
    """A connected share."""

    @abstractmethod
    def watch_directory(
        self,
        path: str,
        on_notification: NotificationCallback,
        recursive: bool = False,
        on_error: Optional[ErrorCallback] = None,
    ) -> CancelFunction:
        """
        Subscribe to change notifications for a directory.

        Args:
            path: Directory on the share
            on_notification: Called with the records of each notification
            recursive: Whether subfolders are covered
            on_error: Called once if the subscription drops

        Returns:
            A function that cancels the subscription
        """
        pass

    @abstractmethod
    def list_directory(self, path: str) -> Sequence[DirectoryEntry]:
        """List the entries of a directory on the share."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Disconnect from the share."""
        pass


class RemoteSession(ABC):
    """An authenticated connection to a server."""

    @abstractmethod
    def open_share(self, name: str) -> RemoteTree:
        """Connect to a named share."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Log off and close the underlying connection."""
        pass


class ShareClient(ABC):
    """Factory for authenticated sessions."""

    @abstractmethod
    def authenticate(self, credentials: SmbCredentials) -> RemoteSession:
        """
        Connect and authenticate against the server in ``credentials``.

        Raises whatever the underlying protocol library raises.
        """
        pass
