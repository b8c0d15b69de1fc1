"""Share client for shares mounted on the local filesystem, using watchdog."""

import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from watchdog.observers import Observer
from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)

from .config import SmbCredentials
from .interfaces import (
    CancelFunction,
    ErrorCallback,
    NotificationCallback,
    RemoteSession,
    RemoteTree,
    ShareClient,
)
from .models import (
    DirectoryEntry,
    RawChangeRecord,
    FILE_ATTRIBUTE_DIRECTORY,
    FILE_ACTION_ADDED,
    FILE_ACTION_MODIFIED,
    FILE_ACTION_REMOVED,
    FILE_ACTION_RENAMED_NEW_NAME,
    FILE_ACTION_RENAMED_OLD_NAME,
)

logger = logging.getLogger(__name__)


class ChangeNotifyHandler(FileSystemEventHandler):
    """
    Converts watchdog events into SMB-style change records.

    Names are reported relative to the watched directory. Like a
    CHANGE_NOTIFY response, the records carry no entry type.
    """

    def __init__(self, root: Path, callback: NotificationCallback):
        super().__init__()
        self.root = root
        self.callback = callback

    def _relative(self, path: str) -> Optional[str]:
        try:
            relative = Path(path).relative_to(self.root)
        except ValueError:
            return None
        name = relative.as_posix()
        if name in ("", "."):
            return None
        return name.replace("/", "\\")

    def _emit(self, records: List[RawChangeRecord]) -> None:
        if records:
            self.callback(records)

    def _single(self, action: int, event: FileSystemEvent) -> None:
        name = self._relative(event.src_path)
        if name is None:
            return
        self._emit([RawChangeRecord(action, name)])

    def on_created(self, event):
        self._single(FILE_ACTION_ADDED, event)

    def on_deleted(self, event):
        self._single(FILE_ACTION_REMOVED, event)

    def on_modified(self, event):
        self._single(FILE_ACTION_MODIFIED, event)

    def on_moved(self, event: FileSystemMovedEvent):
        old_name = self._relative(event.src_path)
        new_name = self._relative(event.dest_path)
        records = []
        if old_name is not None:
            records.append(RawChangeRecord(FILE_ACTION_RENAMED_OLD_NAME, old_name))
        if new_name is not None:
            records.append(RawChangeRecord(FILE_ACTION_RENAMED_NEW_NAME, new_name))
        self._emit(records)


class LocalTree(RemoteTree):
    """
    A share exposed through a local directory.

    One watchdog observer runs per watched directory.
    """

    def __init__(self, root: Path):
        self.root = root
        self._observers: Dict[int, Observer] = {}
        self._lock = threading.Lock()

    def _resolve(self, path: str) -> Path:
        relative = path.replace("\\", "/").strip("/")
        return self.root / relative if relative else self.root

    def watch_directory(
        self,
        path: str,
        on_notification: NotificationCallback,
        recursive: bool = False,
        on_error: Optional[ErrorCallback] = None,
    ) -> CancelFunction:
        directory = self._resolve(path)
        if not directory.is_dir():
            raise FileNotFoundError(
                2, f"Directory does not exist: {directory}", str(directory)
            )

        resolved = directory.resolve()
        observer = Observer()
        handler = ChangeNotifyHandler(resolved, on_notification)
        observer.schedule(handler, str(resolved), recursive=recursive)
        observer.start()

        with self._lock:
            self._observers[id(observer)] = observer

        def cancel() -> None:
            with self._lock:
                if self._observers.pop(id(observer), None) is None:
                    return
            observer.stop()
            if observer is not threading.current_thread():
                observer.join(timeout=5.0)

        return cancel

    def list_directory(self, path: str) -> Sequence[DirectoryEntry]:
        entries = []
        with os.scandir(self._resolve(path)) as it:
            for entry in it:
                attributes = FILE_ATTRIBUTE_DIRECTORY if entry.is_dir(follow_symlinks=False) else 0
                entries.append(DirectoryEntry(entry.name, attributes))
        return entries

    def close(self) -> None:
        """Stop all observers."""
        with self._lock:
            observers = list(self._observers.values())
            self._observers.clear()

        for observer in observers:
            observer.stop()
        for observer in observers:
            observer.join(timeout=5.0)

    def __len__(self) -> int:
        """Return the number of active watches."""
        with self._lock:
            return len(self._observers)


class LocalSession(RemoteSession):
    """Session over a local base directory; shares are its subdirectories."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self._trees: List[LocalTree] = []

    def open_share(self, name: str) -> LocalTree:
        root = self.base_dir / name if name else self.base_dir
        if not root.is_dir():
            raise FileNotFoundError(2, f"Share does not exist: {name}", str(root))
        tree = LocalTree(root)
        self._trees.append(tree)
        return tree

    def close(self) -> None:
        for tree in self._trees:
            tree.close()
        self._trees.clear()


class LocalShareClient(ShareClient):
    """
    Client for shares reachable as local directories, such as CIFS mounts.

    Credentials are not checked; only the share name is used to pick a
    subdirectory of ``base_dir``.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def authenticate(self, credentials: SmbCredentials) -> LocalSession:
        if not self.base_dir.is_dir():
            raise FileNotFoundError(2, f"Base directory does not exist: {self.base_dir}", str(self.base_dir))
        logger.debug("Using local base directory %s for %s", self.base_dir, credentials.host)
        return LocalSession(self.base_dir)
