"""SMB2/3 client built on smbprotocol."""

import logging
import threading
import uuid
from typing import List, Optional, Sequence

from smbprotocol.change_notify import ChangeNotifyFlags, CompletionFilter, FileSystemWatcher
from smbprotocol.connection import Connection
from smbprotocol.exceptions import NoMoreFiles
from smbprotocol.file_info import FileInformationClass
from smbprotocol.open import (
    CreateDisposition,
    CreateOptions,
    DirectoryAccessMask,
    FileAttributes,
    ImpersonationLevel,
    Open,
    ShareAccess,
)
from smbprotocol.session import Session
from smbprotocol.tree import TreeConnect

from .config import SmbCredentials
from .errors import translate_error
from .interfaces import (
    CancelFunction,
    ErrorCallback,
    NotificationCallback,
    RemoteSession,
    RemoteTree,
    ShareClient,
)
from .models import DirectoryEntry, RawChangeRecord

logger = logging.getLogger(__name__)


AUTH_PROTOCOLS = {
    "auto": "negotiate",
    "v1": "ntlm",
    "v2": "ntlm",
}

DEFAULT_COMPLETION_FILTER = (
    CompletionFilter.FILE_NOTIFY_CHANGE_FILE_NAME
    | CompletionFilter.FILE_NOTIFY_CHANGE_DIR_NAME
    | CompletionFilter.FILE_NOTIFY_CHANGE_ATTRIBUTES
    | CompletionFilter.FILE_NOTIFY_CHANGE_SIZE
    | CompletionFilter.FILE_NOTIFY_CHANGE_LAST_WRITE
    | CompletionFilter.FILE_NOTIFY_CHANGE_CREATION
)

SHARE_ALL = ShareAccess.FILE_SHARE_READ | ShareAccess.FILE_SHARE_WRITE | ShareAccess.FILE_SHARE_DELETE


def to_share_path(path: str) -> str:
    """Convert a slash path into the backslash form SMB expects, relative to the share."""
    return path.replace("/", "\\").strip("\\")


def _text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-16-le")
    return value


def _open_directory(tree: TreeConnect, path: str, access: int) -> Open:
    dir_open = Open(tree, to_share_path(path))
    dir_open.create(
        ImpersonationLevel.Impersonation,
        access,
        FileAttributes.FILE_ATTRIBUTE_DIRECTORY,
        SHARE_ALL,
        CreateDisposition.FILE_OPEN,
        CreateOptions.FILE_DIRECTORY_FILE,
    )
    return dir_open


class _DirectoryWatch:
    """
    Keeps a CHANGE_NOTIFY request outstanding on an open directory.

    Each response is delivered as one notification and a new request is
    sent straight away.
    """

    def __init__(
        self,
        dir_open: Open,
        path: str,
        on_notification: NotificationCallback,
        on_error: Optional[ErrorCallback],
        recursive: bool,
        completion_filter: int = DEFAULT_COMPLETION_FILTER,
        output_buffer_length: int = 65536,
    ):
        self.dir_open = dir_open
        self.path = path
        self.on_notification = on_notification
        self.on_error = on_error
        self.flags = ChangeNotifyFlags.SMB2_WATCH_TREE if recursive else 0
        self.completion_filter = completion_filter
        self.output_buffer_length = output_buffer_length
        self._watcher: Optional[FileSystemWatcher] = None
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        # The first request is sent synchronously so that registration
        # errors reach the caller.
        self._arm()
        self._thread = threading.Thread(
            target=self._run,
            name=f"SmbWatch-{self.path}",
            daemon=True,
        )
        self._thread.start()

    def _arm(self) -> None:
        watcher = FileSystemWatcher(self.dir_open)
        watcher.start(
            self.completion_filter,
            flags=self.flags,
            output_buffer_length=self.output_buffer_length,
        )
        self._watcher = watcher

    def _run(self) -> None:
        try:
            while not self._cancelled.is_set():
                result = self._watcher.wait()
                if self._cancelled.is_set():
                    break

                records = [
                    RawChangeRecord(
                        action=int(entry["action"].get_value()),
                        filename=_text(entry["file_name"].get_value()),
                    )
                    for entry in (result or [])
                ]
                if records:
                    self.on_notification(records)
                else:
                    logger.debug("Empty change notification (buffer overflow or enum-dir)")

                self._arm()
        except Exception as e:
            if self._cancelled.is_set():
                logger.debug("Watch ended after cancel: %r", e)
                return
            if self.on_error is not None:
                self.on_error(e)
            else:
                logger.error("Watch dropped: %s", translate_error(e))

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()

        watcher = self._watcher
        if watcher is not None:
            try:
                watcher.cancel()
            except Exception as e:
                logger.debug("Cancelling change notify failed: %s", translate_error(e))

        # Closing the handle completes any request still outstanding.
        try:
            self.dir_open.close()
        except Exception as e:
            logger.debug("Closing watched directory failed: %s", translate_error(e))

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=5.0)


class SmbTree(RemoteTree):
    """A connected SMB share."""

    def __init__(self, tree: TreeConnect):
        self.tree = tree
        self._watches: List[_DirectoryWatch] = []
        self._lock = threading.Lock()

    def watch_directory(
        self,
        path: str,
        on_notification: NotificationCallback,
        recursive: bool = False,
        on_error: Optional[ErrorCallback] = None,
    ) -> CancelFunction:
        dir_open = _open_directory(
            self.tree,
            path,
            DirectoryAccessMask.FILE_LIST_DIRECTORY | DirectoryAccessMask.SYNCHRONIZE,
        )
        watch = _DirectoryWatch(dir_open, path, on_notification, on_error, recursive)
        try:
            watch.start()
        except Exception:
            watch.cancel()
            raise

        with self._lock:
            self._watches.append(watch)

        def cancel() -> None:
            with self._lock:
                if watch in self._watches:
                    self._watches.remove(watch)
            watch.cancel()

        return cancel

    def list_directory(self, path: str) -> Sequence[DirectoryEntry]:
        dir_open = _open_directory(
            self.tree,
            path,
            DirectoryAccessMask.FILE_LIST_DIRECTORY | DirectoryAccessMask.FILE_READ_ATTRIBUTES,
        )
        entries = []
        try:
            while True:
                try:
                    results = dir_open.query_directory(
                        "*", FileInformationClass.FILE_DIRECTORY_INFORMATION
                    )
                except NoMoreFiles:
                    break

                for info in results:
                    name = _text(info["file_name"].get_value())
                    if name in (".", ".."):
                        continue
                    entries.append(
                        DirectoryEntry(
                            filename=name,
                            file_attributes=int(info["file_attributes"].get_value()),
                        )
                    )
        finally:
            dir_open.close()
        return entries

    def close(self) -> None:
        with self._lock:
            watches = list(self._watches)
            self._watches.clear()
        for watch in watches:
            watch.cancel()
        self.tree.disconnect()


class SmbSession(RemoteSession):
    """An authenticated SMB session and the connection carrying it."""

    def __init__(self, connection: Connection, session: Session, host: str):
        self.connection = connection
        self.session = session
        self.host = host

    def open_share(self, name: str) -> SmbTree:
        tree = TreeConnect(self.session, f"\\\\{self.host}\\{name}")
        tree.connect()
        return SmbTree(tree)

    def close(self) -> None:
        try:
            self.session.disconnect()
        finally:
            self.connection.disconnect()


class SmbShareClient(ShareClient):
    """
    Creates SMB sessions with smbprotocol.

    Args:
        require_signing: Require signed messages on the connection
        require_encryption: Require SMB3 encryption on the session
    """

    def __init__(self, require_signing: bool = True, require_encryption: bool = False):
        self.require_signing = require_signing
        self.require_encryption = require_encryption

    def authenticate(self, credentials: SmbCredentials) -> SmbSession:
        connection = Connection(
            uuid.uuid4(),
            credentials.host,
            credentials.port,
            require_signing=self.require_signing,
        )
        connection.connect(timeout=credentials.connect_timeout)

        auth_protocol = AUTH_PROTOCOLS[credentials.ntlm_version]
        if credentials.ntlm_version != "auto":
            logger.debug(
                "NTLM %s requested, using NTLM authentication", credentials.ntlm_version
            )

        session = Session(
            connection,
            username=credentials.account,
            password=credentials.password,
            require_encryption=self.require_encryption,
            auth_protocol=auth_protocol,
        )
        try:
            session.connect()
        except Exception:
            connection.disconnect()
            raise

        return SmbSession(connection, session, credentials.host)
