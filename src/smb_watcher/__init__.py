"""
SMB Share Watcher Package

Watches a folder on an SMB2/3 share and turns raw change notifications
into typed file/folder events.

Features:
- Event kinds: fileCreated, fileDeleted, fileUpdated, folderCreated,
  folderDeleted, folderUpdated, watchFolderUpdated
- File/folder disambiguation via directory listing lookups
- Candidate widening when the entry type cannot be determined
- Readable messages for protocol and connection errors
- smbprotocol client for remote shares, watchdog client for local mounts
"""

from .models import (
    EventKind,
    ActionClass,
    RawChangeRecord,
    DirectoryEntry,
    WatchRequest,
    ClassifiedEvent,
    TriggerEvent,
    action_name,
)

from .config import SmbCredentials, WatchConfig, configure_logging

from .exceptions import (
    WatcherError,
    ConfigError,
    ConnectError,
    SubscriptionError,
    WatchStateError,
)

from .errors import translate_error, ERROR_CODES
from .interfaces import ShareClient, RemoteSession, RemoteTree
from .session import SessionCoordinator
from .type_resolver import TypeResolver
from .classifier import ChangeClassifier, action_class, candidate_kinds
from .emitter import Emitter, CallbackEmitter, QueueEmitter
from .subscription import SubscriptionManager, SubscriptionState
from .local_share import LocalShareClient
from .smb_client import SmbShareClient
from .trigger import ShareTrigger, start_watch


__all__ = [
    # Models
    "EventKind",
    "ActionClass",
    "RawChangeRecord",
    "DirectoryEntry",
    "WatchRequest",
    "ClassifiedEvent",
    "TriggerEvent",
    "action_name",
    # Config
    "SmbCredentials",
    "WatchConfig",
    "configure_logging",
    # Exceptions
    "WatcherError",
    "ConfigError",
    "ConnectError",
    "SubscriptionError",
    "WatchStateError",
    # Errors
    "translate_error",
    "ERROR_CODES",
    # Client interfaces
    "ShareClient",
    "RemoteSession",
    "RemoteTree",
    "LocalShareClient",
    "SmbShareClient",
    # Components
    "SessionCoordinator",
    "TypeResolver",
    "ChangeClassifier",
    "action_class",
    "candidate_kinds",
    "Emitter",
    "CallbackEmitter",
    "QueueEmitter",
    "SubscriptionManager",
    "SubscriptionState",
    # Main entry point
    "ShareTrigger",
    "start_watch",
]

__version__ = "0.1.0"
