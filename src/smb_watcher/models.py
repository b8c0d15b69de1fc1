"""Data models for the SMB share watcher package."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional
import time


FILE_ATTRIBUTE_DIRECTORY = 0x10

# SMB2 CHANGE_NOTIFY action codes (MS-FSCC 2.7.1)
FILE_ACTION_ADDED = 0x01
FILE_ACTION_REMOVED = 0x02
FILE_ACTION_MODIFIED = 0x03
FILE_ACTION_RENAMED_OLD_NAME = 0x04
FILE_ACTION_RENAMED_NEW_NAME = 0x05
FILE_ACTION_ADDED_STREAM = 0x06
FILE_ACTION_REMOVED_STREAM = 0x07
FILE_ACTION_MODIFIED_STREAM = 0x08
FILE_ACTION_REMOVED_BY_DELETE = 0x09

ACTION_NAMES = {
    FILE_ACTION_ADDED: "FILE_ACTION_ADDED",
    FILE_ACTION_REMOVED: "FILE_ACTION_REMOVED",
    FILE_ACTION_MODIFIED: "FILE_ACTION_MODIFIED",
    FILE_ACTION_RENAMED_OLD_NAME: "FILE_ACTION_RENAMED_OLD_NAME",
    FILE_ACTION_RENAMED_NEW_NAME: "FILE_ACTION_RENAMED_NEW_NAME",
    FILE_ACTION_ADDED_STREAM: "FILE_ACTION_ADDED_STREAM",
    FILE_ACTION_REMOVED_STREAM: "FILE_ACTION_REMOVED_STREAM",
    FILE_ACTION_MODIFIED_STREAM: "FILE_ACTION_MODIFIED_STREAM",
    FILE_ACTION_REMOVED_BY_DELETE: "FILE_ACTION_REMOVED_BY_DELETE",
}


def action_name(action: int) -> str:
    """Return the FILE_ACTION_* name for an action code, or UNKNOWN."""
    return ACTION_NAMES.get(action, "UNKNOWN")


class EventKind(str, Enum):
    """Semantic event kinds a watch can be configured for."""
    FILE_CREATED = "fileCreated"
    FILE_DELETED = "fileDeleted"
    FILE_UPDATED = "fileUpdated"
    FOLDER_CREATED = "folderCreated"
    FOLDER_DELETED = "folderDeleted"
    FOLDER_UPDATED = "folderUpdated"
    WATCH_FOLDER_UPDATED = "watchFolderUpdated"


class ActionClass(Enum):
    """Abstract bucket a raw action code maps to."""
    CREATED = "created"
    DELETED = "deleted"
    UPDATED = "updated"

    @property
    def file_kind(self) -> EventKind:
        return _FILE_KINDS[self]

    @property
    def folder_kind(self) -> EventKind:
        return _FOLDER_KINDS[self]


_FILE_KINDS = {
    ActionClass.CREATED: EventKind.FILE_CREATED,
    ActionClass.DELETED: EventKind.FILE_DELETED,
    ActionClass.UPDATED: EventKind.FILE_UPDATED,
}

_FOLDER_KINDS = {
    ActionClass.CREATED: EventKind.FOLDER_CREATED,
    ActionClass.DELETED: EventKind.FOLDER_DELETED,
    ActionClass.UPDATED: EventKind.FOLDER_UPDATED,
}

# Raw action code to action class; codes not listed are dropped.
ACTION_CLASSES = {
    FILE_ACTION_ADDED: ActionClass.CREATED,
    FILE_ACTION_REMOVED: ActionClass.DELETED,
    FILE_ACTION_MODIFIED: ActionClass.UPDATED,
    FILE_ACTION_REMOVED_BY_DELETE: ActionClass.DELETED,
}


@dataclass(frozen=True)
class RawChangeRecord:
    """
    A single changed entry as reported by the protocol client.

    Attributes:
        action: Raw CHANGE_NOTIFY action code
        filename: Entry name, relative to the watched directory
    """
    action: int
    filename: str


@dataclass(frozen=True)
class DirectoryEntry:
    """
    One entry of a remote directory listing.

    Attributes:
        filename: Entry name
        file_attributes: FILE_ATTRIBUTE_* bit flags
    """
    filename: str
    file_attributes: int = 0

    @property
    def is_directory(self) -> bool:
        return bool(self.file_attributes & FILE_ATTRIBUTE_DIRECTORY)


@dataclass(frozen=True)
class WatchRequest:
    """
    What to watch and which event kind to report.

    Attributes:
        path: Directory on the share to watch
        recursive: Passed through to the subscription
        target_event: The event kind the consumer asked for
    """
    path: str
    recursive: bool
    target_event: EventKind


@dataclass(frozen=True)
class ClassifiedEvent:
    """
    A raw record after classification.

    Attributes:
        candidates: Event kinds the record could represent
        action: Raw action code
        filename: Entry name from the record
        path: Watched directory the record was reported for
        is_directory: True/False when resolved, None when unknown
    """
    candidates: FrozenSet[EventKind]
    action: int
    filename: str
    path: str
    is_directory: Optional[bool] = None

    def matches(self, target: EventKind) -> bool:
        """
        Check whether the requested event kind applies to this record.

        watchFolderUpdated applies to every update, resolved or not.
        """
        if target is EventKind.WATCH_FOLDER_UPDATED:
            return ACTION_CLASSES.get(self.action) is ActionClass.UPDATED
        return target in self.candidates


@dataclass(frozen=True)
class TriggerEvent:
    """
    An event delivered to the consumer.

    Attributes:
        event: The matched event kind (the watch's target)
        action: Raw action code
        filename: Entry name
        path: Watched directory
        is_directory: True/False when resolved, None when unknown
        timestamp: Unix timestamp when the event was classified
    """
    event: EventKind
    action: int
    filename: str
    path: str
    is_directory: Optional[bool] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def action_name(self) -> str:
        return action_name(self.action)

    @classmethod
    def from_classified(cls, classified: ClassifiedEvent, event: EventKind) -> "TriggerEvent":
        return cls(
            event=event,
            action=classified.action,
            filename=classified.filename,
            path=classified.path,
            is_directory=classified.is_directory,
        )

    def to_dict(self) -> dict:
        """Convert to the output record handed to consumers."""
        return {
            "event": self.event.value,
            "action": self.action,
            "actionName": self.action_name,
            "filename": self.filename,
            "path": self.path,
            "isDirectory": "unknown" if self.is_directory is None else self.is_directory,
        }
