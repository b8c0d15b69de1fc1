"""Classification of raw change records into semantic event candidates."""

import logging
from typing import FrozenSet, Optional

from .interfaces import RemoteTree
from .models import ACTION_CLASSES, ActionClass, ClassifiedEvent, EventKind, RawChangeRecord
from .type_resolver import TypeResolver

logger = logging.getLogger(__name__)


def action_class(action: int) -> Optional[ActionClass]:
    """Map a raw action code to its action class, None if unrecognized."""
    return ACTION_CLASSES.get(action)


def candidate_kinds(action: ActionClass, is_directory: Optional[bool]) -> FrozenSet[EventKind]:
    """
    Compute the event kinds a record could represent.

    Unknown type widens to both the file and folder variant. A resolved
    update additionally matches watchFolderUpdated.
    """
    if is_directory is None:
        return frozenset({action.file_kind, action.folder_kind})

    kind = action.folder_kind if is_directory else action.file_kind
    if action is ActionClass.UPDATED:
        return frozenset({kind, EventKind.WATCH_FOLDER_UPDATED})
    return frozenset({kind})


class ChangeClassifier:
    """
    Turns raw change records into classified events.

    Deleted entries are gone by the time they are reported, so their type
    is never looked up. Everything else is resolved through the
    TypeResolver, one listing per record.
    """

    def __init__(self, resolver: Optional[TypeResolver] = None):
        self.resolver = resolver or TypeResolver()

    def classify(self, record: RawChangeRecord, tree: RemoteTree, path: str) -> Optional[ClassifiedEvent]:
        """
        Classify one raw record.

        Args:
            record: Raw record from a notification
            tree: Connected share, used for type lookups
            path: Watched directory

        Returns:
            ClassifiedEvent, or None if the action code is unrecognized
        """
        action = action_class(record.action)
        if action is None:
            logger.debug("Dropping unrecognized action %s for %r", record.action, record.filename)
            return None

        if action is ActionClass.DELETED:
            is_directory = None
        else:
            is_directory = self.resolver.resolve(tree, path, record.filename)

        return ClassifiedEvent(
            candidates=candidate_kinds(action, is_directory),
            action=record.action,
            filename=record.filename,
            path=path,
            is_directory=is_directory,
        )
