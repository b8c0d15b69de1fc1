"""Looks up whether a changed entry is a file or a directory."""

import logging
import posixpath
from typing import Optional

from .errors import translate_error
from .interfaces import RemoteTree

logger = logging.getLogger(__name__)


def split_entry(path: str, filename: str):
    """
    Split a reported filename into (directory, name).

    Recursive watches report names relative to the watched folder, so
    ``sub\\a.txt`` under ``docs`` lives in ``docs/sub``.
    """
    normalized = filename.replace("\\", "/").strip("/")
    parent, name = posixpath.split(normalized)
    if parent:
        base = path.rstrip("/\\")
        directory = f"{base}/{parent}" if base else parent
        return directory, name
    return path, name


class TypeResolver:
    """Resolves entry types from a directory listing."""

    def resolve(self, tree: RemoteTree, path: str, filename: str) -> Optional[bool]:
        """
        Determine whether ``filename`` in ``path`` is a directory.

        A missing entry or a failed listing is an expected outcome and
        resolves to None.

        Args:
            tree: Connected share
            path: Watched directory
            filename: Entry name reported by the notification

        Returns:
            True for a directory, False for a file, None when unknown
        """
        directory, name = split_entry(path, filename)

        try:
            entries = tree.list_directory(directory)
        except Exception as e:
            logger.warning(
                "Listing %r failed, type of %r unknown: %s",
                directory, filename, translate_error(e),
            )
            return None

        for entry in entries:
            if entry.filename == name:
                return entry.is_directory

        logger.debug("Entry %r not found in %r, type unknown", name, directory)
        return None
