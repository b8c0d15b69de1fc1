"""Shared fixtures and fake share clients."""

import pytest

from src.smb_watcher.config import SmbCredentials
from src.smb_watcher.interfaces import RemoteSession, RemoteTree, ShareClient
from src.smb_watcher.models import DirectoryEntry, FILE_ATTRIBUTE_DIRECTORY


class FakeTree(RemoteTree):
    """In-memory share driven by the test."""

    def __init__(self):
        self.listings = {}
        self.list_calls = []
        self.list_error = None
        self.watch_error = None
        self.watch_calls = []
        self.on_notification = None
        self.on_error = None
        self.cancel_count = 0
        self.cancel_error = None
        self.close_count = 0

    def add_file(self, path, name):
        self.listings.setdefault(path, []).append(DirectoryEntry(name, 0x20))

    def add_folder(self, path, name):
        self.listings.setdefault(path, []).append(DirectoryEntry(name, FILE_ATTRIBUTE_DIRECTORY))

    def notify(self, records):
        self.on_notification(records)

    def drop(self, error):
        self.on_error(error)

    def watch_directory(self, path, on_notification, recursive=False, on_error=None):
        self.watch_calls.append((path, recursive))
        if self.watch_error is not None:
            raise self.watch_error
        self.on_notification = on_notification
        self.on_error = on_error
        return self._cancel

    def _cancel(self):
        self.cancel_count += 1
        if self.cancel_error is not None:
            raise self.cancel_error

    def list_directory(self, path):
        self.list_calls.append(path)
        if self.list_error is not None:
            raise self.list_error
        return list(self.listings.get(path, []))

    def close(self):
        self.close_count += 1


class FakeSession(RemoteSession):
    def __init__(self, tree):
        self.tree = tree
        self.share_error = None
        self.shares = []
        self.close_count = 0

    def open_share(self, name):
        self.shares.append(name)
        if self.share_error is not None:
            raise self.share_error
        return self.tree

    def close(self):
        self.close_count += 1


class FakeClient(ShareClient):
    def __init__(self, session):
        self.session = session
        self.auth_error = None
        self.auth_calls = []

    def authenticate(self, credentials):
        self.auth_calls.append(credentials)
        if self.auth_error is not None:
            raise self.auth_error
        return self.session


class StatusError(Exception):
    """Error carrying an NTSTATUS value the way smbprotocol responses do."""

    def __init__(self, status, message=""):
        super().__init__(message)
        self.status = status


@pytest.fixture
def fake_tree():
    return FakeTree()


@pytest.fixture
def fake_session(fake_tree):
    return FakeSession(fake_tree)


@pytest.fixture
def fake_client(fake_session):
    return FakeClient(fake_session)


@pytest.fixture
def credentials():
    return SmbCredentials(
        host="fileserver",
        username="alice",
        password="s3cret",
        share="data",
        domain="CORP",
    )


@pytest.fixture
def status_error():
    return StatusError
