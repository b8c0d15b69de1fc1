"""Tests for local share client module."""

import threading
import time
from types import SimpleNamespace

import pytest

from src.smb_watcher.local_share import ChangeNotifyHandler, LocalShareClient, LocalTree
from src.smb_watcher.models import RawChangeRecord


class TestChangeNotifyHandler:
    """Tests for ChangeNotifyHandler class."""

    def test_created(self, tmp_path):
        batches = []
        handler = ChangeNotifyHandler(tmp_path, batches.append)

        handler.on_created(SimpleNamespace(src_path=str(tmp_path / "a.txt")))

        assert batches == [[RawChangeRecord(1, "a.txt")]]

    def test_nested_name_uses_backslash(self, tmp_path):
        batches = []
        handler = ChangeNotifyHandler(tmp_path, batches.append)

        handler.on_modified(SimpleNamespace(src_path=str(tmp_path / "sub" / "b.txt")))

        assert batches == [[RawChangeRecord(3, "sub\\b.txt")]]

    def test_root_itself_skipped(self, tmp_path):
        batches = []
        handler = ChangeNotifyHandler(tmp_path, batches.append)

        handler.on_modified(SimpleNamespace(src_path=str(tmp_path)))

        assert batches == []

    def test_outside_root_skipped(self, tmp_path):
        batches = []
        handler = ChangeNotifyHandler(tmp_path / "watched", batches.append)

        handler.on_deleted(SimpleNamespace(src_path=str(tmp_path / "other.txt")))

        assert batches == []

    def test_moved(self, tmp_path):
        batches = []
        handler = ChangeNotifyHandler(tmp_path, batches.append)

        handler.on_moved(SimpleNamespace(
            src_path=str(tmp_path / "old.txt"),
            dest_path=str(tmp_path / "new.txt"),
        ))

        assert batches == [[RawChangeRecord(4, "old.txt"), RawChangeRecord(5, "new.txt")]]


class TestLocalTree:
    """Tests for LocalTree class."""

    def test_list_directory(self, tmp_path):
        (tmp_path / "a.txt").write_text("x")
        (tmp_path / "sub").mkdir()

        entries = {e.filename: e.is_directory for e in LocalTree(tmp_path).list_directory("")}

        assert entries == {"a.txt": False, "sub": True}

    def test_list_subdirectory(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "deep").mkdir()

        entries = LocalTree(tmp_path).list_directory("sub")

        assert [(e.filename, e.is_directory) for e in entries] == [("deep", True)]

    def test_watch_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LocalTree(tmp_path).watch_directory("missing", lambda records: None)

    def test_watch_and_cancel(self, tmp_path):
        tree = LocalTree(tmp_path)

        cancel = tree.watch_directory("", lambda records: None)
        assert len(tree) == 1

        cancel()
        cancel()
        assert len(tree) == 0

    def test_close_stops_watches(self, tmp_path):
        (tmp_path / "one").mkdir()
        (tmp_path / "two").mkdir()
        tree = LocalTree(tmp_path)

        tree.watch_directory("one", lambda records: None)
        tree.watch_directory("two", lambda records: None)
        tree.close()

        assert len(tree) == 0

    def test_detects_file_creation(self, tmp_path):
        records = []
        lock = threading.Lock()

        def callback(batch):
            with lock:
                records.extend(batch)

        tree = LocalTree(tmp_path)
        cancel = tree.watch_directory("", callback)

        # Give watcher time to start
        time.sleep(0.2)

        (tmp_path / "test.txt").write_text("hello")

        # Wait for event
        time.sleep(0.5)
        cancel()

        with lock:
            assert RawChangeRecord(1, "test.txt") in records

    def test_recursive_reports_nested_names(self, tmp_path):
        (tmp_path / "sub").mkdir()
        records = []
        lock = threading.Lock()

        def callback(batch):
            with lock:
                records.extend(batch)

        tree = LocalTree(tmp_path)
        cancel = tree.watch_directory("", callback, recursive=True)
        time.sleep(0.2)

        (tmp_path / "sub" / "nested.txt").write_text("hello")

        time.sleep(0.5)
        cancel()

        with lock:
            assert RawChangeRecord(1, "sub\\nested.txt") in records


class TestLocalShareClient:
    def test_open_share(self, tmp_path, credentials):
        (tmp_path / "data").mkdir()

        session = LocalShareClient(tmp_path).authenticate(credentials)
        tree = session.open_share("data")

        assert isinstance(tree, LocalTree)
        session.close()

    def test_missing_share(self, tmp_path, credentials):
        session = LocalShareClient(tmp_path).authenticate(credentials)

        with pytest.raises(FileNotFoundError):
            session.open_share("data")

    def test_missing_base_dir(self, tmp_path, credentials):
        with pytest.raises(FileNotFoundError):
            LocalShareClient(tmp_path / "nope").authenticate(credentials)
