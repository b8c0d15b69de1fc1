"""Tests for change classifier module."""

import pytest

from src.smb_watcher.classifier import ChangeClassifier, action_class, candidate_kinds
from src.smb_watcher.models import ActionClass, EventKind, RawChangeRecord


FILE_AND_FOLDER_DELETED = frozenset({EventKind.FILE_DELETED, EventKind.FOLDER_DELETED})


class RecordingResolver:
    """Resolver returning a fixed answer and counting lookups."""

    def __init__(self, answer):
        self.answer = answer
        self.calls = []

    def resolve(self, tree, path, filename):
        self.calls.append((path, filename))
        return self.answer


class TestActionClass:
    @pytest.mark.parametrize("code,expected", [
        (1, ActionClass.CREATED),
        (2, ActionClass.DELETED),
        (3, ActionClass.UPDATED),
        (9, ActionClass.DELETED),
    ])
    def test_known_codes(self, code, expected):
        assert action_class(code) is expected

    @pytest.mark.parametrize("code", [0, 4, 5, 6, 7, 8, 10, 99, -1])
    def test_unknown_codes(self, code):
        assert action_class(code) is None


class TestCandidateKinds:
    def test_resolved_file_created(self):
        assert candidate_kinds(ActionClass.CREATED, False) == {EventKind.FILE_CREATED}

    def test_resolved_folder_created(self):
        assert candidate_kinds(ActionClass.CREATED, True) == {EventKind.FOLDER_CREATED}

    def test_resolved_update_adds_watch_folder(self):
        assert candidate_kinds(ActionClass.UPDATED, False) == {
            EventKind.FILE_UPDATED, EventKind.WATCH_FOLDER_UPDATED,
        }
        assert candidate_kinds(ActionClass.UPDATED, True) == {
            EventKind.FOLDER_UPDATED, EventKind.WATCH_FOLDER_UPDATED,
        }

    @pytest.mark.parametrize("action", list(ActionClass))
    def test_unknown_widens(self, action):
        assert candidate_kinds(action, None) == {action.file_kind, action.folder_kind}


class TestChangeClassifier:
    """Tests for ChangeClassifier class."""

    @pytest.mark.parametrize("code", [1, 2, 3, 9])
    @pytest.mark.parametrize("answer", [True, False, None])
    @pytest.mark.parametrize("filename", ["a.txt", "folder", "sub\\x", ""])
    def test_known_codes_produce_candidates(self, fake_tree, code, answer, filename):
        classifier = ChangeClassifier(RecordingResolver(answer))
        event = classifier.classify(RawChangeRecord(code, filename), fake_tree, "root")
        assert event is not None
        assert event.candidates

    @pytest.mark.parametrize("code", [0, 4, 5, 6, 7, 8, 99])
    def test_unknown_code_dropped(self, fake_tree, code):
        resolver = RecordingResolver(False)
        classifier = ChangeClassifier(resolver)
        assert classifier.classify(RawChangeRecord(code, "a.txt"), fake_tree, "root") is None
        assert resolver.calls == []

    @pytest.mark.parametrize("code", [2, 9])
    @pytest.mark.parametrize("answer", [True, False, None])
    def test_delete_is_always_wide(self, fake_tree, code, answer):
        resolver = RecordingResolver(answer)
        event = ChangeClassifier(resolver).classify(RawChangeRecord(code, "old"), fake_tree, "root")
        assert event.candidates == FILE_AND_FOLDER_DELETED
        assert event.is_directory is None
        assert resolver.calls == []

    @pytest.mark.parametrize("code,answer,expected", [
        (1, False, {EventKind.FILE_CREATED}),
        (1, True, {EventKind.FOLDER_CREATED}),
        (3, False, {EventKind.FILE_UPDATED, EventKind.WATCH_FOLDER_UPDATED}),
        (3, True, {EventKind.FOLDER_UPDATED, EventKind.WATCH_FOLDER_UPDATED}),
    ])
    def test_resolved_type_is_exact(self, fake_tree, code, answer, expected):
        event = ChangeClassifier(RecordingResolver(answer)).classify(
            RawChangeRecord(code, "entry"), fake_tree, "root"
        )
        assert event.candidates == expected
        assert event.is_directory is answer

    @pytest.mark.parametrize("code,expected", [
        (1, {EventKind.FILE_CREATED, EventKind.FOLDER_CREATED}),
        (3, {EventKind.FILE_UPDATED, EventKind.FOLDER_UPDATED}),
    ])
    def test_unknown_type_is_wide(self, fake_tree, code, expected):
        event = ChangeClassifier(RecordingResolver(None)).classify(
            RawChangeRecord(code, "entry"), fake_tree, "root"
        )
        assert event.candidates == expected
        assert event.is_directory is None

    def test_resolver_gets_path_and_name(self, fake_tree):
        resolver = RecordingResolver(False)
        ChangeClassifier(resolver).classify(RawChangeRecord(1, "a.txt"), fake_tree, "inbox")
        assert resolver.calls == [("inbox", "a.txt")]

    def test_carries_record_fields(self, fake_tree):
        event = ChangeClassifier(RecordingResolver(False)).classify(
            RawChangeRecord(1, "a.txt"), fake_tree, "inbox"
        )
        assert event.action == 1
        assert event.filename == "a.txt"
        assert event.path == "inbox"

    def test_uses_directory_listing_by_default(self, fake_tree):
        fake_tree.add_folder("inbox", "new-folder")
        event = ChangeClassifier().classify(RawChangeRecord(1, "new-folder"), fake_tree, "inbox")
        assert event.candidates == {EventKind.FOLDER_CREATED}
        assert not event.matches(EventKind.FILE_CREATED)

    def test_vanished_entry_matches_either(self, fake_tree):
        event = ChangeClassifier().classify(RawChangeRecord(3, "gone.txt"), fake_tree, "inbox")
        assert event.matches(EventKind.FILE_UPDATED)
        assert event.matches(EventKind.FOLDER_UPDATED)
        assert event.matches(EventKind.WATCH_FOLDER_UPDATED)
        assert EventKind.WATCH_FOLDER_UPDATED not in event.candidates

    @pytest.mark.parametrize("answer", [True, False, None])
    def test_watch_folder_matches_any_update(self, fake_tree, answer):
        event = ChangeClassifier(RecordingResolver(answer)).classify(
            RawChangeRecord(3, "x"), fake_tree, "root"
        )
        assert event.matches(EventKind.WATCH_FOLDER_UPDATED)

    @pytest.mark.parametrize("code", [1, 2, 9])
    @pytest.mark.parametrize("answer", [True, False, None])
    def test_watch_folder_ignores_non_updates(self, fake_tree, code, answer):
        event = ChangeClassifier(RecordingResolver(answer)).classify(
            RawChangeRecord(code, "x"), fake_tree, "root"
        )
        assert not event.matches(EventKind.WATCH_FOLDER_UPDATED)
