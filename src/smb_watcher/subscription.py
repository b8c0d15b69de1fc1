"""Change-notification subscription and its processing loop."""

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .classifier import ChangeClassifier
from .emitter import Emitter
from .errors import translate_error
from .exceptions import SubscriptionError, WatchStateError
from .interfaces import RemoteTree
from .models import RawChangeRecord, TriggerEvent, WatchRequest

logger = logging.getLogger(__name__)


class SubscriptionState(Enum):
    """Lifecycle states of a subscription."""
    IDLE = "idle"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    STOPPING = "stopping"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class _Failure:
    error: BaseException


_CLOSE = object()


class SubscriptionManager:
    """
    Runs one directory watch from registration to cancellation.

    Notifications from the client are queued as batches and consumed by
    a dedicated processing thread, which classifies each record in
    delivery order and emits the ones matching the requested event kind.
    A close sentinel on the same queue ends the loop.
    """

    def __init__(
        self,
        tree: RemoteTree,
        request: WatchRequest,
        emitter: Emitter,
        closer: Optional[Callable[[], None]] = None,
        classifier: Optional[ChangeClassifier] = None,
        on_error: Optional[Callable[[SubscriptionError], None]] = None,
        join_timeout: float = 5.0,
    ):
        """
        Initialize the subscription.

        Args:
            tree: Connected share to watch
            request: Path, recursion flag and target event kind
            emitter: Receives matched events
            closer: Releases the session once the watch ends
            classifier: Record classifier (a default one is created)
            on_error: Called once if an active watch drops
            join_timeout: Seconds to wait for the processing loop on stop
        """
        self.tree = tree
        self.request = request
        self.emitter = emitter
        self.classifier = classifier or ChangeClassifier()
        self.on_error = on_error
        self.join_timeout = join_timeout

        self._closer = closer
        self._cancel: Optional[Callable[[], None]] = None
        self._state = SubscriptionState.IDLE
        self._error: Optional[SubscriptionError] = None
        self._queue: "queue.Queue" = queue.Queue()
        self._stop_requested = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def error(self) -> Optional[SubscriptionError]:
        """The failure that ended the watch, if any."""
        return self._error

    @property
    def is_active(self) -> bool:
        return self._state == SubscriptionState.ACTIVE

    def start(self) -> None:
        """
        Register the directory watch and start processing notifications.

        Raises:
            WatchStateError: If the subscription was already started
            SubscriptionError: If the client rejects the registration
        """
        with self._lock:
            if self._state != SubscriptionState.IDLE:
                raise WatchStateError(f"Cannot start subscription in state {self._state.value}")
            self._state = SubscriptionState.SUBSCRIBING

        path = self.request.path
        logger.info(
            "Watching %r for %s (recursive=%s)",
            path, self.request.target_event.value, self.request.recursive,
        )

        try:
            cancel = self.tree.watch_directory(
                path,
                self._on_notification,
                self.request.recursive,
                self._on_error,
            )
        except Exception as e:
            error = SubscriptionError(f"Failed to watch {path!r}: {translate_error(e)}", e)
            with self._lock:
                self._state = SubscriptionState.FAILED
                self._error = error
            logger.error("%s", error)
            self._release()
            raise error from e

        with self._lock:
            self._cancel = cancel
            stopped = self._stop_requested.is_set()
            if not stopped:
                self._state = SubscriptionState.ACTIVE

        if stopped:
            # stop() ran while the registration was in flight
            self._release()
            return

        self._thread = threading.Thread(
            target=self._process_loop,
            name=f"SubscriptionLoop-{path}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """
        Cancel the watch and release the session.

        Safe to call more than once; later calls do nothing. A batch that
        is already being processed is allowed to finish.
        """
        with self._lock:
            if self._state in (
                SubscriptionState.STOPPING,
                SubscriptionState.CLOSED,
                SubscriptionState.FAILED,
            ):
                return
            previous = self._state
            self._state = SubscriptionState.STOPPING
            self._stop_requested.set()

        self._queue.put(_CLOSE)

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.join_timeout)

        self._release()

        with self._lock:
            self._state = SubscriptionState.CLOSED

        if previous == SubscriptionState.ACTIVE:
            logger.info("Stopped watching %r", self.request.path)

    def process_batch(self, records: Sequence[RawChangeRecord]) -> List[TriggerEvent]:
        """
        Classify one notification's records and emit the matches.

        Args:
            records: Raw records in delivery order

        Returns:
            The events that were emitted
        """
        target = self.request.target_event
        emitted = []

        for record in records:
            classified = self.classifier.classify(record, self.tree, self.request.path)
            if classified is None or not classified.matches(target):
                continue

            event = TriggerEvent.from_classified(classified, target)
            try:
                self.emitter.emit(event)
            except Exception:
                logger.exception("Emitter failed for %r", record.filename)
                continue
            emitted.append(event)

        return emitted

    def _on_notification(self, records: Sequence[RawChangeRecord]) -> None:
        """Client callback: queue a notification for the processing loop."""
        if self._stop_requested.is_set():
            logger.debug("Watch stopping, dropping notification with %d record(s)", len(records))
            return
        logger.debug("Notification for %r: %s", self.request.path, list(records))
        self._queue.put(list(records))

    def _on_error(self, error: BaseException) -> None:
        """Client callback: the subscription dropped."""
        if self._stop_requested.is_set():
            logger.debug("Ignoring error after stop: %r", error)
            return
        self._queue.put(_Failure(error))

    def _process_loop(self) -> None:
        logger.debug("Processing loop started for %r", self.request.path)

        while True:
            item = self._queue.get()

            if item is _CLOSE:
                break

            if isinstance(item, _Failure):
                self._fail(item.error)
                break

            if self._stop_requested.is_set():
                continue

            try:
                self.process_batch(item)
            except Exception:
                logger.exception("Error processing notification for %r", self.request.path)

        logger.debug("Processing loop finished for %r", self.request.path)

    def _fail(self, cause: BaseException) -> None:
        with self._lock:
            if self._state not in (SubscriptionState.SUBSCRIBING, SubscriptionState.ACTIVE):
                return
            self._state = SubscriptionState.FAILED
            self._stop_requested.set()
            error = SubscriptionError(
                f"Watch on {self.request.path!r} failed: {translate_error(cause)}", cause
            )
            self._error = error

        logger.error("%s", error)
        self._release()

        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception:
            logger.exception("Error callback raised")

    def _release(self) -> None:
        """Cancel the subscription and close the session, each at most once."""
        with self._lock:
            cancel, self._cancel = self._cancel, None
            closer, self._closer = self._closer, None

        if cancel is not None:
            self._call(cancel, "subscription")
        if closer is not None:
            self._call(closer, "session")

    @staticmethod
    def _call(release: Callable[[], None], what: str) -> None:
        try:
            release()
        except Exception as e:
            logger.warning("Error releasing %s: %s", what, translate_error(e))

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
