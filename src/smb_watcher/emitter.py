"""Delivery of matched events to the consumer."""

import queue
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .models import TriggerEvent


class Emitter(ABC):
    """Receives every event that matched the watch's target."""

    @abstractmethod
    def emit(self, event: TriggerEvent) -> None:
        pass


class CallbackEmitter(Emitter):
    """Hands each event to a callback as its output dictionary."""

    def __init__(self, callback: Callable[[dict], None]):
        self.callback = callback

    def emit(self, event: TriggerEvent) -> None:
        self.callback(event.to_dict())


class QueueEmitter(Emitter):
    """
    Puts events on a queue for pull-style consumers.

    Args:
        maxsize: Queue bound, 0 for unbounded
    """

    def __init__(self, maxsize: int = 0):
        self.queue: "queue.Queue[TriggerEvent]" = queue.Queue(maxsize)

    def emit(self, event: TriggerEvent) -> None:
        self.queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Optional[TriggerEvent]:
        """Return the next event, or None if none arrives within ``timeout``."""
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list:
        """Return all queued events without blocking."""
        events = []
        while True:
            try:
                events.append(self.queue.get_nowait())
            except queue.Empty:
                return events
