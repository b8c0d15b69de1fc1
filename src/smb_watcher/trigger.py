"""Main entry point wiring session, subscription and emitter together."""

import logging
from typing import Any, Callable, Dict, Optional, Union

from .classifier import ChangeClassifier
from .config import SmbCredentials, WatchConfig
from .emitter import CallbackEmitter, Emitter
from .exceptions import SubscriptionError, WatchStateError
from .interfaces import ShareClient
from .session import SessionCoordinator
from .subscription import SubscriptionManager, SubscriptionState

logger = logging.getLogger(__name__)


class ShareTrigger:
    """
    One watch on one share folder.

    Opens its own session, subscribes to the configured folder and feeds
    matched events to the emitter until ``stop`` is called or the
    connection drops.
    """

    def __init__(
        self,
        credentials: SmbCredentials,
        config: WatchConfig,
        emitter: Emitter,
        client: Optional[ShareClient] = None,
        on_error: Optional[Callable[[SubscriptionError], None]] = None,
        classifier: Optional[ChangeClassifier] = None,
    ):
        """
        Initialize the trigger.

        Args:
            credentials: Server, account and share settings
            config: Folder, event kind and recursion flag
            emitter: Receives matched events
            client: Protocol client, defaults to the smbprotocol one
            on_error: Called once if the watch drops after starting
            classifier: Record classifier override
        """
        if client is None:
            from .smb_client import SmbShareClient
            client = SmbShareClient()

        self.credentials = credentials
        self.config = config
        self.emitter = emitter
        self.on_error = on_error
        self._coordinator = SessionCoordinator(client)
        self._classifier = classifier
        self._subscription: Optional[SubscriptionManager] = None

    def start(self) -> "ShareTrigger":
        """
        Connect and start watching.

        Raises:
            ConnectError: If authentication or the share connection fails
            SubscriptionError: If the watch cannot be registered
            WatchStateError: If the trigger was already started
        """
        if self._subscription is not None:
            raise WatchStateError("Trigger has already been started")

        tree, closer = self._coordinator.open(self.credentials)

        try:
            subscription = SubscriptionManager(
                tree,
                self.config.to_watch_request(),
                self.emitter,
                closer=closer,
                classifier=self._classifier,
                on_error=self.on_error,
            )
        except Exception:
            closer()
            raise

        self._subscription = subscription
        try:
            subscription.start()
        except SubscriptionError:
            raise
        except Exception:
            logger.exception("Unexpected error starting watch on %r", self.config.folder_to_watch)
            subscription.stop()
            raise
        return self

    def stop(self) -> None:
        """Stop watching and disconnect. Safe to call repeatedly."""
        if self._subscription is not None:
            self._subscription.stop()
        else:
            self._coordinator.close()

    close = stop

    @property
    def state(self) -> SubscriptionState:
        if self._subscription is None:
            return SubscriptionState.IDLE
        return self._subscription.state

    @property
    def error(self) -> Optional[SubscriptionError]:
        if self._subscription is None:
            return None
        return self._subscription.error

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


def start_watch(
    credentials: SmbCredentials,
    config: Union[WatchConfig, Dict[str, Any]],
    on_event: Callable[[dict], None],
    on_error: Optional[Callable[[SubscriptionError], None]] = None,
    client: Optional[ShareClient] = None,
) -> ShareTrigger:
    """
    Start watching a share folder.

    Args:
        credentials: Server, account and share settings
        config: WatchConfig or the host's parameter dictionary
        on_event: Called with one output dictionary per matched event
        on_error: Called once if the watch drops after starting
        client: Protocol client, defaults to the smbprotocol one

    Returns:
        The running trigger; call ``stop()`` to end the watch
    """
    if isinstance(config, dict):
        config = WatchConfig.from_dict(config)

    trigger = ShareTrigger(
        credentials,
        config,
        CallbackEmitter(on_event),
        client=client,
        on_error=on_error,
    )
    return trigger.start()
