"""Configuration for the SMB share watcher package."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

from .exceptions import ConfigError
from .models import EventKind, WatchRequest


NTLM_VERSIONS = ("auto", "v1", "v2")

TRIGGER_SPECIFIC_FOLDER = "specificFolder"

_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off", "")


def _parse_bool(value: Any, name: str) -> bool:
    """Read a host-supplied boolean flag, accepting "true"/"false" strings."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ConfigError(f"{name} must be a boolean: {value!r}")


@dataclass(frozen=True)
class SmbCredentials:
    """
    Connection settings for one SMB share.

    Attributes:
        host: Server hostname or address
        username: Account name
        password: Account password (masked in repr, never logged)
        share: Share name on the server
        domain: Windows domain, empty for local accounts
        port: TCP port of the SMB service
        connect_timeout_ms: Timeout for establishing the connection
        request_timeout_ms: Timeout for individual requests
        ntlm_version: Authentication preference: "auto", "v1" or "v2"
    """
    host: str
    username: str
    password: str = field(repr=False)
    share: str
    domain: str = ""
    port: int = 445
    connect_timeout_ms: int = 15000
    request_timeout_ms: int = 15000
    ntlm_version: str = "auto"

    def __post_init__(self):
        if not self.host:
            raise ConfigError("host is required")
        if not self.share:
            raise ConfigError("share is required")
        if self.ntlm_version not in NTLM_VERSIONS:
            raise ConfigError(
                f"ntlm_version must be one of {', '.join(NTLM_VERSIONS)}: {self.ntlm_version}"
            )

    @property
    def account(self) -> str:
        """Account in DOMAIN\\user form, or the bare user name."""
        if self.domain:
            return f"{self.domain}\\{self.username}"
        return self.username

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def request_timeout(self) -> float:
        return self.request_timeout_ms / 1000.0

    @classmethod
    def from_env(cls, prefix: str = "SMB_", env_file: Optional[str] = None) -> "SmbCredentials":
        """
        Build credentials from environment variables.

        A .env file is loaded first (without overriding variables that
        are already set).

        Args:
            prefix: Prefix of the variable names
            env_file: Explicit .env path; searched for when omitted

        Returns:
            SmbCredentials built from the environment
        """
        load_dotenv(env_file)

        def get(name: str, default: str = "") -> str:
            return os.environ.get(f"{prefix}{name}", default)

        try:
            return cls(
                host=get("HOST"),
                username=get("USERNAME"),
                password=get("PASSWORD"),
                share=get("SHARE"),
                domain=get("DOMAIN"),
                port=int(get("PORT", "445")),
                connect_timeout_ms=int(get("CONNECT_TIMEOUT", "15000")),
                request_timeout_ms=int(get("REQUEST_TIMEOUT", "15000")),
                ntlm_version=get("NTLM_VERSION", "auto"),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting in environment: {e}") from e


@dataclass
class WatchConfig:
    """
    Host-supplied watch settings.

    Attributes:
        folder_to_watch: Directory on the share to watch
        event: Event kind to report
        recursive: Whether the subscription covers subfolders
        trigger_on: Trigger mode, only "specificFolder" is supported
    """
    folder_to_watch: str
    event: EventKind = EventKind.FILE_CREATED
    recursive: bool = False
    trigger_on: str = TRIGGER_SPECIFIC_FOLDER

    def __post_init__(self):
        if self.trigger_on != TRIGGER_SPECIFIC_FOLDER:
            raise ConfigError(f"Unsupported triggerOn value: {self.trigger_on}")
        if not isinstance(self.event, EventKind):
            try:
                self.event = EventKind(self.event)
            except (TypeError, ValueError):
                raise ConfigError(f"Unknown event: {self.event!r}") from None
        self.recursive = _parse_bool(self.recursive, "recursive")
        if self.folder_to_watch is None:
            self.folder_to_watch = ""

    @staticmethod
    def _extract_value(value: Union[str, Dict[str, Any], None]) -> str:
        # Resource-locator parameters arrive as {"mode": ..., "value": ...}
        if isinstance(value, dict):
            return value.get("value") or ""
        return value or ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatchConfig":
        """Create from the host's parameter dictionary."""
        return cls(
            folder_to_watch=cls._extract_value(data.get("folderToWatch")),
            event=data.get("event", EventKind.FILE_CREATED.value),
            recursive=data.get("recursive", False),
            trigger_on=data.get("triggerOn", TRIGGER_SPECIFIC_FOLDER),
        )

    def to_dict(self) -> dict:
        return {
            "triggerOn": self.trigger_on,
            "recursive": self.recursive,
            "folderToWatch": self.folder_to_watch,
            "event": self.event.value,
        }

    def to_watch_request(self) -> WatchRequest:
        return WatchRequest(
            path=self.folder_to_watch,
            recursive=self.recursive,
            target_event=self.event,
        )


def configure_logging(level: int = logging.INFO) -> None:
    """Set up root logging for hosts that have not configured it."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("smbprotocol").setLevel(logging.WARNING)
    logging.getLogger("spnego").setLevel(logging.WARNING)
