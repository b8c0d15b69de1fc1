"""Translation of protocol and transport errors into readable messages."""

import errno
import socket
from typing import Any, Optional


# NTSTATUS values (as unsigned ints), HRESULT-wrapped Win32 codes and
# plain Win32/POSIX error numbers.
ERROR_CODES = {
    3221225525: "Access Denied - Check your permissions for this file/folder",
    3221225506: "File/Path Not Found",
    3221225514: "Invalid Parameter",
    3221225485: "Sharing Violation - File is in use by another process",
    3221225524: "Object Name Invalid",
    3221225534: "Not Enough Quota",
    3221225581: "Logon Failure - Check your username, password, and domain",
    3221226036: "Bad Network Name - The specified share does not exist on the server",
    2147942402: "Network Name Not Found - Share does not exist",
    2147942405: "Network Path Not Found",
    5: "Access Denied",
    32: "Sharing Violation",
    53: "Network Path Not Found",
    67: "Network Name Not Found",
    87: "Invalid Parameter",
    1314: "Network Error",
}

CONNECTION_REFUSED = "Could not connect to SMB server - Connection refused"
CONNECTION_TIMED_OUT = "Connection to SMB server timed out"
HOST_NOT_FOUND = "SMB server not found - Check the server address"
UNKNOWN_ERROR = "Unknown error occurred"

CONNECTION_ERRORS = {
    "ECONNREFUSED": CONNECTION_REFUSED,
    "ETIMEDOUT": CONNECTION_TIMED_OUT,
    "ENOTFOUND": HOST_NOT_FOUND,
    errno.ECONNREFUSED: CONNECTION_REFUSED,
    errno.ETIMEDOUT: CONNECTION_TIMED_OUT,
}


def _header_status(error: Any) -> Optional[int]:
    header = getattr(error, "header", None)
    if header is None:
        return None
    if isinstance(header, dict):
        return header.get("status")
    return getattr(header, "status", None)


def _error_code(error: Any) -> Any:
    # POSIX errno values overlap the Win32 numbers in ERROR_CODES
    code = None if isinstance(error, OSError) else getattr(error, "code", None)
    for value in (
        getattr(error, "status", None),
        _header_status(error),
        code,
    ):
        if value:
            return value
    return None


def _lookup(code: Any) -> Optional[str]:
    if isinstance(code, bool):
        return None
    try:
        return ERROR_CODES.get(int(code))
    except (TypeError, ValueError):
        return None


def _connection_failure(error: Any) -> Optional[str]:
    if isinstance(error, ConnectionRefusedError):
        return CONNECTION_REFUSED
    if isinstance(error, socket.gaierror):
        return HOST_NOT_FOUND
    if isinstance(error, (TimeoutError, socket.timeout)):
        return CONNECTION_TIMED_OUT
    for value in (getattr(error, "code", None), getattr(error, "errno", None)):
        if isinstance(value, (str, int)) and not isinstance(value, bool) and value in CONNECTION_ERRORS:
            return CONNECTION_ERRORS[value]
    return None


def _message(error: Any) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    if message:
        return str(message)
    if isinstance(error, BaseException) and error.args:
        return str(error)
    return ""


def translate_error(error: Any) -> str:
    """
    Turn any protocol, transport or auth error into a single readable line.

    Never raises.

    Args:
        error: Exception or error value, may be None

    Returns:
        Human-readable description of the error
    """
    if error is None:
        return UNKNOWN_ERROR

    try:
        code = _error_code(error)
        description = _lookup(code)
        if description:
            return f"{description} (Code: {code})"

        connection = _connection_failure(error)
        if connection:
            return connection

        message = _message(error)
        if message:
            return message

        status = _header_status(error)
        if status:
            return f"SMB server returned an error (Code: {status})"

        return str(error) or UNKNOWN_ERROR
    except Exception:
        return UNKNOWN_ERROR
