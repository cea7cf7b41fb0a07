"""Application errors for libbump."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of application error kinds."""

    INVALID_VERSION_FORMAT = "invalid_version_format"
    FILE_NOT_FOUND = "file_not_found"
    LIBRARY_USAGE_NOT_FOUND = "library_usage_not_found"
    MAYBE_LIBRARY_DOWNGRADE = "maybe_library_downgrade"
    MISSING_REQUIRED_INPUT = "missing_required_input"
    INVALID_MANIFEST = "invalid_manifest"
    REMOTE_REQUEST_FAILED = "remote_request_failed"


class AppError(Exception):
    """An application-specific error, distinguishable from I/O and parsing errors.

    Callers should match on ``kind`` and read structured values from
    ``details`` rather than parse the message.
    """

    def __init__(self, kind: ErrorKind, message: str, **details: Any):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value!r}, message={self.message!r})"


def invalid_version_format(version: str) -> AppError:
    """Requested version is not an exact semantic version."""
    return AppError(
        ErrorKind.INVALID_VERSION_FORMAT,
        f"Library version '{version}' is not valid version number (x.y.z)",
        version=version,
    )


def file_not_found(path: str) -> AppError:
    """Manifest (or another referenced file) is absent."""
    return AppError(
        ErrorKind.FILE_NOT_FOUND,
        f"File at '{path}' is not found",
        path=path,
    )


def library_usage_not_found(library_name: str) -> AppError:
    """Library is not declared in any of the requested dependency kinds."""
    return AppError(
        ErrorKind.LIBRARY_USAGE_NOT_FOUND,
        f"Usage of library '{library_name}' is not found in package.json",
        library=library_name,
    )


def maybe_library_downgrade(current_version: str, new_version: str) -> AppError:
    """Requested version is lower than what the manifest currently declares."""
    return AppError(
        ErrorKind.MAYBE_LIBRARY_DOWNGRADE,
        f"Current library version '{current_version}' looks to be greater "
        f"than supplied version '{new_version}'",
        current_version=current_version,
        new_version=new_version,
    )


def missing_required_input(name: str) -> AppError:
    return AppError(
        ErrorKind.MISSING_REQUIRED_INPUT,
        f"Missing required script argument: '{name}'",
        name=name,
    )


def invalid_manifest(path: str, reason: str, *, not_json: bool = False) -> AppError:
    """Manifest could not be parsed or does not have the expected shape."""
    if not_json:
        message = f"Manifest at '{path}' is not valid JSON: {reason}"
    else:
        message = f"Manifest at '{path}' is malformed: {reason}"
    return AppError(ErrorKind.INVALID_MANIFEST, message, path=path, reason=reason)


def remote_request_failed(method: str, url: str, status: int, body: str) -> AppError:
    return AppError(
        ErrorKind.REMOTE_REQUEST_FAILED,
        f"Remote request failed: {method} {url} returned {status}: {body}",
        method=method,
        url=url,
        status=status,
        body=body,
    )
