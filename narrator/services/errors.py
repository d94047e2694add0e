"""Error taxonomy shared by every collaborator of the narration pipeline.

All failures are raised as ``NarrationError`` (or one of its seam-specific
subclasses) carrying a machine-readable ``ErrorKind`` plus the name of the
collaborator that produced it. The original exception is always chained via
``raise ... from exc`` so logs keep the full cause.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable failure codes."""

    # Orchestration
    EMPTY_BATCH = "EMPTY_BATCH"
    NO_VALID_CANDIDATES = "NO_VALID_CANDIDATES"
    PERSIST_FAILED = "PERSIST_FAILED"
    PERSIST_INCONSISTENCY = "PERSIST_INCONSISTENCY"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    METADATA_SAVE_FAILED = "METADATA_SAVE_FAILED"
    LINK_FAILED = "LINK_FAILED"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

    # Speech providers and failover
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    NO_PROVIDERS_CONFIGURED = "NO_PROVIDERS_CONFIGURED"
    ALL_PROVIDERS_FAILED = "ALL_PROVIDERS_FAILED"

    # Storage and content
    STORE_ERROR = "STORE_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONTENT_SOURCE_ERROR = "CONTENT_SOURCE_ERROR"


class NarrationError(RuntimeError):
    """Base error carrying a kind, the raising collaborator and an optional status."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        source: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.source = source
        self.status_code = status_code

    @property
    def code(self) -> str:
        return self.kind.value

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value}, source={self.source!r}, "
            f"status_code={self.status_code!r}, message={str(self)!r})"
        )


class ProviderError(NarrationError):
    """Raised by a speech provider; ``status_code`` is set only for remote failures."""

    def __init__(
        self,
        message: str,
        *,
        source: str,
        status_code: int | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        super().__init__(
            message,
            kind=kind or kind_for_status(status_code),
            source=source,
            status_code=status_code,
        )

    @property
    def is_authentication_failure(self) -> bool:
        return self.kind is ErrorKind.AUTHENTICATION_FAILED

    @property
    def is_rate_limited(self) -> bool:
        return self.kind is ErrorKind.RATE_LIMITED


class ProviderConfigError(NarrationError):
    """Raised when a provider cannot be constructed (e.g. missing credentials)."""

    def __init__(self, message: str, *, source: str) -> None:
        super().__init__(message, kind=ErrorKind.PROVIDER_NOT_CONFIGURED, source=source)


class FailoverError(NarrationError):
    """Raised by the failover manager once no provider can serve a request."""

    def __init__(self, message: str, *, kind: ErrorKind) -> None:
        super().__init__(message, kind=kind, source="failover")


class StoreError(NarrationError):
    """Raised when the record store fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.STORE_ERROR, source="record_store")


class StorageError(NarrationError):
    """Raised when blob storage persistence fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.STORAGE_ERROR, source="s3")


class ContentSourceError(NarrationError):
    """Raised when fetching candidate posts fails."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.CONTENT_SOURCE_ERROR,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, kind=kind, source="reddit", status_code=status_code)


class OrchestrationError(NarrationError):
    """Terminal failure of one narration run."""

    def __init__(self, message: str, *, kind: ErrorKind) -> None:
        super().__init__(message, kind=kind, source="orchestrator")


def kind_for_status(status_code: int | None) -> ErrorKind:
    """Classify a remote HTTP-like status into an error kind."""

    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION_FAILED
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    return ErrorKind.PROVIDER_ERROR


__all__ = [
    "ErrorKind",
    "NarrationError",
    "ProviderError",
    "ProviderConfigError",
    "FailoverError",
    "StoreError",
    "StorageError",
    "ContentSourceError",
    "OrchestrationError",
    "kind_for_status",
]
