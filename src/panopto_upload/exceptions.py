"""Exceptions raised by the session upload client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from panopto_upload.domain.transfer import MultipartState


class UploadClientError(Exception):
    """Base exception for the session upload client."""


class Unauthorized(UploadClientError):
    """Raised when a control-plane call is made before authenticate()."""

    def __init__(self, message: str = "Client has not been authorized.") -> None:
        super().__init__(message)


class ServiceCallFailed(UploadClientError):
    """Raised when the control plane answers with an unexpected status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(body)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        return f"HTTP {self.status_code}: {self.body}"


class MalformedUploadTarget(UploadClientError, ValueError):
    """Raised when an upload target cannot be split into endpoint/bucket/prefix."""


class UnrecoverableTransferError(UploadClientError):
    """Raised when the object store fails in a way the uploader cannot resume."""

    def __init__(self, message: str, *, object_key: str | None = None) -> None:
        super().__init__(message)
        self.object_key = object_key


class TransferAttemptsExhausted(UnrecoverableTransferError):
    def __init__(
        self,
        *,
        object_key: str,
        attempts: int,
        state: "MultipartState | None" = None,
    ) -> None:
        super().__init__(
            f"Upload of {object_key} did not complete after {attempts} attempts",
            object_key=object_key,
        )
        self.attempts = attempts
        self.state = state
