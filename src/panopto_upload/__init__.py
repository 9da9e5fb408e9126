"""Client for the two-phase session upload workflow."""

from .client import Client, UploadSession
from .domain.session import Session, SessionState
from .exceptions import (
    MalformedUploadTarget,
    ServiceCallFailed,
    TransferAttemptsExhausted,
    Unauthorized,
    UnrecoverableTransferError,
    UploadClientError,
)

__all__ = [
    "Client",
    "MalformedUploadTarget",
    "ServiceCallFailed",
    "Session",
    "SessionState",
    "TransferAttemptsExhausted",
    "Unauthorized",
    "UnrecoverableTransferError",
    "UploadClientError",
    "UploadSession",
]
