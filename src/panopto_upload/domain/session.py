from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Mapping


class SessionState(IntEnum):
    UPLOADING = 0
    UPLOAD_COMPLETE = 1
    UPLOAD_CANCELLED = 2
    PROCESSING = 3
    COMPLETE = 4
    PROCESSING_ERROR = 5
    DELETING_FILES = 6
    DELETED = 7
    DELETING_ERROR = 8


TERMINAL_STATES = frozenset(
    {
        SessionState.UPLOAD_CANCELLED,
        SessionState.COMPLETE,
        SessionState.PROCESSING_ERROR,
        SessionState.DELETED,
        SessionState.DELETING_ERROR,
    }
)


@dataclass(frozen=True)
class Session:
    """Snapshot of a remote SessionUpload resource.

    ``payload`` is the full object as the control plane returned it, so a
    finalize request can send it back untouched apart from ``State``.
    """

    id: str
    folder_id: str
    session_id: str | None
    upload_target: str
    state: int
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def to_payload(self) -> dict[str, Any]:
        body = {
            "ID": self.id,
            "FolderId": self.folder_id,
            "SessionId": self.session_id,
            "UploadTarget": self.upload_target,
            "State": int(self.state),
        }
        body.update(self.payload)
        return body


def describe_state(state: int) -> str:
    try:
        return SessionState(state).name.lower()
    except ValueError:
        return f"unknown({state})"
