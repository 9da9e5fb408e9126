from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from panopto_upload.application.interfaces import ObjectStorageClient
from panopto_upload.application.target_resolver import resolve_upload_target
from panopto_upload.domain.session import Session
from panopto_upload.domain.transfer import (
    NeedsMultipart,
    TransferCompleted,
    TransferCoordinates,
)
from panopto_upload.exceptions import (
    TransferAttemptsExhausted,
    UnrecoverableTransferError,
)

logger = logging.getLogger(__name__)


class ResumableUploader:
    """Sends one local file to the session's upload target.

    A simple upload is tried first. When the store answers ``NeedsMultipart``
    the stream is rewound and the transfer continues as a multipart upload
    from the returned state, until a call completes. ``max_attempts`` caps
    the total number of storage calls; ``None`` keeps retrying.
    """

    def __init__(
        self,
        *,
        storage: ObjectStorageClient,
        max_attempts: int | None = None,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be positive when set")
        self._storage = storage
        self._max_attempts = max_attempts

    def upload_file(self, session: Session, local_path: str | Path) -> None:
        coordinates = resolve_upload_target(session.upload_target)
        path = Path(local_path)
        object_key = coordinates.object_key_for(path.name)
        try:
            with path.open("rb") as stream:
                completed = self._transfer(coordinates, object_key, stream)
        except OSError as exc:
            raise UnrecoverableTransferError(
                f"Could not read {path} for upload: {exc}", object_key=object_key
            ) from exc
        logger.info(
            "Uploaded %s to %s/%s", path.name, coordinates.bucket, completed.key
        )

    def _transfer(
        self,
        coordinates: TransferCoordinates,
        object_key: str,
        stream: BinaryIO,
    ) -> TransferCompleted:
        outcome = self._storage.simple_upload(
            coordinates.endpoint, coordinates.bucket, object_key, stream
        )
        attempts = 1
        while isinstance(outcome, NeedsMultipart):
            if self._max_attempts is not None and attempts >= self._max_attempts:
                self._storage.abort_multipart_upload(coordinates.endpoint, outcome.state)
                raise TransferAttemptsExhausted(
                    object_key=object_key, attempts=attempts, state=outcome.state
                )
            logger.info(
                "Continuing %s as multipart upload %s (%d parts stored, attempt %d)",
                object_key,
                outcome.state.upload_id,
                len(outcome.state.parts),
                attempts + 1,
            )
            stream.seek(0)
            outcome = self._storage.resume_multipart_upload(
                coordinates.endpoint, stream, outcome.state
            )
            attempts += 1
        return outcome
