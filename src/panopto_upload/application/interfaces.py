from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO, Protocol

if TYPE_CHECKING:
    from panopto_upload.domain.transfer import MultipartState, TransferOutcome


class ObjectStorageClient(Protocol):
    """Data-plane transfer engine driven by the resumable uploader.

    Implementations return ``NeedsMultipart`` instead of raising when a
    transfer has to continue as a chunked upload, and raise
    ``UnrecoverableTransferError`` for every other failure.
    """

    def simple_upload(
        self, endpoint: str, bucket: str, key: str, stream: BinaryIO
    ) -> "TransferOutcome": ...

    def resume_multipart_upload(
        self, endpoint: str, stream: BinaryIO, state: "MultipartState"
    ) -> "TransferOutcome": ...

    def abort_multipart_upload(self, endpoint: str, state: "MultipartState") -> None: ...
