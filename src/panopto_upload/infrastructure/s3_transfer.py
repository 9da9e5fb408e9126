from __future__ import annotations

import logging
import math
import os
from typing import Any, BinaryIO, Callable

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from panopto_upload.config import MIN_MULTIPART_CHUNKSIZE
from panopto_upload.domain.transfer import (
    CompletedPart,
    MultipartState,
    NeedsMultipart,
    TransferCompleted,
    TransferOutcome,
)
from panopto_upload.exceptions import UnrecoverableTransferError

logger = logging.getLogger(__name__)

# The upload target carries the authorization, so requests are signed with
# throwaway keys.
PLACEHOLDER_ACCESS_KEY = "dummy"
PLACEHOLDER_SECRET_KEY = "dummy"

# S3 rejects PartNumber values above this.
MAX_PARTS = 10000

_RETRYABLE_ERROR_CODES = frozenset(
    {"RequestTimeout", "SlowDown", "InternalError", "ServiceUnavailable"}
)
_RETRYABLE_CORE_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)


def create_s3_client(endpoint_url: str, region_name: str = "us-east-1"):
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        region_name=region_name,
        aws_access_key_id=PLACEHOLDER_ACCESS_KEY,
        aws_secret_access_key=PLACEHOLDER_SECRET_KEY,
        config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


class S3ObjectStorageClient:
    """boto3-backed transfer engine for pre-authorized upload targets.

    Payloads above ``multipart_threshold`` are answered with ``NeedsMultipart``
    and a freshly opened multipart upload. A multipart attempt interrupted by
    a transient error returns ``NeedsMultipart`` again, carrying the parts
    already stored so the next attempt skips them. A permanent multipart
    failure aborts the upload before raising, so no parts are left behind.
    """

    def __init__(
        self,
        *,
        region_name: str = "us-east-1",
        multipart_threshold: int = 16 * 1024 * 1024,
        multipart_chunksize: int = MIN_MULTIPART_CHUNKSIZE,
        client_factory: Callable[[str, str], Any] = create_s3_client,
    ) -> None:
        if multipart_threshold < 0:
            raise ValueError("multipart_threshold must not be negative")
        if multipart_chunksize < 1:
            raise ValueError("multipart_chunksize must be positive")
        self._region_name = region_name
        self._threshold = multipart_threshold
        self._chunksize = multipart_chunksize
        self._client_factory = client_factory
        self._clients: dict[str, Any] = {}

    def simple_upload(
        self, endpoint: str, bucket: str, key: str, stream: BinaryIO
    ) -> TransferOutcome:
        client = self._client(endpoint)
        size = _stream_size(stream)
        if size > self._threshold:
            return self._begin_multipart(
                client,
                bucket=bucket,
                key=key,
                reason=f"{size} bytes exceeds simple upload threshold {self._threshold}",
            )
        try:
            response = client.put_object(
                Bucket=bucket, Key=key, Body=stream, ContentLength=size
            )
        except ClientError as exc:
            if _error_code(exc) == "EntityTooLarge":
                return self._begin_multipart(
                    client, bucket=bucket, key=key, reason="EntityTooLarge"
                )
            raise UnrecoverableTransferError(
                f"Upload of {key} failed: {exc}", object_key=key
            ) from exc
        except BotoCoreError as exc:
            raise UnrecoverableTransferError(
                f"Upload of {key} failed: {exc}", object_key=key
            ) from exc
        logger.debug("Stored %s/%s in a single request (%d bytes)", bucket, key, size)
        return TransferCompleted(key=key, location=response.get("Location"))

    def resume_multipart_upload(
        self, endpoint: str, stream: BinaryIO, state: MultipartState
    ) -> TransferOutcome:
        client = self._client(endpoint)
        start = stream.tell()
        size = _stream_size(stream)
        chunksize = self._effective_chunksize(size)
        part_count = max(1, math.ceil(size / chunksize))
        stored = state.uploaded_part_numbers
        parts = list(state.parts)

        for part_number in range(1, part_count + 1):
            if part_number in stored:
                continue
            stream.seek(start + (part_number - 1) * chunksize)
            chunk = stream.read(chunksize)
            try:
                response = client.upload_part(
                    Bucket=state.bucket,
                    Key=state.key,
                    UploadId=state.upload_id,
                    PartNumber=part_number,
                    Body=chunk,
                )
            except (ClientError, BotoCoreError) as exc:
                return self._interrupted(client, exc, state.with_parts(tuple(parts)))
            parts.append(CompletedPart(part_number=part_number, etag=response["ETag"]))
            logger.debug(
                "Stored part %d/%d of %s (%d bytes)",
                part_number,
                part_count,
                state.key,
                len(chunk),
            )

        committed = state.with_parts(tuple(parts))
        try:
            response = client.complete_multipart_upload(
                Bucket=state.bucket,
                Key=state.key,
                UploadId=state.upload_id,
                MultipartUpload={
                    "Parts": [
                        {"ETag": part.etag, "PartNumber": part.part_number}
                        for part in committed.parts
                    ]
                },
            )
        except (ClientError, BotoCoreError) as exc:
            return self._interrupted(client, exc, committed)
        logger.debug("Completed multipart upload %s for %s", state.upload_id, state.key)
        return TransferCompleted(key=state.key, location=response.get("Location"))

    def _begin_multipart(
        self, client: Any, *, bucket: str, key: str, reason: str
    ) -> NeedsMultipart:
        try:
            response = client.create_multipart_upload(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise UnrecoverableTransferError(
                f"Could not start multipart upload of {key}: {exc}", object_key=key
            ) from exc
        state = MultipartState(bucket=bucket, key=key, upload_id=response["UploadId"])
        return NeedsMultipart(state=state, reason=reason)

    def abort_multipart_upload(self, endpoint: str, state: MultipartState) -> None:
        """Discard the stored parts of ``state``; failures are only logged."""
        self._abort(self._client(endpoint), state)

    def _abort(self, client: Any, state: MultipartState) -> None:
        try:
            client.abort_multipart_upload(
                Bucket=state.bucket, Key=state.key, UploadId=state.upload_id
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning(
                "Could not abort multipart upload %s of %s: %s",
                state.upload_id,
                state.key,
                exc,
            )
            return
        logger.info("Aborted multipart upload %s of %s", state.upload_id, state.key)

    def _effective_chunksize(self, size: int) -> int:
        # Depends only on the payload size, so every resume splits identically.
        return max(self._chunksize, math.ceil(size / MAX_PARTS))

    def _interrupted(
        self, client: Any, exc: Exception, state: MultipartState
    ) -> NeedsMultipart:
        if not _is_retryable(exc):
            self._abort(client, state)
            raise UnrecoverableTransferError(
                f"Multipart upload of {state.key} failed: {exc}", object_key=state.key
            ) from exc
        logger.warning(
            "Multipart upload %s of %s interrupted after %d parts: %s",
            state.upload_id,
            state.key,
            len(state.parts),
            exc,
        )
        return NeedsMultipart(state=state, reason=str(exc))

    def _client(self, endpoint: str) -> Any:
        client = self._clients.get(endpoint)
        if client is None:
            client = self._client_factory(endpoint, self._region_name)
            self._clients[endpoint] = client
        return client


def _stream_size(stream: BinaryIO) -> int:
    """Bytes left between the current position and the end of ``stream``."""
    position = stream.tell()
    end = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return end - position


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, _RETRYABLE_CORE_ERRORS):
        return True
    if isinstance(exc, ClientError):
        if _error_code(exc) in _RETRYABLE_ERROR_CODES:
            return True
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return status >= 500
    return False
