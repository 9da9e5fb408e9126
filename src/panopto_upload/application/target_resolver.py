from __future__ import annotations

from panopto_upload.domain.transfer import TransferCoordinates
from panopto_upload.exceptions import MalformedUploadTarget


def resolve_upload_target(upload_target: str) -> TransferCoordinates:
    """Split ``<endpoint>/<bucket>/<prefix>`` into transfer coordinates.

    Segments are popped from the right: the endpoint keeps whatever slashes
    it has (scheme, host, path).
    """
    segments = upload_target.split("/")
    if len(segments) < 3:
        raise MalformedUploadTarget(
            f"Upload target {upload_target!r} must look like <endpoint>/<bucket>/<prefix>"
        )
    prefix = segments.pop()
    bucket = segments.pop()
    endpoint = "/".join(segments)
    if not prefix or not bucket or not endpoint:
        raise MalformedUploadTarget(
            f"Upload target {upload_target!r} has an empty endpoint, bucket or prefix"
        )
    return TransferCoordinates(endpoint=endpoint, bucket=bucket, object_key_prefix=prefix)
