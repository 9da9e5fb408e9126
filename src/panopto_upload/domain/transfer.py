from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union


@dataclass(frozen=True)
class TransferCoordinates:
    endpoint: str
    bucket: str
    object_key_prefix: str

    def object_key_for(self, filename: str) -> str:
        return f"{self.object_key_prefix}/{filename}"


@dataclass(frozen=True)
class CompletedPart:
    part_number: int
    etag: str


@dataclass(frozen=True)
class MultipartState:
    """Partial multipart upload, as handed back by the object store."""

    bucket: str
    key: str
    upload_id: str
    parts: Tuple[CompletedPart, ...] = ()

    @property
    def uploaded_part_numbers(self) -> frozenset[int]:
        return frozenset(part.part_number for part in self.parts)

    def with_parts(self, parts: Tuple[CompletedPart, ...]) -> "MultipartState":
        ordered = tuple(sorted(parts, key=lambda part: part.part_number))
        return MultipartState(
            bucket=self.bucket,
            key=self.key,
            upload_id=self.upload_id,
            parts=ordered,
        )


@dataclass(frozen=True)
class TransferCompleted:
    key: str
    location: str | None = None


@dataclass(frozen=True)
class NeedsMultipart:
    state: MultipartState
    reason: str = field(default="", compare=False)


TransferOutcome = Union[TransferCompleted, NeedsMultipart]
