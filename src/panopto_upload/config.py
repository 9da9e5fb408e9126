from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_MIB = 1024 * 1024
# S3 rejects non-final parts smaller than this.
MIN_MULTIPART_CHUNKSIZE = 5 * _MIB


def _load_repo_env() -> None:
    """Load the nearest .env starting from the working directory upward."""
    current = Path.cwd().resolve()
    for candidate in [current, *current.parents]:
        env_file = candidate / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_optional_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number") from exc


@dataclass(frozen=True)
class UploadClientConfig:
    host: str = ""
    path_prefix: str = "/Panopto"
    client_id: str = ""
    client_secret: str = ""
    username: str = ""
    password: str = ""
    http_timeout_seconds: float | None = None
    storage_region: str = "us-east-1"
    multipart_threshold_bytes: int = 16 * _MIB
    multipart_chunksize_bytes: int = MIN_MULTIPART_CHUNKSIZE
    max_transfer_attempts: int | None = None
    poll_interval_seconds: int = 10
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.multipart_chunksize_bytes < MIN_MULTIPART_CHUNKSIZE:
            raise ValueError(
                f"multipart_chunksize_bytes must be at least {MIN_MULTIPART_CHUNKSIZE}"
            )
        if self.max_transfer_attempts is not None and self.max_transfer_attempts < 1:
            raise ValueError("max_transfer_attempts must be positive when set")

    @property
    def normalized_path_prefix(self) -> str:
        prefix = self.path_prefix.strip("/")
        return f"/{prefix}" if prefix else ""


def load_config() -> UploadClientConfig:
    _load_repo_env()
    return UploadClientConfig(
        host=os.getenv("PANOPTO_HOST", ""),
        path_prefix=os.getenv("PANOPTO_PATH_PREFIX", "/Panopto"),
        client_id=os.getenv("PANOPTO_CLIENT_ID", ""),
        client_secret=os.getenv("PANOPTO_CLIENT_SECRET", ""),
        username=os.getenv("PANOPTO_USERNAME", ""),
        password=os.getenv("PANOPTO_PASSWORD", ""),
        http_timeout_seconds=_env_optional_float("PANOPTO_HTTP_TIMEOUT_SECONDS"),
        storage_region=os.getenv("PANOPTO_STORAGE_REGION", "us-east-1"),
        multipart_threshold_bytes=_env_int(
            "PANOPTO_MULTIPART_THRESHOLD_BYTES", 16 * _MIB
        ),
        multipart_chunksize_bytes=_env_int(
            "PANOPTO_MULTIPART_CHUNKSIZE_BYTES", MIN_MULTIPART_CHUNKSIZE
        ),
        max_transfer_attempts=_env_optional_int("PANOPTO_MAX_TRANSFER_ATTEMPTS"),
        poll_interval_seconds=_env_int("PANOPTO_POLL_INTERVAL_SECONDS", 10),
        log_level=os.getenv("PANOPTO_LOG_LEVEL", "INFO"),
    )
