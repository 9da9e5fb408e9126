"""Caller-facing entry points: ``Client`` and the ``UploadSession`` handle."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx

from panopto_upload.application.interfaces import ObjectStorageClient
from panopto_upload.application.resumable_upload import ResumableUploader
from panopto_upload.config import UploadClientConfig
from panopto_upload.domain.session import Session
from panopto_upload.infrastructure.auth import AuthContext
from panopto_upload.infrastructure.control_plane import ControlPlaneClient
from panopto_upload.infrastructure.s3_transfer import S3ObjectStorageClient


class UploadSession:
    """Handle on one upload session.

    The wrapped snapshot is swapped for the server's copy whenever the
    ``Client`` finishes or refreshes the session.
    """

    def __init__(self, snapshot: Session, uploader: ResumableUploader) -> None:
        self._snapshot = snapshot
        self._uploader = uploader

    @property
    def snapshot(self) -> Session:
        return self._snapshot

    def id(self) -> str:
        return self._snapshot.id

    def session_id(self) -> str | None:
        return self._snapshot.session_id

    def data(self) -> dict[str, Any]:
        return self._snapshot.to_payload()

    def upload_file(self, file_path: str | Path) -> None:
        """Upload one file to the session's current upload target.

        Raises:
            MalformedUploadTarget: If the upload target cannot be decoded.
            UnrecoverableTransferError: If the object store rejects the file.
        """
        self._uploader.upload_file(self._snapshot, file_path)

    def _replace(self, snapshot: Session) -> None:
        self._snapshot = snapshot


class Client:
    """Authenticates against the control plane and manages upload sessions."""

    def __init__(
        self,
        host: str,
        *,
        config: UploadClientConfig | None = None,
        http_client: httpx.Client | None = None,
        storage: ObjectStorageClient | None = None,
    ) -> None:
        cfg = config or UploadClientConfig(host=host)
        self._owns_http = http_client is None
        self._http = http_client or _build_http_client(host, cfg)
        prefix = cfg.normalized_path_prefix
        self._auth = AuthContext(self._http, path_prefix=prefix)
        self._control_plane = ControlPlaneClient(
            self._http, self._auth, path_prefix=prefix
        )
        self._uploader = ResumableUploader(
            storage=storage
            or S3ObjectStorageClient(
                region_name=cfg.storage_region,
                multipart_threshold=cfg.multipart_threshold_bytes,
                multipart_chunksize=cfg.multipart_chunksize_bytes,
            ),
            max_attempts=cfg.max_transfer_attempts,
        )

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def authenticate(
        self, client_id: str, client_secret: str, username: str, password: str
    ) -> None:
        """Obtain a bearer token with the OAuth password grant.

        Raises:
            ServiceCallFailed: If the token endpoint does not answer 200.
        """
        self._auth.authenticate(client_id, client_secret, username, password)

    def new_session(self, folder_id: str) -> UploadSession:
        """Start a new upload session in ``folder_id``."""
        return UploadSession(self._control_plane.create_session(folder_id), self._uploader)

    def finish_session(self, session: UploadSession) -> Session:
        """Mark all files uploaded so processing can begin.

        The handle is updated with the server's snapshot, which is also
        returned.
        """
        finalized = self._control_plane.finalize_session(session.snapshot)
        session._replace(finalized)
        return finalized

    def get_session_status(self, session: UploadSession) -> int:
        """Refresh the handle from the server and return its state code."""
        refreshed, state = self._control_plane.get_session_status(session.snapshot)
        session._replace(refreshed)
        return state

    def delete_session(self, session_id: str) -> None:
        """Delete a session by its ``SessionId`` (not the upload ``ID``)."""
        self._control_plane.delete_session(session_id)


def _build_http_client(host: str, config: UploadClientConfig) -> httpx.Client:
    if config.http_timeout_seconds is None:
        return httpx.Client(base_url=host)
    return httpx.Client(base_url=host, timeout=config.http_timeout_seconds)
