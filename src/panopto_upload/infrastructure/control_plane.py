from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from panopto_upload.domain.session import Session, SessionState
from panopto_upload.exceptions import ServiceCallFailed
from panopto_upload.infrastructure.auth import AuthContext
from panopto_upload.infrastructure.responses import check_response_status, json_object
from panopto_upload.infrastructure.schemas import SessionUploadPayload

logger = logging.getLogger(__name__)


class ControlPlaneClient:
    """Session lifecycle calls against the REST control plane.

    Every call returns the server's snapshot; callers replace their local
    ``Session`` with it.
    """

    def __init__(
        self,
        http: httpx.Client,
        auth: AuthContext,
        *,
        path_prefix: str = "/Panopto",
    ) -> None:
        self._http = http
        self._auth = auth
        self._sessions_url = f"{path_prefix}/PublicAPI/Rest/sessionUpload"
        self._delete_url = f"{path_prefix}/api/v1/sessions"

    def create_session(self, folder_id: str) -> Session:
        headers = self._auth.authorization_header()
        response = self._http.post(
            self._sessions_url, headers=headers, json={"FolderId": folder_id}
        )
        check_response_status(response, 201)
        session = _to_session(response)
        logger.info("Created upload session %s in folder %s", session.id, folder_id)
        return session

    def finalize_session(self, session: Session) -> Session:
        headers = self._auth.authorization_header()
        body = session.to_payload()
        body["State"] = int(SessionState.UPLOAD_COMPLETE)
        response = self._http.put(
            f"{self._sessions_url}/{session.id}", headers=headers, json=body
        )
        check_response_status(response, 200)
        finalized = _to_session(response)
        logger.info("Finalized upload session %s (state %d)", finalized.id, finalized.state)
        return finalized

    def get_session_status(self, session: Session) -> tuple[Session, int]:
        headers = self._auth.authorization_header()
        response = self._http.get(f"{self._sessions_url}/{session.id}", headers=headers)
        check_response_status(response, 200)
        refreshed = _to_session(response)
        logger.debug("Upload session %s is in state %d", refreshed.id, refreshed.state)
        return refreshed, refreshed.state

    def delete_session(self, session_id: str) -> None:
        headers = self._auth.authorization_header()
        if not session_id:
            raise ValueError("session_id is required to delete a session")
        response = self._http.delete(f"{self._delete_url}/{session_id}", headers=headers)
        check_response_status(response, 200)
        logger.info("Deleted session %s", session_id)


def _to_session(response: httpx.Response) -> Session:
    body = json_object(response)
    try:
        return SessionUploadPayload.to_domain(body)
    except ValidationError as exc:
        raise ServiceCallFailed(response.status_code, response.text) from exc
