from __future__ import annotations

import logging

import httpx

from panopto_upload.exceptions import Unauthorized
from panopto_upload.infrastructure.responses import check_response_status, parse_body
from panopto_upload.infrastructure.schemas import TokenResponse

logger = logging.getLogger(__name__)


class AuthContext:
    """Holds the bearer token obtained by one password-grant exchange.

    The token is scoped to this instance and is never refreshed.
    """

    def __init__(self, http: httpx.Client, *, path_prefix: str = "/Panopto") -> None:
        self._http = http
        self._path_prefix = path_prefix
        self._token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def authenticate(
        self, client_id: str, client_secret: str, username: str, password: str
    ) -> None:
        response = self._http.post(
            f"{self._path_prefix}/oauth2/connect/token",
            auth=(client_id, client_secret),
            data={
                "grant_type": "password",
                "username": username.lower(),
                "password": password,
                "scope": "api",
            },
        )
        check_response_status(response, 200)
        self._token = parse_body(response, TokenResponse).access_token
        logger.info("Authenticated as %s", username.lower())

    def require_authenticated(self) -> None:
        if self._token is None:
            raise Unauthorized()

    def authorization_header(self) -> dict[str, str]:
        self.require_authenticated()
        return {"Authorization": f"Bearer {self._token}"}
