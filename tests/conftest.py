from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

HOST = "https://demo.example.com"


def session_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "ID": "upload-1",
        "FolderId": "folder-9",
        "SessionId": "sess-42",
        "UploadTarget": "https://demo.example.com/Panopto/Upload/abc123",
        "State": 0,
        "MessageId": None,
    }
    payload.update(overrides)
    return payload


class ControlPlaneStub:
    """Records requests and answers them from a route table."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def on(self, method: str, path: str, status: int, body: object = None) -> None:
        def _respond(request: httpx.Request) -> httpx.Response:
            if body is None:
                return httpx.Response(status)
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)

        self.routes[(method, path)] = _respond

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")
        return route(request)

    def client(self) -> httpx.Client:
        return httpx.Client(base_url=HOST, transport=httpx.MockTransport(self.handler))

    def last_json(self) -> object:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def control_plane() -> ControlPlaneStub:
    stub = ControlPlaneStub()
    stub.on("POST", "/Panopto/oauth2/connect/token", 200, {"access_token": "tok-123"})
    return stub
