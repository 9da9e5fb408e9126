import pytest

from conftest import session_payload
from panopto_upload.domain.session import Session
from panopto_upload.exceptions import ServiceCallFailed, Unauthorized
from panopto_upload.infrastructure.auth import AuthContext
from panopto_upload.infrastructure.control_plane import ControlPlaneClient

SESSIONS = "/Panopto/PublicAPI/Rest/sessionUpload"


def _clients(control_plane, *, authenticate=True):
    http = control_plane.client()
    auth = AuthContext(http)
    if authenticate:
        auth.authenticate("id", "secret", "user", "pw")
    return ControlPlaneClient(http, auth)


def _session(**overrides) -> Session:
    payload = session_payload(**overrides)
    return Session(
        id=payload["ID"],
        folder_id=payload["FolderId"],
        session_id=payload["SessionId"],
        upload_target=payload["UploadTarget"],
        state=payload["State"],
        payload=payload,
    )


def test_create_session_posts_folder_id_with_bearer_token(control_plane):
    control_plane.on("POST", SESSIONS, 201, session_payload())
    client = _clients(control_plane)

    session = client.create_session("folder-9")

    request = control_plane.requests[-1]
    assert request.headers["Authorization"] == "Bearer tok-123"
    assert control_plane.last_json() == {"FolderId": "folder-9"}
    assert session.id == "upload-1"
    assert session.folder_id == "folder-9"
    assert session.state == 0


def test_create_session_expects_201(control_plane):
    control_plane.on("POST", SESSIONS, 200, session_payload())
    client = _clients(control_plane)

    with pytest.raises(ServiceCallFailed) as excinfo:
        client.create_session("folder-9")

    assert excinfo.value.status_code == 200


def test_finalize_sends_snapshot_with_state_one_and_returns_server_copy(control_plane):
    server_copy = session_payload(State=0, UploadTarget="https://other/Panopto/Upload/x")
    control_plane.on("PUT", f"{SESSIONS}/upload-1", 200, server_copy)
    client = _clients(control_plane)
    local = _session()

    finalized = client.finalize_session(local)

    sent = control_plane.last_json()
    assert sent == {**session_payload(), "State": 1}
    assert finalized.state == 0
    assert finalized.upload_target == "https://other/Panopto/Upload/x"
    assert local.state == 0
    assert local.payload["State"] == 0


def test_finalize_of_a_hand_built_session_sends_its_fields(control_plane):
    control_plane.on("PUT", f"{SESSIONS}/upload-1", 200, session_payload(State=1))
    client = _clients(control_plane)
    local = Session(
        id="upload-1",
        folder_id="folder-9",
        session_id="sess-42",
        upload_target="https://host/Panopto/Upload/abc123",
        state=0,
    )

    client.finalize_session(local)

    assert control_plane.last_json() == {
        "ID": "upload-1",
        "FolderId": "folder-9",
        "SessionId": "sess-42",
        "UploadTarget": "https://host/Panopto/Upload/abc123",
        "State": 1,
    }


def test_get_session_status_returns_refreshed_session_and_state(control_plane):
    control_plane.on("GET", f"{SESSIONS}/upload-1", 200, session_payload(State=4))
    client = _clients(control_plane)

    refreshed, state = client.get_session_status(_session())

    assert state == 4
    assert refreshed.state == 4
    assert control_plane.requests[-1].headers["Authorization"] == "Bearer tok-123"


def test_delete_uses_session_id_not_upload_id(control_plane):
    control_plane.on("DELETE", "/Panopto/api/v1/sessions/sess-42", 200)
    client = _clients(control_plane)
    session = _session(ID="upload-1", SessionId="sess-42")

    client.delete_session(session.session_id)

    request = control_plane.requests[-1]
    assert request.method == "DELETE"
    assert request.url.path == "/Panopto/api/v1/sessions/sess-42"
    assert "upload-1" not in str(request.url)


def test_delete_requires_a_session_id(control_plane):
    client = _clients(control_plane)

    with pytest.raises(ValueError):
        client.delete_session("")


@pytest.mark.parametrize(
    "call",
    [
        lambda client: client.create_session("folder-9"),
        lambda client: client.finalize_session(_session()),
        lambda client: client.get_session_status(_session()),
        lambda client: client.delete_session("sess-42"),
    ],
)
def test_every_call_requires_authentication_before_network(control_plane, call):
    client = _clients(control_plane, authenticate=False)

    with pytest.raises(Unauthorized):
        call(client)

    assert control_plane.requests == []


def test_server_error_carries_body_verbatim(control_plane):
    control_plane.on("GET", f"{SESSIONS}/upload-1", 500, "upstream exploded")
    client = _clients(control_plane)

    with pytest.raises(ServiceCallFailed) as excinfo:
        client.get_session_status(_session())

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "upstream exploded"
    # No automatic retry.
    assert len(control_plane.requests) == 2


def test_unexpected_body_shape_is_a_failed_call(control_plane):
    control_plane.on("POST", SESSIONS, 201, {"ID": "only-id"})
    client = _clients(control_plane)

    with pytest.raises(ServiceCallFailed) as excinfo:
        client.create_session("folder-9")

    assert excinfo.value.status_code == 201
