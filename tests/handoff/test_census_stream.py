import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from src.handoff.main import app
from src.handoff.services.identity.service import identity_service


@pytest.fixture
def token():
    return identity_service.sign_in_anonymously().token


def test_stream_pushes_initial_and_updated_census(token):
    headers = {"X-Auth-Token": token}
    with TestClient(app) as client:
        with client.websocket_connect(f"/api/v1/patients/stream?token={token}") as websocket:
            initial = websocket.receive_json()
            assert initial["patients"] == []
            assert initial["collectionPath"].endswith("/patients")

            created = client.post("/api/v1/patients/", json={"roomNumber": "12", "name": "A"}, headers=headers)
            assert created.status_code == 201
            after_create = websocket.receive_json()
            assert [p["roomNumber"] for p in after_create["patients"]] == ["12"]

            patient_id = created.json()["id"]
            client.delete(f"/api/v1/patients/{patient_id}", params={"confirm": "true"}, headers=headers)
            after_delete = websocket.receive_json()
            assert after_delete["patients"] == []

            websocket.send_text("stop")


def test_stream_rejects_unknown_session_token():
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as excinfo:
            with client.websocket_connect("/api/v1/patients/stream?token=bogus") as websocket:
                websocket.receive_json()
        assert excinfo.value.code == 1008


def test_stream_ends_when_session_signs_out(token):
    with TestClient(app) as client:
        with client.websocket_connect(f"/api/v1/patients/stream?token={token}") as websocket:
            websocket.receive_json()

            client.post("/api/v1/auth/sign-out", headers={"X-Auth-Token": token})

            with pytest.raises(WebSocketDisconnect) as excinfo:
                websocket.receive_json()
            assert excinfo.value.code == 1000
