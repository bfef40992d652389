import json

import pytest
from fastapi.testclient import TestClient

from cosmicforge.config import ServerConfig
from cosmicforge.errors import ConfigError, SaveNotFoundError, TamperError
from cosmicforge.server import API_PREFIX, SaveService, create_app
from cosmicforge.signing import generate_hash, verify_hash
from cosmicforge.storage import FileSaveBucket, MemorySaveBucket

IDENTITY = "player@example.com"


@pytest.fixture
def bucket():
    return MemorySaveBucket()


@pytest.fixture
def client(bucket):
    app = create_app(ServerConfig(save_secret="test-secret"), bucket)
    return TestClient(app)


def _save(client, **fields):
    payload = {"identity": IDENTITY, "energy": "25", "stardust": "3"}
    payload.update(fields)
    return client.post(f"{API_PREFIX}/save", json=payload)


def test_save_then_load(client):
    response = _save(client)
    assert response.status_code == 200
    assert response.json() == {"message": "Game saved successfully"}

    response = client.post(f"{API_PREFIX}/load", json={"identity": IDENTITY})
    assert response.status_code == 200
    assert response.json() == {"energy": "25", "stardust": "3"}


def test_email_alias_and_query_load(client):
    assert client.post(f"{API_PREFIX}/save", json={"email": IDENTITY, "energy": "7"}).status_code == 200

    response = client.get(f"{API_PREFIX}/load", params={"email": IDENTITY})
    assert response.status_code == 200
    assert response.json() == {"energy": "7"}


def test_save_overwrites(client):
    _save(client, energy="1")
    _save(client, energy="2")
    response = client.post(f"{API_PREFIX}/load", json={"identity": IDENTITY})
    assert response.json()["energy"] == "2"


@pytest.mark.parametrize("payload", [{}, {"identity": ""}, {"identity": "   "}, {"identity": 5}])
def test_identity_is_required(client, payload):
    for path in ("save", "load"):
        response = client.post(f"{API_PREFIX}/{path}", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "Email is required"}


def test_invalid_json_body(client):
    response = client.post(f"{API_PREFIX}/save", content=b"{nope",
                           headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_load_missing_save(client):
    response = client.post(f"{API_PREFIX}/load", json={"identity": "nobody@example.com"})
    assert response.status_code == 404
    assert response.json() == {"error": "No save data found for this email"}


def test_tampered_state_is_rejected(client, bucket):
    _save(client)
    envelope = json.loads(bucket.get(IDENTITY))
    envelope["serializedState"] = envelope["serializedState"].replace('"25"', '"26"')
    bucket.put(IDENTITY, json.dumps(envelope))

    response = client.post(f"{API_PREFIX}/load", json={"identity": IDENTITY})
    assert response.status_code == 400
    assert response.json() == {"error": "Save data has been tampered with!"}


def test_corrupt_envelope_is_rejected(client, bucket):
    bucket.put(IDENTITY, "not an envelope")
    response = client.post(f"{API_PREFIX}/load", json={"identity": IDENTITY})
    assert response.status_code == 400


def test_missing_secret_is_fatal(monkeypatch):
    monkeypatch.delenv("SAVE_SECRET", raising=False)
    with pytest.raises(ConfigError):
        create_app(bucket=MemorySaveBucket())
    with pytest.raises(ConfigError):
        ServerConfig(save_secret="")


def test_secret_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SAVE_SECRET", "from-env")
    monkeypatch.setenv("COSMICFORGE_SAVE_DIR", str(tmp_path))
    client = TestClient(create_app())
    assert _save(client).status_code == 200
    assert len(list(tmp_path.glob("*.json"))) == 1


def test_save_service_with_file_bucket(tmp_path):
    service = SaveService("s3cret", FileSaveBucket(tmp_path))
    service.save(IDENTITY, {"energy": "1"})
    assert service.load(IDENTITY) == {"energy": "1"}

    with pytest.raises(SaveNotFoundError):
        service.load("other@example.com")

    # a different secret cannot verify the stored tag
    with pytest.raises(TamperError):
        SaveService("other", FileSaveBucket(tmp_path)).load(IDENTITY)

    # file names do not leak the identity
    assert all(IDENTITY not in p.name for p in tmp_path.iterdir())


def test_hash_verification():
    tag = generate_hash("payload", "key")
    assert verify_hash("payload", tag, "key")
    assert not verify_hash("payload!", tag, "key")
    assert not verify_hash("payload", tag, "other-key")
    assert generate_hash("payload", "key") == tag
