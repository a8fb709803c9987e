import httpx
import pytest
from fastapi.testclient import TestClient

from clpd.crypto import VERIFICATION_PLAINTEXT, decrypt, encrypt
from clpd.errors import AuthenticationError, NotInitializedError, TransportError
from clpd.models import ClipboardContent, ClipboardEntry, ContentType
from clpd.network import create_app
from clpd.services import LocalBackend, RemoteBackend

from conftest import TEST_PASSWORD, make_image


@pytest.fixture
def local(initialized_store):
    return LocalBackend(initialized_store)


@pytest.fixture
def remote(initialized_store):
    with TestClient(create_app(initialized_store)) as client:
        yield RemoteBackend(client=client)


@pytest.fixture(params=["local", "remote"])
def backend(request):
    return request.getfixturevalue(request.param)


def test_unlock_accepts_correct_password(backend):
    with backend.unlock(TEST_PASSWORD) as key:
        assert backend.verify_password(key)


def test_unlock_rejects_wrong_password(backend):
    with pytest.raises(AuthenticationError):
        backend.unlock("wrong-password")


def test_unlock_requires_initialization(store):
    with pytest.raises(NotInitializedError):
        LocalBackend(store).unlock(TEST_PASSWORD)

    with TestClient(create_app(store)) as client:
        remote = RemoteBackend(client=client)
        assert not remote.is_initialized()
        with pytest.raises(NotInitializedError):
            remote.get_salt()
        with pytest.raises(NotInitializedError):
            remote.unlock(TEST_PASSWORD)


def test_metadata_matches_store(backend, initialized_store):
    assert backend.is_initialized()
    assert backend.get_salt() == initialized_store.get_salt()
    assert backend.get_verification_payload() == initialized_store.get_verification_payload()


def test_hash_and_store(backend, key):
    content = ClipboardContent.from_text("Hello")

    entry = backend.hash_and_store(content, key)
    assert entry is not None
    assert backend.hash_and_store(content, key) is None

    assert backend.count_entries() == 1
    assert backend.hash_exists(content.digest())
    assert backend.get_entry(entry.id) == entry
    assert backend.decrypt_entry(backend.get_entry(entry.id), key) == content


def test_hash_and_store_prunes(backend, key):
    for i in range(4):
        backend.hash_and_store(ClipboardContent.from_text(f"text {i}"), key, max_entries=2)
    assert backend.count_entries() == 2


def test_list_delete_and_clear(backend, key):
    first = backend.hash_and_store(ClipboardContent.from_text("first"), key)
    second = backend.hash_and_store(ClipboardContent.from_image(make_image()), key)

    ids = [e.id for e in backend.list_entries()]
    assert set(ids) == {first.id, second.id}

    assert backend.delete_entry(first.id)
    assert not backend.delete_entry(first.id)
    assert backend.get_entry(first.id) is None

    assert backend.clear() == 1
    assert backend.list_entries() == []


def test_stats(backend, key):
    backend.hash_and_store(ClipboardContent.from_text("one"), key)
    backend.hash_and_store(ClipboardContent.from_image(make_image()), key)

    stats = backend.stats()
    assert (stats.total, stats.text, stats.image) == (2, 1, 1)
    assert stats.oldest <= stats.newest


def test_remote_writes_land_in_store(remote, initialized_store, key):
    entry = remote.hash_and_store(ClipboardContent.from_text("over the wire"), key)

    stored = initialized_store.get_entry(entry.id)
    assert stored == entry
    assert decrypt(key, stored.payload) == b"over the wire"


def test_remote_prune_rejects_negative(remote):
    with pytest.raises(ValueError):
        remote.prune_to_limit(-1)


def test_server_root(initialized_store):
    with TestClient(create_app(initialized_store)) as client:
        response = client.get("/")
    assert response.status_code == 200
    assert response.json() == "running"


def test_server_rejects_malformed_entry(initialized_store):
    with TestClient(create_app(initialized_store)) as client:
        response = client.post("/clipboard/entries", json={"entry": "garbage!"})
    assert response.status_code == 400
    assert initialized_store.count_entries() == 0


def test_server_rejects_negative_prune(initialized_store):
    with TestClient(create_app(initialized_store)) as client:
        response = client.post("/clipboard/prune", json={"max_entries": -1})
    assert response.status_code == 422


def test_server_missing_entry(initialized_store):
    with TestClient(create_app(initialized_store)) as client:
        response = client.get("/clipboard/entries/nope")
    assert response.status_code == 404


def test_server_salt_before_init(store):
    with TestClient(create_app(store)) as client:
        assert client.get("/clipboard/salt").status_code == 404
        assert client.get("/clipboard/payload").status_code == 404
        assert client.get("/clipboard/status").json() == {"initialized": False, "count": 0}


def test_server_accepts_entry_posted_directly(initialized_store, key):
    entry = ClipboardEntry.new(ContentType.TEXT, encrypt(key, b"direct"), "d" * 64)
    with TestClient(create_app(initialized_store)) as client:
        response = client.post("/clipboard/entries", json={"entry": entry.to_compressed_string()})
    assert response.status_code == 200
    assert response.json()["id"] == entry.id
    assert initialized_store.hash_exists("d" * 64)


def test_transport_error_on_server_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
    with httpx.Client(base_url="http://peer", transport=transport) as client:
        backend = RemoteBackend(client=client)
        with pytest.raises(TransportError) as excinfo:
            backend.count_entries()
    assert excinfo.value.status_code == 500


def test_transport_error_on_connection_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    with httpx.Client(base_url="http://peer", transport=httpx.MockTransport(refuse)) as client:
        backend = RemoteBackend(client=client)
        with pytest.raises(TransportError):
            backend.is_initialized()


def test_transport_error_on_invalid_json():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="not json"))
    with httpx.Client(base_url="http://peer", transport=transport) as client:
        with pytest.raises(TransportError):
            RemoteBackend(client=client).hash_exists("0" * 64)


def test_remote_verification_payload_checks_password(remote, key):
    assert decrypt(key, remote.get_verification_payload()) == VERIFICATION_PLAINTEXT
