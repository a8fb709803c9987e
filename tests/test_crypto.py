import pytest

from clpd.crypto import (
    KEY_SIZE,
    NONCE_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    MasterKey,
    decrypt,
    derive_key,
    encrypt,
    generate_salt,
)
from clpd.errors import DecryptionError, KeyDerivationError, KeyMaterialError


def test_generate_salt():
    salt = generate_salt()
    assert len(salt) == SALT_SIZE
    assert generate_salt() != salt


def test_derive_key_is_deterministic(salt):
    with derive_key("password-one", salt) as first, derive_key("password-one", salt) as second:
        assert first == second


def test_derive_key_depends_on_password_and_salt(salt):
    base = derive_key("password-one", salt)
    other_password = derive_key("password-two", salt)
    other_salt = derive_key("password-one", generate_salt())

    assert base != other_password
    assert base != other_salt


def test_derive_key_rejects_short_salt():
    with pytest.raises(KeyDerivationError):
        derive_key("password-one", b"tiny")


def test_round_trip(key):
    for plaintext in [b"", b"x", b"Hello, World! This is a test message.", bytes(range(256)) * 40]:
        assert decrypt(key, encrypt(key, plaintext)) == plaintext


def test_blob_layout(key):
    blob = encrypt(key, b"Secret data")
    assert len(blob) == NONCE_SIZE + len(b"Secret data") + TAG_SIZE


def test_nonce_uniqueness(key):
    first = encrypt(key, b"Same message")
    second = encrypt(key, b"Same message")
    assert first != second
    assert first[:NONCE_SIZE] != second[:NONCE_SIZE]


def test_wrong_key_rejected(salt):
    key1 = derive_key("password1", salt)
    key2 = derive_key("password2", salt)

    blob = encrypt(key1, b"Secret data")
    with pytest.raises(DecryptionError):
        decrypt(key2, blob)


def test_tampered_blob_rejected(key):
    blob = bytearray(encrypt(key, b"Secret data"))
    blob[-1] ^= 0x01
    with pytest.raises(DecryptionError):
        decrypt(key, bytes(blob))


def test_short_blob_rejected(key):
    with pytest.raises(DecryptionError):
        decrypt(key, b"\x00" * (NONCE_SIZE - 1))


def test_wipe_zeroes_backing_buffer():
    key = MasterKey(b"\x07" * KEY_SIZE)
    buffer = key._buffer

    key.wipe()

    assert key.is_wiped
    assert buffer == bytearray(KEY_SIZE)
    with pytest.raises(KeyMaterialError):
        key.key_bytes()


def test_context_manager_wipes_on_error():
    key = MasterKey(b"\x07" * KEY_SIZE)
    with pytest.raises(RuntimeError):
        with key:
            raise RuntimeError("boom")
    assert key.is_wiped


def test_wiped_key_cannot_encrypt():
    key = MasterKey(b"\x07" * KEY_SIZE)
    key.wipe()
    with pytest.raises(KeyMaterialError):
        encrypt(key, b"data")


def test_repr_hides_key_material():
    key = MasterKey(b"\x41" * KEY_SIZE)
    assert "A" * 4 not in repr(key)
    assert repr(key) == "MasterKey(<redacted>)"


def test_master_key_requires_32_bytes():
    with pytest.raises(KeyDerivationError):
        MasterKey(b"\x00" * 16)
