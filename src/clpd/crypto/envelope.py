"""
Envelope cipher: XChaCha20-Poly1305 with the nonce carried in the blob.

Blob format: nonce (24 bytes) || ciphertext || tag (16 bytes)
"""

from nacl import bindings
from nacl.exceptions import CryptoError as NaclCryptoError
from nacl.utils import random as random_bytes

from clpd.crypto.keys import MasterKey
from clpd.errors import DecryptionError

NONCE_SIZE = bindings.crypto_aead_xchacha20poly1305_ietf_NPUBBYTES  # 24
TAG_SIZE = bindings.crypto_aead_xchacha20poly1305_ietf_ABYTES  # 16


def encrypt(key: MasterKey, plaintext: bytes) -> bytes:
    """Encrypt with a fresh random nonce. Returns nonce + ciphertext."""
    nonce = random_bytes(NONCE_SIZE)
    ciphertext = bindings.crypto_aead_xchacha20poly1305_ietf_encrypt(
        bytes(plaintext), None, nonce, key.key_bytes()
    )
    return nonce + ciphertext


def decrypt(key: MasterKey, blob: bytes) -> bytes:
    """
    Decrypt a blob produced by encrypt().

    Raises DecryptionError for a wrong key, a corrupted or tampered blob, and
    a blob too short to hold a nonce and tag.
    """
    if len(blob) < NONCE_SIZE + TAG_SIZE:
        raise DecryptionError("Encrypted data too short")

    nonce = bytes(blob[:NONCE_SIZE])
    ciphertext = bytes(blob[NONCE_SIZE:])
    try:
        return bindings.crypto_aead_xchacha20poly1305_ietf_decrypt(
            ciphertext, None, nonce, key.key_bytes()
        )
    except NaclCryptoError as e:
        raise DecryptionError("Decryption failed (wrong password?)") from e
