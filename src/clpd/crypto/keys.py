"""
Master key derivation and lifetime.

Passphrase → Master Key (via Argon2id, fixed parameters)

The key lives in a mutable buffer owned by a MasterKey object. The buffer is
overwritten with zeros when the owner wipes it, leaves a ``with`` block, or
is garbage collected, whichever happens first.
"""

import hmac
import secrets
from typing import Optional

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from clpd.errors import KeyDerivationError, KeyMaterialError

SALT_SIZE = 16
KEY_SIZE = 32  # 256 bits

# Argon2id parameters, matching the argon2 reference defaults
ARGON2_TIME_COST = 2
ARGON2_MEMORY_COST = 19 * 1024  # KiB
ARGON2_PARALLELISM = 1


class MasterKey:
    """
    256-bit key derived from the master password.

    Never serialized and never printed. Use it as a context manager so the
    backing bytes are zeroed on every exit path::

        with derive_key(password, salt) as key:
            blob = encrypt(key, b"...")
    """

    def __init__(self, material: bytes):
        if len(material) != KEY_SIZE:
            raise KeyDerivationError(
                f"Master key must be {KEY_SIZE} bytes, got {len(material)}")
        self._buffer: Optional[bytearray] = bytearray(material)

    @classmethod
    def from_bytes(cls, material: bytes) -> "MasterKey":
        return cls(material)

    @property
    def is_wiped(self) -> bool:
        return self._buffer is None

    def key_bytes(self) -> bytes:
        """Raw key for the envelope cipher. Callers must not keep the result."""
        if self._buffer is None:
            raise KeyMaterialError("Master key has already been wiped")
        return bytes(self._buffer)

    def wipe(self) -> None:
        buffer = getattr(self, "_buffer", None)
        if buffer is None:
            return
        buffer[:] = bytes(len(buffer))
        self._buffer = None

    def __enter__(self) -> "MasterKey":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __del__(self) -> None:
        self.wipe()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MasterKey):
            return NotImplemented
        return hmac.compare_digest(self.key_bytes(), other.key_bytes())

    __hash__ = None

    def __repr__(self) -> str:
        state = "wiped" if self.is_wiped else "redacted"
        return f"MasterKey(<{state}>)"


def generate_salt() -> bytes:
    """Generate a random 16-byte salt."""
    return secrets.token_bytes(SALT_SIZE)


def derive_key(password: str, salt: bytes) -> MasterKey:
    """Derive the master key from a password and the store's salt using Argon2id."""
    try:
        secret = password.encode("utf-8")
    except (AttributeError, UnicodeEncodeError) as e:
        raise KeyDerivationError(f"Failed to encode password: {e}") from e

    try:
        raw = hash_secret_raw(
            secret=secret,
            salt=bytes(salt),
            time_cost=ARGON2_TIME_COST,
            memory_cost=ARGON2_MEMORY_COST,
            parallelism=ARGON2_PARALLELISM,
            hash_len=KEY_SIZE,
            type=Type.ID,
        )
    except (HashingError, TypeError, ValueError) as e:
        raise KeyDerivationError(f"Failed to hash password: {e}") from e

    # raw is an immutable bytes object and cannot be zeroed; drop it right away
    key = MasterKey(raw)
    del raw
    return key
