import base64
import binascii
import secrets
import zlib
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator


class ContentType(str, Enum):
    TEXT = "Text"
    IMAGE = "Image"


def new_entry_id(timestamp: datetime) -> str:
    """Millisecond timestamp plus a random 32-bit suffix, e.g. ``1718000000000-3735928559``."""
    millis = int(timestamp.timestamp() * 1000)
    return f"{millis}-{secrets.randbits(32)}"


class ClipboardEntry(BaseModel):
    """
    One stored clipboard capture.

    payload holds nonce || ciphertext; content_hash is the SHA-256 of the
    plaintext and is what deduplication compares.
    """
    model_config = ConfigDict(
        frozen=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    id: str
    timestamp: datetime
    content_type: ContentType
    payload: bytes
    content_hash: str

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def new(
        cls,
        content_type: ContentType,
        payload: bytes,
        content_hash: str,
        timestamp: Optional[datetime] = None,
    ) -> "ClipboardEntry":
        timestamp = timestamp or datetime.now(timezone.utc)
        return cls(
            id=new_entry_id(timestamp),
            timestamp=timestamp,
            content_type=content_type,
            payload=payload,
            content_hash=content_hash,
        )

    def preview(self) -> str:
        """One-line summary for listings; needs no decryption."""
        return f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] {self.id} - {self.content_type.value}"

    def to_compressed_string(self) -> str:
        return _compress(self.model_dump_json().encode("utf-8"))

    @classmethod
    def from_compressed_string(cls, value: str) -> "ClipboardEntry":
        return cls.model_validate_json(_decompress(value))


_ENTRY_LIST = TypeAdapter(List[ClipboardEntry])


def entries_to_compressed_string(entries: List[ClipboardEntry]) -> str:
    return _compress(_ENTRY_LIST.dump_json(entries))


def entries_from_compressed_string(value: str) -> List[ClipboardEntry]:
    return _ENTRY_LIST.validate_json(_decompress(value))


def _compress(data: bytes) -> str:
    return base64.b64encode(zlib.compress(data)).decode("ascii")


def _decompress(value: str) -> bytes:
    try:
        return zlib.decompress(base64.b64decode(value, validate=True))
    except (binascii.Error, zlib.error) as e:
        raise ValueError(f"Malformed compressed entry: {e}") from e
