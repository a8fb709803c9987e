import logging
import sqlite3
import struct
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Union

from clpd.crypto import VERIFICATION_PLAINTEXT, MasterKey, decrypt, encrypt
from clpd.errors import DecryptionError, NotInitializedError, StoreError
from clpd.models import ClipboardEntry, ContentType

logger = logging.getLogger(__name__)

SALT_KEY = "salt"
VERSION_KEY = "version"
PAYLOAD_KEY = "payload"
FORMAT_VERSION = 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS meta (
    key   TEXT PRIMARY KEY,
    value BLOB NOT NULL
);
CREATE TABLE IF NOT EXISTS entries (
    id           TEXT PRIMARY KEY,
    timestamp    INTEGER NOT NULL,
    content_type TEXT NOT NULL,
    payload      BLOB NOT NULL,
    content_hash TEXT NOT NULL
);
"""

_ENTRY_COLUMNS = "id, timestamp, content_type, payload, content_hash"


def _to_micros(value: datetime) -> int:
    return (value - _EPOCH) // _MICROSECOND


def _from_micros(value: int) -> datetime:
    return _EPOCH + timedelta(microseconds=value)


@dataclass(frozen=True)
class StoreStats:
    total: int
    text: int
    image: int
    total_bytes: int
    oldest: Optional[datetime]
    newest: Optional[datetime]

    @property
    def average_bytes(self) -> float:
        return self.total_bytes / self.total if self.total else 0.0


class EntryStore:
    """
    Encrypted clipboard history on a local SQLite file.

    Two tables live in one database: ``meta`` (salt, format version and the
    password verification payload) and ``entries`` (one row per encrypted
    clipboard capture). Every mutating call commits before it returns, so a
    crash after a successful call never loses the write.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
            self._conn.execute("PRAGMA synchronous = FULL")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"Failed to open database at {self.path}: {e}") from e

    @classmethod
    def open(cls, path: Union[str, Path]) -> "EntryStore":
        return cls(path)

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            raise StoreError(f"Failed to {action}: {e}") from e

    # -- metadata -----------------------------------------------------------

    def _get_meta(self, key: str) -> Optional[bytes]:
        with self._guard(f"read {key}"):
            row = self._conn.execute(
                "SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        return bytes(row[0]) if row else None

    def _write_meta(self, salt: bytes, verification_payload: bytes) -> None:
        self._conn.executemany(
            "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
            [
                (SALT_KEY, bytes(salt)),
                (VERSION_KEY, struct.pack("<I", FORMAT_VERSION)),
                (PAYLOAD_KEY, bytes(verification_payload)),
            ],
        )

    def is_initialized(self) -> bool:
        return self._get_meta(SALT_KEY) is not None

    def initialize(self, salt: bytes, verification_payload: bytes) -> None:
        """
        Write salt, version and verification payload.

        Calling this on an initialized store replaces the salt and payload but
        leaves existing entries encrypted under the previous key. Use rekey()
        to carry entries over to a new password.
        """
        with self._guard("initialize database"), self._conn:
            self._write_meta(salt, verification_payload)
        logger.info(f"Initialized database at {self.path}")

    def get_salt(self) -> bytes:
        salt = self._get_meta(SALT_KEY)
        if salt is None:
            raise NotInitializedError("Database not initialized - run 'clpd init' first")
        return salt

    def get_verification_payload(self) -> bytes:
        payload = self._get_meta(PAYLOAD_KEY)
        if payload is None:
            raise NotInitializedError("Verification payload not found")
        return payload

    def get_version(self) -> int:
        raw = self._get_meta(VERSION_KEY)
        if raw is None:
            raise NotInitializedError("Database version not found")
        return struct.unpack("<I", raw)[0]

    def verify_password(self, key: MasterKey) -> bool:
        try:
            return decrypt(key, self.get_verification_payload()) == VERIFICATION_PLAINTEXT
        except DecryptionError:
            return False

    def rekey(
        self,
        old_key: MasterKey,
        new_key: MasterKey,
        salt: bytes,
        verification_payload: bytes,
    ) -> int:
        """
        Re-encrypt every entry under new_key and install the new metadata in a
        single transaction. Nothing is written if any entry fails to decrypt.
        """
        with self._guard("read entries for re-encryption"):
            rows = self._conn.execute("SELECT id, payload FROM entries").fetchall()

        updates = []
        for entry_id, payload in rows:
            plaintext = decrypt(old_key, bytes(payload))
            updates.append((encrypt(new_key, plaintext), entry_id))

        with self._guard("re-encrypt entries"), self._conn:
            self._conn.executemany(
                "UPDATE entries SET payload = ? WHERE id = ?", updates)
            self._write_meta(salt, verification_payload)

        logger.info(f"Re-encrypted {len(updates)} entries under the new key")
        return len(updates)

    # -- entries ------------------------------------------------------------

    def _row_to_entry(self, row) -> ClipboardEntry:
        try:
            return ClipboardEntry(
                id=row[0],
                timestamp=_from_micros(row[1]),
                content_type=ContentType(row[2]),
                payload=bytes(row[3]),
                content_hash=row[4],
            )
        except ValueError as e:
            raise StoreError(f"Failed to deserialize entry {row[0]!r}: {e}") from e

    def insert_entry(self, entry: ClipboardEntry) -> None:
        with self._guard("insert entry"), self._conn:
            self._conn.execute(
                f"INSERT OR REPLACE INTO entries ({_ENTRY_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    entry.id,
                    _to_micros(entry.timestamp),
                    entry.content_type.value,
                    entry.payload,
                    entry.content_hash,
                ),
            )

    def get_entry(self, entry_id: str) -> Optional[ClipboardEntry]:
        with self._guard("read entry"):
            row = self._conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE id = ?", (entry_id,)
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def list_entries(self) -> List[ClipboardEntry]:
        """All entries, newest first. Equal timestamps fall back to id order."""
        with self._guard("list entries"):
            rows = self._conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM entries ORDER BY timestamp DESC, id DESC"
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def hash_exists(self, content_hash: str) -> bool:
        # No index on content_hash: the table is bounded by pruning, so a scan is fine
        with self._guard("look up hash"):
            row = self._conn.execute(
                "SELECT 1 FROM entries WHERE content_hash = ? LIMIT 1", (content_hash,)
            ).fetchone()
        return row is not None

    def delete_entry(self, entry_id: str) -> bool:
        with self._guard("delete entry"), self._conn:
            cursor = self._conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
        return cursor.rowcount > 0

    def count_entries(self) -> int:
        with self._guard("count entries"):
            return self._conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]

    def prune_to_limit(self, max_entries: int) -> int:
        """Delete the oldest entries so that at most max_entries remain."""
        if max_entries < 0:
            raise ValueError("max_entries must be non-negative")

        entries = self.list_entries()
        if len(entries) <= max_entries:
            return 0

        deleted = 0
        with self._guard("prune entries"), self._conn:
            for entry in entries[max_entries:]:
                cursor = self._conn.execute(
                    "DELETE FROM entries WHERE id = ?", (entry.id,))
                deleted += cursor.rowcount

        logger.debug(f"Pruned {deleted} entries (limit {max_entries})")
        return deleted

    def clear(self) -> int:
        with self._guard("clear entries"), self._conn:
            cursor = self._conn.execute("DELETE FROM entries")
        return cursor.rowcount

    def stats(self) -> StoreStats:
        with self._guard("compute statistics"):
            row = self._conn.execute(
                """
                SELECT COUNT(*),
                       COALESCE(SUM(content_type = ?), 0),
                       COALESCE(SUM(content_type = ?), 0),
                       COALESCE(SUM(LENGTH(payload)), 0),
                       MIN(timestamp),
                       MAX(timestamp)
                FROM entries
                """,
                (ContentType.TEXT.value, ContentType.IMAGE.value),
            ).fetchone()

        total, text, image, total_bytes, oldest, newest = row
        return StoreStats(
            total=total,
            text=text,
            image=image,
            total_bytes=total_bytes,
            oldest=_from_micros(oldest) if oldest is not None else None,
            newest=_from_micros(newest) if newest is not None else None,
        )

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error as e:
            logger.warning(f"Error closing database: {e}")

    def __enter__(self) -> "EntryStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
