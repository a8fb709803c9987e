import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

from clpd.crypto import VERIFICATION_PLAINTEXT, MasterKey, decrypt, derive_key, encrypt
from clpd.database import StoreStats
from clpd.errors import AuthenticationError, DecryptionError, NotInitializedError
from clpd.models import ClipboardContent, ClipboardEntry, ContentType

if TYPE_CHECKING:
    from clpd.clipboard import ClipboardSource

logger = logging.getLogger(__name__)


class ClipboardBackend(ABC):
    """
    Capability surface shared by every history backend.

    Subclasses implement storage primitives only. Password checks, content
    storage and the watcher are written once here, so callers never need to
    know whether the history lives on this machine or on a peer. Encryption
    and hashing always happen in this process; backends only ever see
    ciphertext and non-secret metadata.
    """

    @abstractmethod
    def is_initialized(self) -> bool:
        pass

    @abstractmethod
    def get_salt(self) -> bytes:
        """Raises NotInitializedError when the store has no salt yet."""

    @abstractmethod
    def get_verification_payload(self) -> bytes:
        pass

    @abstractmethod
    def list_entries(self) -> List[ClipboardEntry]:
        """All entries, newest first."""

    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[ClipboardEntry]:
        pass

    @abstractmethod
    def insert_entry(self, entry: ClipboardEntry) -> None:
        pass

    @abstractmethod
    def delete_entry(self, entry_id: str) -> bool:
        pass

    @abstractmethod
    def hash_exists(self, content_hash: str) -> bool:
        pass

    @abstractmethod
    def prune_to_limit(self, max_entries: int) -> int:
        pass

    @abstractmethod
    def count_entries(self) -> int:
        pass

    def close(self) -> None:
        pass

    def verify_password(self, key: MasterKey) -> bool:
        try:
            plaintext = decrypt(key, self.get_verification_payload())
        except DecryptionError:
            return False
        return plaintext == VERIFICATION_PLAINTEXT

    def unlock(self, password: str) -> MasterKey:
        """Derive the master key and check it against the verification payload."""
        if not self.is_initialized():
            raise NotInitializedError("Database not initialized. Run 'clpd init' first.")

        key = derive_key(password, self.get_salt())
        if not self.verify_password(key):
            key.wipe()
            raise AuthenticationError("Incorrect password!")
        return key

    def hash_and_store(
        self,
        content: ClipboardContent,
        key: MasterKey,
        max_entries: Optional[int] = None,
        content_hash: Optional[str] = None,
    ) -> Optional[ClipboardEntry]:
        """
        Encrypt and store content unless an entry with the same plaintext
        hash already exists. Returns the new entry, or None for a duplicate.
        """
        content_hash = content_hash or content.digest()
        if self.hash_exists(content_hash):
            # a prune that failed after an earlier insert is retried here
            self._enforce_limit(max_entries)
            return None

        payload = encrypt(key, content.canonical_bytes())
        entry = ClipboardEntry.new(content.content_type, payload, content_hash)
        self.insert_entry(entry)
        self._enforce_limit(max_entries)
        return entry

    def _enforce_limit(self, max_entries: Optional[int]) -> None:
        if max_entries is None:
            return
        pruned = self.prune_to_limit(max_entries)
        if pruned:
            logger.info(f"Pruned {pruned} old entries")

    def decrypt_entry(self, entry: ClipboardEntry, key: MasterKey) -> ClipboardContent:
        return ClipboardContent.from_plaintext(entry.content_type, decrypt(key, entry.payload))

    def stats(self) -> StoreStats:
        entries = self.list_entries()
        text = sum(1 for e in entries if e.content_type == ContentType.TEXT)
        return StoreStats(
            total=len(entries),
            text=text,
            image=len(entries) - text,
            total_bytes=sum(len(e.payload) for e in entries),
            oldest=entries[-1].timestamp if entries else None,
            newest=entries[0].timestamp if entries else None,
        )

    def clear(self) -> int:
        deleted = 0
        for entry in self.list_entries():
            if self.delete_entry(entry.id):
                deleted += 1
        return deleted

    def watch(
        self,
        key: MasterKey,
        clipboard: Optional["ClipboardSource"] = None,
        max_entries: Optional[int] = None,
        poll_interval: float = 0.5,
    ) -> None:
        """Run the clipboard watcher against this backend until interrupted."""
        from clpd.services.watcher import ClipboardWatcher

        if clipboard is None:
            from clpd.clipboard import get_clipboard
            clipboard = get_clipboard()

        watcher = ClipboardWatcher(
            backend=self,
            key=key,
            clipboard=clipboard,
            max_entries=max_entries,
            poll_interval=poll_interval,
        )
        watcher.run_forever()

    def __enter__(self) -> "ClipboardBackend":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
