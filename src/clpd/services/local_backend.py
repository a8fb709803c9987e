from pathlib import Path
from typing import List, Optional, Union

from clpd.database import EntryStore, StoreStats
from clpd.models import ClipboardEntry
from clpd.services.backend import ClipboardBackend


class LocalBackend(ClipboardBackend):
    """Backend over an EntryStore in this process."""

    def __init__(self, store: EntryStore):
        self.store = store

    @classmethod
    def open(cls, path: Union[str, Path]) -> "LocalBackend":
        return cls(EntryStore.open(path))

    def is_initialized(self) -> bool:
        return self.store.is_initialized()

    def get_salt(self) -> bytes:
        return self.store.get_salt()

    def get_verification_payload(self) -> bytes:
        return self.store.get_verification_payload()

    def list_entries(self) -> List[ClipboardEntry]:
        return self.store.list_entries()

    def get_entry(self, entry_id: str) -> Optional[ClipboardEntry]:
        return self.store.get_entry(entry_id)

    def insert_entry(self, entry: ClipboardEntry) -> None:
        self.store.insert_entry(entry)

    def delete_entry(self, entry_id: str) -> bool:
        return self.store.delete_entry(entry_id)

    def hash_exists(self, content_hash: str) -> bool:
        return self.store.hash_exists(content_hash)

    def prune_to_limit(self, max_entries: int) -> int:
        return self.store.prune_to_limit(max_entries)

    def count_entries(self) -> int:
        return self.store.count_entries()

    def clear(self) -> int:
        return self.store.clear()

    def stats(self) -> StoreStats:
        return self.store.stats()

    def close(self) -> None:
        self.store.close()
