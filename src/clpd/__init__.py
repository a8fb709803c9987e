"""
clpd: encrypted clipboard history.

Watches the system clipboard, deduplicates new content by its SHA-256 hash,
encrypts it with a key derived from a master password, and keeps it in a
local database or on a peer. Plaintext never touches disk.

Usage:
    from clpd import LocalBackend
    backend = LocalBackend.open("history.db")
    with backend.unlock("my master password") as key:
        backend.watch(key, max_entries=500)
"""

from clpd.crypto import MasterKey, derive_key, generate_salt, encrypt, decrypt
from clpd.database import EntryStore
from clpd.models import ClipboardEntry, ClipboardContent, ContentType, ImageData
from clpd.services import ClipboardBackend, LocalBackend, RemoteBackend, ClipboardWatcher

__version__ = "0.2.0"
__all__ = [
    "MasterKey",
    "derive_key",
    "generate_salt",
    "encrypt",
    "decrypt",
    "EntryStore",
    "ClipboardEntry",
    "ClipboardContent",
    "ContentType",
    "ImageData",
    "ClipboardBackend",
    "LocalBackend",
    "RemoteBackend",
    "ClipboardWatcher",
]
