"""Service layer for clpd."""

from clpd.services.backend import ClipboardBackend
from clpd.services.local_backend import LocalBackend
from clpd.services.remote_backend import RemoteBackend
from clpd.services.watcher import ClipboardWatcher

__all__ = ["ClipboardBackend", "LocalBackend", "RemoteBackend", "ClipboardWatcher"]
