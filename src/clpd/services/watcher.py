import logging
import time
from typing import Optional

from clpd.clipboard import ClipboardSource
from clpd.crypto import MasterKey
from clpd.models import ClipboardContent, ClipboardEntry
from clpd.services.backend import ClipboardBackend

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


class ClipboardWatcher:
    """
    Polls the clipboard and stores every new sample, encrypted, in a backend.

    A sample is skipped when its hash equals the previous sample's hash, or
    when the backend already holds an entry with that hash. There is no
    shutdown handshake: each store write is durable before the next tick, so
    killing the process loses at most the tick in flight.
    """

    def __init__(
        self,
        backend: ClipboardBackend,
        key: MasterKey,
        clipboard: ClipboardSource,
        max_entries: Optional[int] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if max_entries is not None and max_entries < 0:
            raise ValueError("max_entries must be non-negative")
        self.backend = backend
        self.key = key
        self.clipboard = clipboard
        self.max_entries = max_entries
        self.poll_interval = poll_interval
        self.last_hash: Optional[str] = None
        self.stored_count = 0

    def process(self, content: ClipboardContent) -> Optional[ClipboardEntry]:
        content_hash = content.digest()

        if content_hash == self.last_hash:
            return None

        entry = self.backend.hash_and_store(
            content,
            self.key,
            max_entries=self.max_entries,
            content_hash=content_hash,
        )
        self.last_hash = content_hash
        return entry

    def check_clipboard(self) -> Optional[ClipboardEntry]:
        """Run one tick. Returns the stored entry, or None if nothing was stored."""
        content = self.clipboard.read()
        if content is None:
            return None
        return self.process(content)

    def tick(self) -> bool:
        try:
            entry = self.check_clipboard()
        except Exception as e:
            logger.warning(f"Failed to process clipboard: {e}")
            return False

        if entry is None:
            return False

        self.stored_count += 1
        logger.info(f"Stored encrypted entry #{self.stored_count} ({entry.content_type.value})")
        return True

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Poll until max_ticks ticks have run, or forever. Returns entries stored."""
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self.tick()
            ticks += 1
            if max_ticks is None or ticks < max_ticks:
                time.sleep(self.poll_interval)
        return self.stored_count

    def run_forever(self) -> None:
        logger.info("Clipboard watcher started. Press Ctrl+C to stop.")
        try:
            self.run()
        except KeyboardInterrupt:
            pass
        finally:
            logger.info(f"Clipboard watcher stopped after storing {self.stored_count} entries")
