import logging

import pytest

from clpd.models import ClipboardContent, ContentType, hash_data
from clpd.services import ClipboardWatcher, LocalBackend

from conftest import FakeClipboard, make_image


@pytest.fixture
def backend(initialized_store):
    return LocalBackend(initialized_store)


def make_watcher(backend, key, clipboard, max_entries=None):
    return ClipboardWatcher(backend, key, clipboard, max_entries=max_entries, poll_interval=0)


def test_same_content_stored_once(backend, key, clipboard):
    watcher = make_watcher(backend, key, clipboard)
    clipboard.set("Hello")

    assert watcher.tick()
    assert not watcher.tick()
    assert not watcher.tick()
    assert backend.count_entries() == 1
    assert watcher.last_hash == hash_data(b"Hello")


def test_returning_content_is_not_stored_again(backend, key, clipboard):
    watcher = make_watcher(backend, key, clipboard)

    for value in ("A", "B", "A"):
        clipboard.set(value)
        watcher.tick()

    assert backend.count_entries() == 2


def test_history_dedup_survives_restart(backend, key):
    clipboard = FakeClipboard("Hello")
    make_watcher(backend, key, clipboard).tick()

    restarted = make_watcher(backend, key, clipboard)
    assert restarted.last_hash is None
    assert not restarted.tick()
    assert backend.count_entries() == 1


def test_stored_entry_decrypts(backend, key, clipboard):
    watcher = make_watcher(backend, key, clipboard)
    clipboard.set("secret text")
    entry = watcher.check_clipboard()

    assert entry.content_type == ContentType.TEXT
    assert entry.content_hash == hash_data(b"secret text")
    assert b"secret text" not in entry.payload
    assert backend.decrypt_entry(entry, key) == ClipboardContent.from_text("secret text")


def test_images_are_stored(backend, key, clipboard):
    watcher = make_watcher(backend, key, clipboard)
    image = make_image(4, 3, fill=9)
    clipboard.set(image)

    entry = watcher.check_clipboard()

    assert entry.content_type == ContentType.IMAGE
    assert entry.content_hash == hash_data(image.serialize())
    assert backend.decrypt_entry(entry, key).image == image


def test_empty_clipboard_stores_nothing(backend, key, clipboard):
    watcher = make_watcher(backend, key, clipboard)
    clipboard.set("")
    assert not watcher.tick()
    clipboard.set(None)
    assert not watcher.tick()
    assert backend.count_entries() == 0


def test_max_entries_bounds_history(backend, key, clipboard):
    watcher = make_watcher(backend, key, clipboard, max_entries=2)

    for i in range(5):
        clipboard.set(f"entry {i}")
        assert watcher.tick()
        assert backend.count_entries() <= 2

    latest = backend.list_entries()[0]
    assert backend.decrypt_entry(latest, key).text == "entry 4"


def test_negative_max_entries_rejected(backend, key, clipboard):
    with pytest.raises(ValueError):
        make_watcher(backend, key, clipboard, max_entries=-1)


def test_failed_tick_is_logged_not_raised(backend, key, clipboard, caplog):
    watcher = make_watcher(backend, key, clipboard)
    clipboard.set("Hello")
    clipboard.fail_reads = True

    with caplog.at_level(logging.WARNING):
        assert not watcher.tick()
    assert "clipboard is locked" in caplog.text

    clipboard.fail_reads = False
    assert watcher.tick()


def test_run_counts_stored_entries(backend, key):
    values = iter(["one", "one", "two", "three"])

    class SequenceClipboard(FakeClipboard):
        def read_text(self):
            return next(values)

    watcher = make_watcher(backend, key, SequenceClipboard())
    assert watcher.run(max_ticks=4) == 3
    assert backend.count_entries() == 3


def test_watch_uses_given_clipboard(backend, key, monkeypatch):
    clipboard = FakeClipboard("from watch")

    def run_once(self):
        self.run(max_ticks=1)

    monkeypatch.setattr(ClipboardWatcher, "run_forever", run_once)
    backend.watch(key, clipboard=clipboard, poll_interval=0)

    assert backend.count_entries() == 1


def test_failed_prune_is_retried_on_next_tick(backend, key, clipboard, monkeypatch):
    watcher = make_watcher(backend, key, clipboard, max_entries=1)
    clipboard.set("first")
    assert watcher.tick()

    real_prune = backend.store.prune_to_limit
    calls = []

    def flaky_prune(max_entries):
        calls.append(max_entries)
        if len(calls) == 1:
            raise RuntimeError("disk busy")
        return real_prune(max_entries)

    monkeypatch.setattr(backend.store, "prune_to_limit", flaky_prune)

    clipboard.set("second")
    assert not watcher.tick()
    assert backend.count_entries() == 2

    for _ in range(3):
        watcher.tick()
    assert backend.count_entries() == 1
    assert backend.decrypt_entry(backend.list_entries()[0], key).text == "second"
