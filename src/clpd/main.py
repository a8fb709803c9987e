#!/usr/bin/env python3

import argparse
import getpass
import logging
import sys
from typing import Optional

from clpd.clipboard import get_clipboard
from clpd.config import Settings
from clpd.crypto import VERIFICATION_PLAINTEXT, derive_key, encrypt, generate_salt
from clpd.database import EntryStore
from clpd.errors import ClpdError, NotFoundError, NotInitializedError
from clpd.models import ContentType
from clpd.network import run_server
from clpd.services import ClipboardBackend, LocalBackend, RemoteBackend

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _confirm(prompt: str) -> bool:
    response = input(f"{prompt} (y/N): ")
    return response.strip().lower() == "y"


def _prompt_password(prompt: str = "Enter master password: ") -> str:
    return getpass.getpass(prompt)


def _require_initialized(backend: ClipboardBackend) -> None:
    if not backend.is_initialized():
        raise NotInitializedError("Database not initialized. Run 'clpd init' first.")


def cmd_init(store: EntryStore) -> None:
    rekey = False
    if store.is_initialized():
        print("Database is already initialized.")
        if not _confirm("Do you want to reinitialize? This changes the password"):
            print("Initialization cancelled.")
            return
        rekey = _confirm(
            "Re-encrypt existing entries under the new password? "
            "Without this they stay readable only with the old password")

    old_key = None
    if rekey:
        old_key = LocalBackend(store).unlock(_prompt_password("Enter current master password: "))

    try:
        password = _prompt_password()
        if password != _prompt_password("Confirm master password: "):
            raise ClpdError("Passwords do not match!")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ClpdError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        salt = generate_salt()
        print("Deriving encryption key...")
        with derive_key(password, salt) as key:
            payload = encrypt(key, VERIFICATION_PLAINTEXT)
            if old_key is not None:
                migrated = store.rekey(old_key, key, salt, payload)
                print(f"Re-encrypted {migrated} entries.")
            else:
                store.initialize(salt, payload)
    finally:
        if old_key is not None:
            old_key.wipe()

    print("Database initialized successfully!")
    print("Use 'clpd start' to begin watching your clipboard.")


def cmd_start(backend: ClipboardBackend, max_entries: Optional[int], poll_interval: float) -> None:
    with backend.unlock(_prompt_password()) as key:
        print("Password verified")
        if max_entries is not None:
            print(f"Maximum entries: {max_entries}")
        backend.watch(key, max_entries=max_entries, poll_interval=poll_interval)


def cmd_list(backend: ClipboardBackend, verbose: bool, limit: Optional[int]) -> None:
    _require_initialized(backend)
    entries = backend.list_entries()

    if not entries:
        print("No entries found. Start the watcher with 'clpd start'.")
        return

    shown = entries if limit is None else entries[:limit]
    print(f"Clipboard History ({len(entries)} entries, showing {len(shown)})")
    print()

    for entry in shown:
        if verbose:
            print(f"ID: {entry.id}")
            print(f"  Timestamp: {entry.timestamp:%Y-%m-%d %H:%M:%S.%f %Z}")
            print(f"  Type: {entry.content_type.value}")
            print(f"  Size: {len(entry.payload)} bytes (encrypted)")
            print(f"  Hash: {entry.content_hash}")
            print()
        else:
            print(entry.preview())

    if len(shown) < len(entries):
        print(f"\n... and {len(entries) - len(shown)} more entries. "
              "Use --limit to show more or --verbose for details.")


def _load_entry(backend: ClipboardBackend, entry_id: str):
    entry = backend.get_entry(entry_id)
    if entry is None:
        raise NotFoundError(f"Entry '{entry_id}' not found")
    return entry


def cmd_show(backend: ClipboardBackend, entry_id: str) -> None:
    with backend.unlock(_prompt_password()) as key:
        entry = _load_entry(backend, entry_id)
        content = backend.decrypt_entry(entry, key)

    print(f"Entry: {entry.id}")
    print(f"Timestamp: {entry.timestamp:%Y-%m-%d %H:%M:%S %Z}")
    print(f"Type: {entry.content_type.value}")
    print()

    if content.text is not None:
        print("Content:")
        print("-" * 40)
        print(content.text)
        print("-" * 40)
    else:
        print("Content: Image")
        print(f"  Dimensions: {content.image.width} x {content.image.height} pixels")
        print(f"  Size: {len(content.image.bytes)} bytes (raw RGBA)")
        print(f"Use 'clpd copy {entry.id}' to copy this image to the clipboard")


def cmd_copy(backend: ClipboardBackend, entry_id: str) -> None:
    with backend.unlock(_prompt_password()) as key:
        entry = _load_entry(backend, entry_id)
        content = backend.decrypt_entry(entry, key)

    if not get_clipboard().write(content):
        raise ClpdError("Failed to set clipboard")

    if entry.content_type == ContentType.TEXT:
        print("Text copied to clipboard")
    else:
        print(f"Image copied to clipboard ({content.image.width} x {content.image.height} pixels)")


def cmd_delete(backend: ClipboardBackend, entry_id: str, yes: bool) -> None:
    _require_initialized(backend)
    if not yes and not _confirm(f"Delete entry '{entry_id}'?"):
        print("Deletion cancelled.")
        return

    if backend.delete_entry(entry_id):
        print(f"Entry '{entry_id}' deleted")
    else:
        print(f"Entry '{entry_id}' not found")


def cmd_clear(backend: ClipboardBackend, yes: bool) -> None:
    _require_initialized(backend)
    count = backend.count_entries()
    if count == 0:
        print("Database is already empty.")
        return

    if not yes and not _confirm(f"Delete all {count} entries? This cannot be undone!"):
        print("Clear cancelled.")
        return

    print(f"Deleted {backend.clear()} entries")


def cmd_stats(backend: ClipboardBackend) -> None:
    _require_initialized(backend)
    stats = backend.stats()

    print("Database Statistics")
    print()
    print(f"Total entries: {stats.total}")
    if stats.total == 0:
        print("Start the watcher with 'clpd start' to begin collecting clipboard history.")
        return

    print(f"  - Text: {stats.text}")
    print(f"  - Images: {stats.image}")
    print()
    print(f"Total encrypted size: {stats.total_bytes} bytes ({stats.total_bytes / 1024:.2f} KB)")
    print(f"Average size per entry: {stats.average_bytes:.2f} bytes")
    print()
    print(f"Oldest entry: {stats.oldest:%Y-%m-%d %H:%M:%S}")
    print(f"Newest entry: {stats.newest:%Y-%m-%d %H:%M:%S}")


def cmd_net_listen(store: EntryStore, host: str, port: int) -> None:
    # Serving needs no key, but only the owner of the password should expose the store
    LocalBackend(store).unlock(_prompt_password()).wipe()
    print("Password verified")
    run_server(store, host=host, port=port)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="clpd",
        description="Encrypted clipboard history manager"
    )
    parser.add_argument(
        "-d", "--database",
        type=str,
        default=None,
        help="Database path (default: ~/.clpd/history.db or CLPD_DB_PATH)"
    )
    parser.add_argument(
        "--remote",
        type=str,
        default=None,
        help="Peer URL for the net-* commands (default: http://localhost:2573)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Initialize the database with a master password")

    for name, help_text in (("start", "Start the clipboard watcher"),
                            ("net-start", "Watch the clipboard and store entries on a peer")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("-m", "--max-entries", type=int, default=None,
                       help="Maximum number of entries to keep (oldest are pruned)")

    for name, help_text in (("list", "List stored clipboard entries"),
                            ("net-list", "List clipboard entries stored on a peer")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("-v", "--verbose", action="store_true", dest="list_verbose",
                       help="Show full details")
        p.add_argument("-n", "--limit", type=int, default=None,
                       help="Limit number of entries to display")

    p = sub.add_parser("show", help="Decrypt and display an entry")
    p.add_argument("id")

    p = sub.add_parser("copy", help="Copy an entry back to the clipboard")
    p.add_argument("id")

    p = sub.add_parser("delete", help="Delete an entry")
    p.add_argument("id")
    p.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompt")

    p = sub.add_parser("clear", help="Delete all entries")
    p.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompt")

    sub.add_parser("stats", help="Show database statistics")

    p = sub.add_parser("net-listen", help="Serve this database to remote peers")
    p.add_argument("--host", type=str, default=None)
    p.add_argument("-p", "--port", type=int, default=None)

    return parser.parse_args(argv)


def run(args, settings: Settings) -> None:
    command = args.command
    max_entries = getattr(args, "max_entries", None)
    if max_entries is None:
        max_entries = settings.max_entries
    if max_entries is not None and max_entries < 0:
        raise ClpdError("--max-entries must be non-negative")

    if command.startswith("net-") and command != "net-listen":
        with RemoteBackend(args.remote or settings.remote_url, timeout=settings.http_timeout) as backend:
            if command == "net-start":
                cmd_start(backend, max_entries, settings.poll_interval)
            else:
                cmd_list(backend, args.list_verbose, args.limit)
        return

    with EntryStore.open(args.database or settings.db_path) as store:
        backend = LocalBackend(store)
        if command == "init":
            cmd_init(store)
        elif command == "start":
            cmd_start(backend, max_entries, settings.poll_interval)
        elif command == "list":
            cmd_list(backend, args.list_verbose, args.limit)
        elif command == "show":
            cmd_show(backend, args.id)
        elif command == "copy":
            cmd_copy(backend, args.id)
        elif command == "delete":
            cmd_delete(backend, args.id, args.yes)
        elif command == "clear":
            cmd_clear(backend, args.yes)
        elif command == "stats":
            cmd_stats(backend)
        elif command == "net-listen":
            cmd_net_listen(store, args.host or settings.listen_host,
                           args.port or settings.listen_port)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        run(args, settings)
    except ClpdError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(130)
    except EOFError:
        print("\nError: no input available for prompt", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
