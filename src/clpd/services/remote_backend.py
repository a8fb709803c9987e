import logging
from typing import Any, Dict, List, Optional

import httpx

from clpd.errors import NotInitializedError, TransportError
from clpd.models import (
    ClipboardEntry,
    entries_from_compressed_string,
)
from clpd.services.backend import ClipboardBackend

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_URL = "http://localhost:2573"


class RemoteBackend(ClipboardBackend):
    """
    Backend that talks to a peer running ``clpd net-listen``.

    Entries travel as compressed, base64-encoded records that already hold
    ciphertext; the password and key never leave this process. Failed calls
    are not retried.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_REMOTE_URL,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self.client.request(method, f"/clipboard{path}", **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to peer failed: {e}") from e

    def _ensure_success(self, response: httpx.Response) -> httpx.Response:
        if not response.is_success:
            raise TransportError(
                f"Peer answered {response.status_code} for "
                f"{response.request.method} {response.request.url.path}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            return self._ensure_success(response).json()
        except ValueError as e:
            raise TransportError(f"Peer sent an invalid response: {e}") from e

    def _status(self) -> Dict[str, Any]:
        return self._json(self._request("GET", "/status"))

    def _get_metadata(self, path: str) -> bytes:
        response = self._request("GET", path)
        if response.status_code == 404:
            raise NotInitializedError("Remote database not initialized")
        return self._ensure_success(response).content

    def is_initialized(self) -> bool:
        return bool(self._status().get("initialized"))

    def get_salt(self) -> bytes:
        return self._get_metadata("/salt")

    def get_verification_payload(self) -> bytes:
        return self._get_metadata("/payload")

    def list_entries(self) -> List[ClipboardEntry]:
        data = self._json(self._request("GET", "/entries"))
        try:
            return entries_from_compressed_string(data["entries"])
        except (KeyError, ValueError) as e:
            raise TransportError(f"Peer sent malformed entries: {e}") from e

    def get_entry(self, entry_id: str) -> Optional[ClipboardEntry]:
        response = self._request("GET", f"/entries/{entry_id}")
        if response.status_code == 404:
            return None
        data = self._json(response)
        try:
            return ClipboardEntry.from_compressed_string(data["entry"])
        except (KeyError, ValueError) as e:
            raise TransportError(f"Peer sent a malformed entry: {e}") from e

    def insert_entry(self, entry: ClipboardEntry) -> None:
        self._json(self._request(
            "POST", "/entries", json={"entry": entry.to_compressed_string()}))
        logger.debug(f"Sent entry {entry.id} to peer")

    def delete_entry(self, entry_id: str) -> bool:
        data = self._json(self._request("DELETE", f"/entries/{entry_id}"))
        return bool(data.get("deleted"))

    def hash_exists(self, content_hash: str) -> bool:
        data = self._json(self._request("GET", f"/hash/{content_hash}"))
        return bool(data.get("exists"))

    def prune_to_limit(self, max_entries: int) -> int:
        if max_entries < 0:
            raise ValueError("max_entries must be non-negative")
        data = self._json(self._request(
            "POST", "/prune", json={"max_entries": max_entries}))
        return int(data.get("deleted", 0))

    def count_entries(self) -> int:
        return int(self._status().get("count", 0))

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
