import logging

import uvicorn
from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from clpd.database import EntryStore, ReadWriteLock
from clpd.errors import NotInitializedError
from clpd.models import ClipboardEntry, entries_to_compressed_string

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2573


class EntryBody(BaseModel):
    entry: str


class PruneBody(BaseModel):
    max_entries: int = Field(ge=0)


def create_app(store: EntryStore) -> FastAPI:
    """
    Expose a local store to remote backends.

    Handlers are plain functions so FastAPI runs them in its thread pool;
    one reader/writer lock around the store lets lookups run together while
    every mutation gets the store to itself.
    """
    app = FastAPI(title="clpd peer")
    lock = ReadWriteLock()
    app.state.store = store
    app.state.lock = lock

    @app.get("/")
    def root():
        return "running"

    @app.get("/clipboard/status")
    def status():
        with lock.read():
            return {"initialized": store.is_initialized(), "count": store.count_entries()}

    @app.get("/clipboard/salt")
    def salt():
        with lock.read():
            try:
                data = store.get_salt()
            except NotInitializedError as e:
                raise HTTPException(status_code=404, detail=str(e))
        return Response(content=data, media_type="application/octet-stream")

    @app.get("/clipboard/payload")
    def payload():
        with lock.read():
            try:
                data = store.get_verification_payload()
            except NotInitializedError as e:
                raise HTTPException(status_code=404, detail=str(e))
        return Response(content=data, media_type="application/octet-stream")

    @app.get("/clipboard/entries")
    def list_entries():
        with lock.read():
            entries = store.list_entries()
        return {"entries": entries_to_compressed_string(entries)}

    @app.get("/clipboard/entries/{entry_id}")
    def get_entry(entry_id: str):
        with lock.read():
            entry = store.get_entry(entry_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"Entry '{entry_id}' not found")
        return {"entry": entry.to_compressed_string()}

    @app.post("/clipboard/entries")
    def insert_entry(body: EntryBody):
        try:
            entry = ClipboardEntry.from_compressed_string(body.entry)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Malformed entry: {e}")

        with lock.write():
            store.insert_entry(entry)
        logger.info(f"Stored entry {entry.id} from peer")
        return {"ok": True, "id": entry.id}

    @app.delete("/clipboard/entries/{entry_id}")
    def delete_entry(entry_id: str):
        with lock.write():
            deleted = store.delete_entry(entry_id)
        return {"deleted": deleted}

    @app.get("/clipboard/hash/{content_hash}")
    def hash_exists(content_hash: str):
        with lock.read():
            return {"exists": store.hash_exists(content_hash)}

    @app.post("/clipboard/prune")
    def prune(body: PruneBody):
        with lock.write():
            deleted = store.prune_to_limit(body.max_entries)
        if deleted:
            logger.info(f"Pruned {deleted} entries (limit {body.max_entries})")
        return {"deleted": deleted}

    return app


def run_server(store: EntryStore, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    logger.info(f"Serving clipboard history on http://{host}:{port}")
    uvicorn.run(create_app(store), host=host, port=port)
