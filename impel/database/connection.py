"""
Storage backends for Impel.

A backend is a flat, durable key-value namespace with string keys and byte
values. The contract never writes to a backend directly: invocations write
into a WriteBuffer which is committed in one step when the invocation
succeeds.
"""

import base64
import json
import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

import structlog
from pymongo import MongoClient, ReplaceOne
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config import DatabaseConfig, get_db_config
from ..errors import StorageError

logger = structlog.get_logger(__name__)


class StorageBackend(ABC):
    """Durable key-value storage with prefix iteration."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Get the value stored under key, or None."""

    @abstractmethod
    def scan(self, prefix: str) -> Iterator[Tuple[str, bytes]]:
        """Iterate over (key, value) pairs whose key starts with prefix."""

    @abstractmethod
    def commit(self, writes: Dict[str, bytes]) -> None:
        """Apply a batch of writes as one unit."""

    def put(self, key: str, value: bytes) -> None:
        self.commit({key: value})

    def close(self) -> None:
        pass


class MemoryBackend(StorageBackend):
    """Process-local backend, used by tests and throwaway runs."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def scan(self, prefix: str) -> Iterator[Tuple[str, bytes]]:
        with self._lock:
            items = sorted((k, v) for k, v in self._data.items() if k.startswith(prefix))
        yield from items

    def commit(self, writes: Dict[str, bytes]) -> None:
        with self._lock:
            self._data.update(writes)

    def snapshot(self) -> Dict[str, bytes]:
        """Copy of every stored entry."""
        with self._lock:
            return dict(self._data)


class JsonFileBackend(MemoryBackend):
    """Backend persisted to a single JSON file.

    Values are base64 encoded. Every commit rewrites the file through a
    temporary file and an atomic rename.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> Dict[str, bytes]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"cannot read storage file {self.path}: {e}") from e

        if not isinstance(raw, dict) or not all(isinstance(v, str) for v in raw.values()):
            raise StorageError(f"storage file {self.path} is not a map of base64 strings")
        try:
            return {k: base64.b64decode(v, validate=True) for k, v in raw.items()}
        except ValueError as e:
            raise StorageError(f"storage file {self.path} holds invalid base64: {e}") from e

    def commit(self, writes: Dict[str, bytes]) -> None:
        with self._lock:
            data = dict(self._data)
            data.update(writes)
            payload = {k: base64.b64encode(v).decode("ascii") for k, v in sorted(data.items())}
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
                os.replace(tmp_path, self.path)
            except OSError as e:
                raise StorageError(f"cannot write storage file {self.path}: {e}") from e
            self._data = data

        logger.debug("Storage file written", path=str(self.path), writes=len(writes))


class MongoBackend(StorageBackend):
    """Backend keeping one MongoDB document per storage key."""

    def __init__(self, db_config: Optional[DatabaseConfig] = None, client: Optional[MongoClient] = None):
        self.db_config = db_config or get_db_config()
        self.client = client
        self.collection = None

    def connect(self) -> "MongoBackend":
        """Connect to MongoDB and verify the server is reachable."""
        if self.client is None:
            self.client = MongoClient(
                self.db_config.mongodb_url,
                serverSelectionTimeoutMS=self.db_config.connection_timeout * 1000,
            )
        try:
            self.client.admin.command("ping")
        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise StorageError(f"cannot connect to MongoDB: {e}") from e

        self.collection = self.client[self.db_config.database_name][self.db_config.storage_collection]
        logger.info(
            "Connected to MongoDB",
            database=self.db_config.database_name,
            collection=self.db_config.storage_collection,
        )
        return self

    def _get_collection(self):
        if self.collection is None:
            raise StorageError("MongoDB backend not connected")
        return self.collection

    def get(self, key: str) -> Optional[bytes]:
        try:
            doc = self._get_collection().find_one({"_id": key})
        except PyMongoError as e:
            raise StorageError(f"MongoDB read failed: {e}") from e
        return bytes(doc["value"]) if doc else None

    def scan(self, prefix: str) -> Iterator[Tuple[str, bytes]]:
        query = {"_id": {"$regex": "^" + re.escape(prefix)}}
        try:
            for doc in self._get_collection().find(query).sort("_id", 1):
                yield doc["_id"], bytes(doc["value"])
        except PyMongoError as e:
            raise StorageError(f"MongoDB scan failed: {e}") from e

    def commit(self, writes: Dict[str, bytes]) -> None:
        if not writes:
            return
        requests = [ReplaceOne({"_id": k}, {"_id": k, "value": v}, upsert=True) for k, v in writes.items()]
        collection = self._get_collection()
        try:
            if self.db_config.use_transactions:
                with self.client.start_session() as session:
                    session.with_transaction(
                        lambda s: collection.bulk_write(requests, ordered=True, session=s)
                    )
            else:
                collection.bulk_write(requests, ordered=True)
        except PyMongoError as e:
            logger.error("Failed to commit storage writes", error=str(e), writes=len(writes))
            raise StorageError(f"MongoDB commit failed: {e}") from e

    def close(self) -> None:
        if self.client:
            self.client.close()
            self.client = None
            self.collection = None
            logger.info("Disconnected from MongoDB")


class WriteBuffer(StorageBackend):
    """Buffers writes over a backend until flush.

    Reads see buffered writes first. Discarding the buffer leaves the
    underlying backend untouched.
    """

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.pending: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        if key in self.pending:
            return self.pending[key]
        return self.backend.get(key)

    def scan(self, prefix: str) -> Iterator[Tuple[str, bytes]]:
        seen = set()
        for key, value in self.backend.scan(prefix):
            seen.add(key)
            yield key, self.pending.get(key, value)
        for key in sorted(self.pending):
            if key.startswith(prefix) and key not in seen:
                yield key, self.pending[key]

    def commit(self, writes: Dict[str, bytes]) -> None:
        self.pending.update(writes)

    def flush(self) -> int:
        """Commit buffered writes to the backend. Returns the number written."""
        count = len(self.pending)
        if self.pending:
            self.backend.commit(self.pending)
        self.pending = {}
        return count

    def discard(self) -> None:
        self.pending = {}


def create_backend(db_config: Optional[DatabaseConfig] = None) -> StorageBackend:
    """Create the backend selected by configuration."""
    db_config = db_config or get_db_config()

    if db_config.storage_backend == "memory":
        return MemoryBackend()
    if db_config.storage_backend == "json":
        return JsonFileBackend(db_config.storage_path)
    return MongoBackend(db_config).connect()
