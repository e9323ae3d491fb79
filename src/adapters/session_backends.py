"""Key/value backends for session persistence.

Each backend stores one JSON text value per key. Backends are chosen by the
caller and injected into ``SessionStore``:

- ``InMemorySessionBackend``: process-local dict, no native expiry; the store
  sweeps it periodically.
- ``MongoSessionBackend``: MongoDB collection with a TTL index on
  ``expires_at``; expiry is enforced by the server.

All operations raise ``SessionStorageError`` on failure.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from pymongo import MongoClient
from pymongo.collection import Collection

from src.utils.errors import SessionStorageError
from src.utils.logger import logger


class SessionBackend(ABC):
    """Minimal key/value contract used by the session store."""

    supports_native_ttl: bool = False

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or None on a miss."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Missing keys are not an error."""

    async def scan(self, prefix: str) -> list[tuple[str, str]]:
        """List ``(key, value)`` pairs under ``prefix``.

        Only required for backends without native TTL.
        """
        raise NotImplementedError

    async def close(self) -> None:
        return None


class InMemorySessionBackend(SessionBackend):
    """Dict-backed store for development and single-process deployments."""

    supports_native_ttl = False

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        # Expiry is applied by SessionStore.sweep_expired
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def scan(self, prefix: str) -> list[tuple[str, str]]:
        return [(k, v) for k, v in list(self._data.items()) if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)


class MongoSessionBackend(SessionBackend):
    """MongoDB store using a per-document ``expires_at`` TTL index.

    The sync pymongo client runs in a worker thread via ``asyncio.to_thread``.
    MongoDB's TTL monitor only runs about once a minute, so ``get`` also
    treats documents past ``expires_at`` as misses.
    """

    supports_native_ttl = True

    def __init__(self, collection: Collection, client: Optional[MongoClient] = None) -> None:
        self._collection = collection
        self._client = client

    @classmethod
    def from_uri(cls, uri: str, database: str, collection: str) -> "MongoSessionBackend":
        """Connect and make sure the TTL index exists.

        Raises:
            SessionStorageError: If the server is unreachable or index creation fails.
        """
        client = MongoClient(uri, serverSelectionTimeoutMS=3000, tz_aware=True)
        backend = cls(client[database][collection], client=client)
        try:
            backend._ensure_indexes()
        except Exception as e:
            client.close()
            raise SessionStorageError(f"MongoDB session backend unavailable: {e}") from e
        return backend

    def _ensure_indexes(self) -> None:
        self._collection.create_index("expires_at", expireAfterSeconds=0)
        logger.info(f"MongoDB session collection ready: {self._collection.full_name}")

    async def get(self, key: str) -> Optional[str]:
        try:
            doc = await asyncio.to_thread(self._collection.find_one, {"_id": key})
        except Exception as e:
            raise SessionStorageError(f"MongoDB read failed for {key}: {e}") from e
        if not doc:
            return None
        expires_at = doc.get("expires_at")
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= datetime.now(timezone.utc):
                return None
        return doc.get("value")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        try:
            await asyncio.to_thread(
                self._collection.replace_one,
                {"_id": key},
                {"_id": key, "value": value, "expires_at": expires_at},
                upsert=True,
            )
        except Exception as e:
            raise SessionStorageError(f"MongoDB write failed for {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._collection.delete_one, {"_id": key})
        except Exception as e:
            raise SessionStorageError(f"MongoDB delete failed for {key}: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await asyncio.to_thread(self._client.close)
