"""Persistence gateway: remote store with a local fallback cache."""
import logging
from typing import List, Sequence

from journal.async_client import AsyncRemoteStoreClient
from journal.errors import RemoteStoreError
from journal.models import Book
from journal.parse import parse_collection, serialize_collection

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """Loads and saves the whole collection as one blob under a fixed key.

    The local cache is written on every save and read only when the remote
    load fails. Remote failures are logged and swallowed. There is no conflict
    detection: the last write to land wins.
    """

    def __init__(self, remote: AsyncRemoteStoreClient, local_cache, key: str):
        """
        Args:
            remote: Remote store client
            local_cache: Object with read(key), write(key, data) and close()
            key: Name of the single collection slot
        """
        self.remote = remote
        self.local_cache = local_cache
        self.key = key

    async def load(self) -> List[Book]:
        """Remote collection, else the local snapshot, else an empty list."""
        try:
            payload = await self.remote.fetch()
            # Anything that would be dropped on parse counts as a malformed response
            books = parse_collection(payload, strict=True)
            logger.info(f"Loaded {len(books)} books from remote store")
            return books
        except (RemoteStoreError, ValueError) as e:
            logger.warning(f"Remote load failed, using local cache: {e}")

        return self.load_local()

    def load_local(self) -> List[Book]:
        payload = self.local_cache.read(self.key)
        if payload is None:
            logger.info("No local snapshot, starting with an empty collection")
            return []
        try:
            books = parse_collection(payload)
        except ValueError as e:
            logger.error(f"Local snapshot is malformed, ignoring it: {e}")
            return []
        logger.info(f"Loaded {len(books)} books from local cache")
        return books

    def save_local(self, books: Sequence[Book]) -> bool:
        """Synchronously write the local snapshot. Never raises."""
        return self.local_cache.write(self.key, serialize_collection(books))

    async def save_remote(self, books: Sequence[Book]) -> bool:
        """Make one remote write attempt. Returns False instead of raising."""
        payload = serialize_collection(books)
        try:
            await self.remote.replace(payload)
        except RemoteStoreError as e:
            logger.warning(f"Remote save failed, local cache keeps the data: {e}")
            return False
        logger.info(f"Saved {len(payload)} books to remote store")
        return True

    async def save(self, books: Sequence[Book]) -> bool:
        """Local write, then a single remote attempt."""
        self.save_local(books)
        return await self.save_remote(books)

    async def close(self):
        await self.remote.close()
        self.local_cache.close()
