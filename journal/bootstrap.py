"""Wire the journal components together from configuration."""
import logging
from typing import Optional

import httpx

from journal.async_client import AsyncOpenLibraryClient, AsyncRemoteStoreClient
from journal.config import Config, setup_logging
from journal.covers import CoverResolver
from journal.database import Database
from journal.gateway import PersistenceGateway
from journal.local_cache import FileSnapshotCache
from journal.sync import SyncCoordinator

logger = logging.getLogger(__name__)


def setup_local_cache(config: Config):
    """Create the local snapshot cache selected by JOURNAL_CACHE_BACKEND."""
    if config.CACHE_BACKEND == "postgres":
        db = Database(config.DATABASE_URL)
        db.init_schema()
        return db
    if config.CACHE_BACKEND != "file":
        raise ValueError(f"Unknown cache backend: {config.CACHE_BACKEND!r}")
    return FileSnapshotCache(config.CACHE_DIR)


def build_coordinator(
    config: Optional[Config] = None,
    local_cache=None,
    http_client: Optional[httpx.AsyncClient] = None
) -> SyncCoordinator:
    """
    Build an unstarted coordinator.

    Args:
        config: Settings (defaults to the environment)
        local_cache: Snapshot cache override
        http_client: Shared httpx client for both services
    """
    config = config or Config()
    if local_cache is None:
        local_cache = setup_local_cache(config)

    remote = AsyncRemoteStoreClient(
        config.REMOTE_URL,
        timeout=config.DEFAULT_TIMEOUT,
        client=http_client
    )
    search = AsyncOpenLibraryClient(
        base_url=config.COVER_SEARCH_URL,
        timeout=config.DEFAULT_TIMEOUT,
        max_concurrent=config.COVER_MAX_CONCURRENT,
        client=http_client
    )
    resolver = CoverResolver(
        search,
        image_template=config.COVER_IMAGE_TEMPLATE,
        remember_misses=config.COVER_REMEMBER_MISSES
    )
    gateway = PersistenceGateway(remote, local_cache, config.COLLECTION_KEY)
    logger.info(f"Journal backed by {config.REMOTE_URL} ({config.CACHE_BACKEND} cache)")
    return SyncCoordinator(gateway, resolver, strict=config.STRICT_IDS)


async def open_journal(config: Optional[Config] = None, **kwargs) -> SyncCoordinator:
    """Build a coordinator and wait for the initial load."""
    setup_logging()
    coordinator = build_coordinator(config, **kwargs)
    await coordinator.start()
    return coordinator
