"""Shared fakes for the journal tests."""
import asyncio
import json
import httpx
import pytest

from journal.async_client import AsyncOpenLibraryClient, AsyncRemoteStoreClient
from journal.covers import CoverResolver
from journal.gateway import PersistenceGateway
from journal.sync import SyncCoordinator


REMOTE_URL = "http://journal.test/api/books"
SEARCH_URL = "http://covers.test/search.json"
TEMPLATE = "http://covers.test/b/id/{cover_id}-M.jpg"


class MemoryCache:
    """Dict-backed stand-in for the local snapshot cache."""

    def __init__(self, initial=None):
        self.data = dict(initial or {})
        self.writes = 0

    def read(self, key):
        return self.data.get(key)

    def write(self, key, payload):
        self.data[key] = json.loads(json.dumps(payload))
        self.writes += 1
        return True

    def close(self):
        pass


class FakeServices:
    """Mock transport serving the remote store and the cover search."""

    def __init__(self, stored=None, covers=None):
        self.stored = stored
        self.covers = covers or {}
        self.fail_get = False
        self.fail_post = False
        self.delays = {}
        self.posts = []
        self.queries = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "journal.test":
            if request.method == "GET":
                if self.fail_get:
                    return httpx.Response(500, json={"error": "Internal server error"})
                return httpx.Response(200, json=self.stored or [])
            if self.fail_post:
                return httpx.Response(500, json={"error": "Internal server error"})
            self.stored = json.loads(request.content)
            self.posts.append(self.stored)
            return httpx.Response(200, json={"success": True})

        query = request.url.params["q"]
        self.queries.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so overlapping lookups would be visible
            await _yield()
            for _ in range(self.delays.get(query, 0)):
                await asyncio.sleep(0)
            cover_id = self.covers.get(query)
            docs = [{"cover_i": cover_id}] if cover_id else []
            return httpx.Response(200, json={"docs": docs})
        finally:
            self.in_flight -= 1

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


async def _yield():
    await asyncio.sleep(0)
    await asyncio.sleep(0)


def make_coordinator(services: FakeServices, cache: MemoryCache, **kwargs) -> SyncCoordinator:
    client = services.client()
    remote = AsyncRemoteStoreClient(REMOTE_URL, client=client)
    search = AsyncOpenLibraryClient(base_url=SEARCH_URL, client=client)
    resolver = CoverResolver(search, image_template=TEMPLATE)
    gateway = PersistenceGateway(remote, cache, "reading-journal-books")
    return SyncCoordinator(gateway, resolver, **kwargs)


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def services():
    return FakeServices()
