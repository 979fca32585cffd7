"""Sync coordinator: initial load, cover enrichment and write-back."""
import asyncio
import logging
import time
from typing import Callable, Coroutine, List, Optional, Set, Tuple

from journal.covers import CoverResolver
from journal.errors import JournalNotReadyError
from journal.gateway import PersistenceGateway
from journal.models import Book, BookDraft, DEFAULT_READ_LEVEL
from journal.store import CollectionStore, StatusView

logger = logging.getLogger(__name__)

LOADING = "loading"
READY = "ready"


class SyncCoordinator:
    """Owns the collection store and keeps it synced.

    Runs on a single event loop. Every mutation writes the local cache
    synchronously and starts its own remote write; remote writes are not
    sequenced, so whichever response lands last decides the remote state.
    Cover lookups merge by id and never block a mutation.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        resolver: CoverResolver,
        strict: bool = False,
        clock: Callable[[], float] = time.time
    ):
        self.gateway = gateway
        self.resolver = resolver
        self.strict = strict
        self.clock = clock
        self.phase = LOADING
        self._store: Optional[CollectionStore] = None
        self._load_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._remote_writes = 0

    # -------------------------------------------------------------- lifecycle

    async def start(self) -> CollectionStore:
        """Load the collection and enter the ready phase (only once)."""
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._load_task)

    async def _load(self) -> CollectionStore:
        books = await self.gateway.load()
        store = CollectionStore(books, strict=self.strict, clock=self.clock)
        store.subscribe(self._write_back)
        self._store = store
        self.phase = READY
        logger.info(f"Journal ready with {len(store)} books")
        self._spawn(self._enrich_covers(store.missing_covers()), "cover-enrichment")
        return store

    @property
    def ready(self) -> bool:
        return self.phase == READY

    @property
    def store(self) -> CollectionStore:
        if self._store is None:
            raise JournalNotReadyError("Collection is still loading")
        return self._store

    @property
    def is_syncing(self) -> bool:
        """True while at least one remote write is in flight."""
        return self._remote_writes > 0

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def wait_idle(self):
        """Wait for every background write and cover lookup to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self):
        await self.wait_idle()
        await self.resolver.close()
        await self.gateway.close()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # -------------------------------------------------------- background work

    def _spawn(self, coro: Coroutine, name: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        logger.debug(f"Started background task {name}")
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background task failed: {task.exception()!r}")

    def _write_back(self, snapshot: Tuple[Book, ...]):
        self.gateway.save_local(snapshot)
        self._remote_writes += 1
        self._spawn(self._save_remote(snapshot), "remote-save")

    async def _save_remote(self, snapshot: Tuple[Book, ...]):
        try:
            await self.gateway.save_remote(snapshot)
        finally:
            self._remote_writes -= 1

    async def _resolve_cover(self, book_id: int, title: str, author: str):
        cover_url = await self.resolver.resolve(title, author)
        if cover_url:
            self.store.set_cover(book_id, cover_url)

    async def _enrich_covers(self, pending: List[Book]):
        # One lookup at a time over the books that lacked a cover on entering ready
        if not pending:
            return
        logger.info(f"Fetching covers for {len(pending)} books")
        for queued in pending:
            # Skip books deleted, edited or covered since the queue was built
            book = self.store.get(queued.id)
            if book is None or book.cover_url:
                continue
            if (book.title, book.author) != (queued.title, queued.author):
                continue
            await self._resolve_cover(book.id, book.title, book.author)
        logger.info("Cover enrichment pass finished")

    # -------------------------------------------------------------- mutations

    def add(self, title: str, author: str, read_level: str = DEFAULT_READ_LEVEL) -> Book:
        """Add a to-be-read book and look up its cover in the background."""
        book = self.store.add(BookDraft(title, author, read_level))
        self._spawn(self._resolve_cover(book.id, book.title, book.author), "add-cover")
        return book

    def edit_details(
        self,
        book_id: int,
        title: Optional[str] = None,
        author: Optional[str] = None,
        read_level: Optional[str] = None
    ) -> Optional[Book]:
        """Edit details, clearing the cover and looking up a new one."""
        book = self.store.edit_details(book_id, title=title, author=author, read_level=read_level)
        if book is not None:
            self._spawn(self._resolve_cover(book.id, book.title, book.author), "edit-cover")
        return book

    def mark_finished(self, book_id: int) -> Optional[Book]:
        return self.store.mark_finished(book_id)

    def mark_to_be_read(self, book_id: int) -> Optional[Book]:
        return self.store.mark_to_be_read(book_id)

    def update_finished_fields(
        self,
        book_id: int,
        rating: Optional[int] = None,
        notes: Optional[str] = None
    ) -> Optional[Book]:
        return self.store.update_finished_fields(book_id, rating=rating, notes=notes)

    def remove(self, book_id: int) -> bool:
        return self.store.remove(book_id)

    def view_by_status(self, status: str) -> StatusView:
        return self.store.view_by_status(status)
