"""Best-effort cover image lookup."""
import logging
from typing import Optional, Set, Tuple

from journal.async_client import AsyncOpenLibraryClient
from journal.parse import parse_cover_url

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_TEMPLATE = "https://covers.openlibrary.org/b/id/{cover_id}-M.jpg"


class CoverResolver:
    """Maps a title/author pair to an optional cover image URL.

    Never raises: any failure yields None. No caching of hits and no retries.
    """

    def __init__(
        self,
        client: AsyncOpenLibraryClient,
        image_template: str = DEFAULT_IMAGE_TEMPLATE,
        remember_misses: bool = False
    ):
        """
        Args:
            client: Search client
            image_template: URL template with a {cover_id} placeholder
            remember_misses: Skip pairs that already came back without a cover
        """
        self.client = client
        self.image_template = image_template
        self.remember_misses = remember_misses
        self._misses: Set[Tuple[str, str]] = set()

    @staticmethod
    def build_query(title: str, author: str) -> str:
        return f"{title} {author}".strip()

    async def resolve(self, title: str, author: str) -> Optional[str]:
        """Look up a cover URL, or None if there is none or the lookup failed."""
        key = (title.casefold(), author.casefold())
        if self.remember_misses and key in self._misses:
            logger.debug(f"Skipping known cover miss: {title} / {author}")
            return None

        try:
            response = await self.client.search(self.build_query(title, author), limit=1)
            if response is None:
                # Transport failure, worth asking again later
                return None
            cover_url = parse_cover_url(response, self.image_template)
        except Exception as e:
            logger.warning(f"Cover lookup failed for {title!r}: {e}")
            return None

        if cover_url is None:
            logger.info(f"No cover found for {title!r} by {author!r}")
            if self.remember_misses:
                self._misses.add(key)
        return cover_url

    async def close(self):
        await self.client.close()
