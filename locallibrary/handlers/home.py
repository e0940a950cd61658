import asyncio
import logging

from locallibrary.handlers import View, call
from locallibrary.models import CatalogCounts
from locallibrary.store import CatalogStore

logger = logging.getLogger(__name__)


async def catalog_counts(store: CatalogStore) -> tuple[CatalogCounts, Exception | None]:
    """Count every collection concurrently.

    A failed count is left as None and does not stop the others; the first
    error is returned alongside the counts.
    """
    reads = {
        "book_count": store.books.count,
        "book_instance_count": store.book_instances.count,
        "book_instance_available_count": store.available_instance_count,
        "author_count": store.authors.count,
        "genre_count": store.genres.count,
    }
    results = await asyncio.gather(*(call(fn) for fn in reads.values()), return_exceptions=True)

    counts, error = {}, None
    for name, value in zip(reads, results):
        if isinstance(value, Exception):
            logger.error(f"Counting {name} failed: {value}")
            error = error or value
            continue
        counts[name] = value
    return CatalogCounts(**counts), error


async def index(store: CatalogStore) -> View:
    counts, error = await catalog_counts(store)
    return View("index.html", {
        "title": "Local Library Home",
        "error": error,
        "data": counts,
    })
