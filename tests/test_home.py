import asyncio

from locallibrary.database import get_db_connection
from locallibrary.errors import StoreError
from locallibrary.handlers.home import catalog_counts, index


def test_index_counts(store, make_genre, make_book, make_instance):
    book = make_book(genres=[make_genre()])
    make_instance(book, status="Available")
    make_instance(book, status="Maintenance")

    view = asyncio.run(index(store))
    data = view.context["data"]
    assert view.context["error"] is None
    assert (data.book_count, data.book_instance_count, data.book_instance_available_count) == (1, 2, 1)
    assert (data.author_count, data.genre_count) == (1, 1)


def test_counts_tolerate_partial_failure(store, make_author):
    make_author()
    conn = get_db_connection(store.db_file)
    conn.execute("DROP TABLE genres")
    conn.commit()
    conn.close()

    counts, error = asyncio.run(catalog_counts(store))
    assert isinstance(error, StoreError)
    assert counts.genre_count is None
    assert counts.author_count == 1
