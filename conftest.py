import os
from datetime import date

import pytest
from fastapi.testclient import TestClient

from locallibrary.api import create_app
from locallibrary.models import Author, Book, BookInstance, Genre
from locallibrary.store import CatalogStore


@pytest.fixture
def db_file(tmp_path, request):
    # A unique database file for every test
    path = str(tmp_path / f"test_{request.node.name}.db")
    yield path
    if os.path.exists(path):
        os.remove(path)


@pytest.fixture
def store(db_file):
    return CatalogStore(db_file)


@pytest.fixture
def client(store):
    app = create_app(store.db_file)
    return TestClient(app)


@pytest.fixture
def make_author(store):
    def _make(first_name="Patrick", family_name="Rothfuss", **kwargs):
        return store.authors.insert(Author(first_name=first_name, family_name=family_name, **kwargs))
    return _make


@pytest.fixture
def make_genre(store):
    def _make(name="Fantasy"):
        return store.genres.insert(Genre(name=name))
    return _make


@pytest.fixture
def make_book(store, make_author):
    def _make(title="The Name of the Wind", author=None, genres=(), summary="A summary", isbn="9781473211896"):
        author = author or make_author()
        return store.books.insert(Book(
            title=title,
            summary=summary,
            isbn=isbn,
            author=author.id,
            genre=[g.id for g in genres],
        ))
    return _make


@pytest.fixture
def make_instance(store):
    def _make(book, imprint="Gollancz, 2011.", status="Available", due_back=None):
        return store.book_instances.insert(BookInstance(
            book=book.id, imprint=imprint, status=status, due_back=due_back,
        ))
    return _make


@pytest.fixture
def today():
    return date.today()
