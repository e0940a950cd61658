import json

import pytest
from typer.testing import CliRunner

from locallibrary.cli import app
from locallibrary.seed import AUTHORS, BOOK_INSTANCES, BOOKS, GENRES
from locallibrary.store import CatalogStore
from locallibrary.validators import validate

runner = CliRunner()


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setenv("LIBRARY_CLI_OUTPUT", "plain")


def test_init_db(db_file):
    result = runner.invoke(app, ["--db", db_file, "init-db"])
    assert result.exit_code == 0
    assert "Database initialized" in result.stdout
    assert CatalogStore(db_file).authors.count() == 0


def test_populate_creates_sample_catalog(db_file):
    result = runner.invoke(app, ["--db", db_file, "populate"])
    assert result.exit_code == 0
    assert f"Created {len(BOOKS)} books" in result.stdout

    store = CatalogStore(db_file)
    assert store.authors.count() == len(AUTHORS)
    assert store.genres.count() == len(GENRES)
    assert store.book_instances.count() == len(BOOK_INSTANCES)
    # Test Book 1 carries two genres
    book = store.books.find_one(title="Test Book 1")
    assert len(book.genre) == 2


def test_populate_refuses_non_empty_catalog(db_file):
    assert runner.invoke(app, ["--db", db_file, "populate"]).exit_code == 0

    result = runner.invoke(app, ["--db", db_file, "populate"])
    assert result.exit_code == 1
    assert "--force" in result.stdout
    assert CatalogStore(db_file).books.count() == len(BOOKS)


def test_stats_plain(db_file, make_book):
    make_book()
    result = runner.invoke(app, ["--db", db_file, "stats"])
    assert result.exit_code == 0
    assert "Books: 1" in result.stdout
    assert "Genres: 0" in result.stdout


def test_stats_json(db_file):
    runner.invoke(app, ["--db", db_file, "populate"])
    result = runner.invoke(app, ["--db", db_file, "--output", "json", "stats"])
    assert result.exit_code == 0

    data = json.loads(result.stdout)
    available = sum(1 for _, _, status in BOOK_INSTANCES if status.value == "Available")
    assert data["book_count"] == len(BOOKS)
    assert data["book_instance_available_count"] == available


def test_populate_stores_text_like_the_forms(db_file):
    runner.invoke(app, ["--db", db_file, "populate"])
    title, summary, isbn, _, _ = BOOKS[1]
    submitted = validate("book", {"title": title, "summary": summary, "isbn": isbn, "author": "x"})

    book = CatalogStore(db_file).books.find_one(title=submitted.values["title"])
    assert book is not None
    assert book.title == "The Wise Man&#x27;s Fear (The Kingkiller Chronicle, #2)"
