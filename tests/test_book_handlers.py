import asyncio

import pytest

from locallibrary.errors import NotFoundError
from locallibrary.handlers import Redirect, View
from locallibrary.handlers import book as handlers


def run(coro):
    return asyncio.run(coro)


def _checked(view):
    return {c.item.name for c in view.context["genres"] if c.checked}


def test_create_and_detail_resolve_references(store, make_author, make_genre):
    author = make_author("Isaac", "Asimov")
    g1, g2 = make_genre("Fantasy"), make_genre("Science Fiction")

    result = run(handlers.book_create_post(store, {
        "title": "Foundation", "author": author.id, "summary": "Psychohistory.",
        "isbn": "9780553293357", "genre": [g1.id, g2.id],
    }))
    assert isinstance(result, Redirect)
    book_id = result.url.rsplit("/", 1)[1]

    view = run(handlers.book_detail(store, book_id))
    assert view.context["title"] == "Foundation"
    assert view.context["author"].name == "Asimov, Isaac"
    assert [g.name for g in view.context["genres"]] == ["Fantasy", "Science Fiction"]
    assert view.context["book_instances"] == []


def test_detail_with_broken_author_reference(store, make_book, make_author):
    author = make_author()
    book = make_book(author=author)
    store.authors.delete(author.id)

    view = run(handlers.book_detail(store, book.id))
    assert view.context["author"] is None


def test_detail_missing(store):
    with pytest.raises(NotFoundError):
        run(handlers.book_detail(store, "missing"))


def test_list_resolves_authors(store, make_author, make_book):
    author = make_author("Ben", "Bova")
    make_book(title="Death Wave", author=author)
    make_book(title="Apes and Angels", author=author)

    view = run(handlers.book_list(store))
    assert [b.title for b in view.context["book_list"]] == ["Apes and Angels", "Death Wave"]
    assert view.context["authors_by_id"][author.id].name == "Bova, Ben"


def test_create_form_fetches_choices(store, make_author, make_genre):
    make_author()
    make_genre()
    view = run(handlers.book_create_get(store))
    assert len(view.context["authors"]) == 1
    assert [c.checked for c in view.context["genres"]] == [False]


def test_create_invalid_keeps_selected_genres_checked(store, make_author, make_genre):
    author = make_author()
    fantasy = make_genre("Fantasy")
    make_genre("Poetry")

    view = run(handlers.book_create_post(store, {
        "title": "", "author": author.id, "summary": "S", "isbn": "1", "genre": [fantasy.id],
    }))
    assert isinstance(view, View)
    assert [e.msg for e in view.context["errors"]] == ["Title must not be empty."]
    assert _checked(view) == {"Fantasy"}
    assert view.context["book"].author == author.id
    assert store.books.count() == 0


def test_update_form_marks_current_genres(store, make_genre, make_book):
    fantasy, poetry = make_genre("Fantasy"), make_genre("Poetry")
    book = make_book(genres=[poetry])

    view = run(handlers.book_update_get(store, book.id))
    assert view.context["title"] == "Update Book"
    assert _checked(view) == {"Poetry"}


def test_update_form_missing(store):
    with pytest.raises(NotFoundError):
        run(handlers.book_update_get(store, "missing"))


def test_update_replaces_fields_and_keeps_id(store, make_author, make_genre, make_book):
    book = make_book(genres=[make_genre("Fantasy")])
    new_author = make_author("Ben", "Bova")

    result = run(handlers.book_update_post(store, book.id, {
        "title": "New Title", "author": new_author.id, "summary": "New summary", "isbn": "42",
    }))
    assert result == Redirect(f"/catalog/book/{book.id}")

    stored = store.books.find_by_id(book.id)
    assert (stored.title, stored.author, stored.genre) == ("New Title", new_author.id, [])
    assert store.books.count() == 1


def test_update_invalid_carries_id(store, make_book):
    book = make_book()
    view = run(handlers.book_update_post(store, book.id, {"title": "X"}))
    assert view.context["book"].id == book.id
    assert view.context["title"] == "Update Book"


def test_delete_refused_while_copies_exist(store, make_book, make_instance):
    book = make_book()
    make_instance(book)

    view = run(handlers.book_delete_post(store, book.id))
    assert view.template == "book_delete.html"
    assert len(view.context["book_instances"]) == 1
    assert store.books.find_by_id(book.id) is not None


def test_delete_without_copies(store, make_book):
    book = make_book()
    assert run(handlers.book_delete_post(store, book.id)) == Redirect("/catalog/books")
    assert run(handlers.book_delete_get(store, book.id)) == Redirect("/catalog/books")
