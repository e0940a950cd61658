import asyncio
from datetime import date

import pytest

from locallibrary.errors import NotFoundError
from locallibrary.handlers import Redirect, View
from locallibrary.handlers import author as handlers


def run(coro):
    return asyncio.run(coro)


def test_list_sorted_by_family_name(store, make_author):
    make_author("Ben", "Bova")
    make_author("Isaac", "Asimov")

    view = run(handlers.author_list(store))
    assert view.template == "author_list.html"
    assert [a.family_name for a in view.context["author_list"]] == ["Asimov", "Bova"]


def test_detail_includes_books(store, make_author, make_book):
    author = make_author()
    make_book(title="The Wise Man's Fear", author=author)
    make_book(title="The Name of the Wind", author=author)

    view = run(handlers.author_detail(store, author.id))
    assert view.context["author"].id == author.id
    assert [b.title for b in view.context["author_books"]] == ["The Name of the Wind", "The Wise Man's Fear"]


def test_detail_missing_is_not_found(store):
    with pytest.raises(NotFoundError):
        run(handlers.author_detail(store, "missing"))


def test_create_form_renders_immediately(store):
    view = run(handlers.author_create_get(store))
    assert view.template == "author_form.html"
    assert view.context["title"] == "Create Author"


def test_create_valid_redirects_to_new_record(store):
    result = run(handlers.author_create_post(store, {
        "first_name": " Isaac ", "family_name": "Asimov",
        "date_of_birth": "1920-01-02", "date_of_death": "1992-04-06",
    }))
    assert isinstance(result, Redirect)

    [author] = store.authors.find()
    assert result.url == f"/catalog/author/{author.id}"
    assert author.first_name == "Isaac"
    assert author.date_of_death == date(1992, 4, 6)


def test_create_invalid_rerenders_without_persisting(store):
    result = run(handlers.author_create_post(store, {"first_name": "  Isaac  ", "family_name": ""}))

    assert isinstance(result, View)
    assert result.template == "author_form.html"
    assert result.context["errors"]
    assert result.context["author"].first_name == "Isaac"
    assert result.context["author"].id is None
    assert store.authors.count() == 0


def test_update_keeps_id(store, make_author):
    author = make_author()
    result = run(handlers.author_update_post(store, author.id, {
        "first_name": "Pat", "family_name": "Rothfuss", "date_of_birth": "1973-06-06",
    }))
    assert result == Redirect(f"/catalog/author/{author.id}")

    view = run(handlers.author_detail(store, author.id))
    assert view.context["author"].first_name == "Pat"
    assert view.context["author"].date_of_birth == date(1973, 6, 6)
    assert store.authors.count() == 1


def test_update_invalid_carries_original_id(store, make_author):
    author = make_author()
    view = run(handlers.author_update_post(store, author.id, {"first_name": "", "family_name": "X"}))

    assert view.context["author"].id == author.id
    assert store.authors.find_by_id(author.id).first_name == "Patrick"


def test_update_form_missing_is_not_found(store):
    with pytest.raises(NotFoundError):
        run(handlers.author_update_get(store, "missing"))


def test_delete_form_lists_books(store, make_author, make_book):
    author = make_author()
    make_book(title="Book One", author=author)
    make_book(title="Book Two", author=author)

    view = run(handlers.author_delete_get(store, author.id))
    assert view.template == "author_delete.html"
    assert len(view.context["author_books"]) == 2


def test_delete_form_missing_redirects_to_list(store):
    assert run(handlers.author_delete_get(store, "missing")) == Redirect("/catalog/authors")


def test_delete_refused_while_books_exist(store, make_author, make_book):
    author = make_author()
    make_book(author=author)
    make_book(title="Second", author=author)

    result = run(handlers.author_delete_post(store, author.id))
    assert isinstance(result, View)
    assert result.template == "author_delete.html"
    assert store.authors.find_by_id(author.id) is not None


def test_delete_without_books(store, make_author):
    author = make_author()
    assert run(handlers.author_delete_post(store, author.id)) == Redirect("/catalog/authors")
    with pytest.raises(NotFoundError):
        run(handlers.author_detail(store, author.id))
