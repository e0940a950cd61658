import logging

from locallibrary.errors import NotFoundError
from locallibrary.handlers import Redirect, View, call, fan_out, mark_checked
from locallibrary.models import CATALOG_PREFIX, Book
from locallibrary.store import CatalogStore
from locallibrary.validators import validate

logger = logging.getLogger(__name__)

LIST_URL = f"{CATALOG_PREFIX}/books"


async def _form_choices(store: CatalogStore) -> dict:
    return await fan_out(
        authors=(store.authors.find, None, "family_name"),
        genres=(store.genres.find, None, "name"),
    )


def _form_view(title: str, choices: dict, book=None, errors=None) -> View:
    return View("book_form.html", {
        "title": title,
        "authors": choices["authors"],
        "genres": mark_checked(choices["genres"], book.genre if book is not None else ()),
        "book": book,
        "errors": errors,
    })


async def book_list(store: CatalogStore) -> View:
    books = await call(store.books.find, None, "title")
    authors = await call(store.authors.find_many, [b.author for b in books])
    return View("book_list.html", {
        "title": "Book List",
        "book_list": books,
        "authors_by_id": {a.id: a for a in authors},
    })


async def book_detail(store: CatalogStore, book_id: str) -> View:
    results = await fan_out(
        book=(store.books.find_by_id, book_id),
        book_instances=(store.instances_of_book, book_id),
    )
    book = results["book"]
    if book is None:
        raise NotFoundError("Book not found")

    refs = await fan_out(
        author=(store.authors.find_by_id, book.author),
        genres=(store.genres.find_many, book.genre),
    )
    return View("book_detail.html", {
        "title": book.title,
        "book": book,
        "author": refs["author"],
        "genres": refs["genres"],
        "book_instances": results["book_instances"],
    })


async def book_create_get(store: CatalogStore) -> View:
    return _form_view("Create Book", await _form_choices(store))


async def book_create_post(store: CatalogStore, form) -> View | Redirect:
    result = validate("book", form)
    if not result.is_valid:
        book = Book.model_construct(**result.values)
        return _form_view("Create Book", await _form_choices(store), book, result.errors)

    book = await call(store.books.insert, Book(**result.values))
    return Redirect(book.url)


async def _delete_view(store: CatalogStore, book_id: str) -> View | Redirect:
    results = await fan_out(
        book=(store.books.find_by_id, book_id),
        book_instances=(store.instances_of_book, book_id),
    )
    if results["book"] is None:
        return Redirect(LIST_URL)
    return View("book_delete.html", {
        "title": "Delete Book",
        "book": results["book"],
        "book_instances": results["book_instances"],
    })


async def book_delete_get(store: CatalogStore, book_id: str) -> View | Redirect:
    return await _delete_view(store, book_id)


async def book_delete_post(store: CatalogStore, book_id: str) -> View | Redirect:
    view = await _delete_view(store, book_id)
    if isinstance(view, View) and view.context["book_instances"]:
        logger.info(f"Refusing to delete book {book_id}: it still has copies")
        return view

    await call(store.books.delete, book_id)
    return Redirect(LIST_URL)


async def book_update_get(store: CatalogStore, book_id: str) -> View:
    results = await fan_out(
        book=(store.books.find_by_id, book_id),
        authors=(store.authors.find, None, "family_name"),
        genres=(store.genres.find, None, "name"),
    )
    if results["book"] is None:
        raise NotFoundError("Book not found")
    return _form_view("Update Book", results, results["book"])


async def book_update_post(store: CatalogStore, book_id: str, form) -> View | Redirect:
    result = validate("book", form)
    if not result.is_valid:
        book = Book.model_construct(id=book_id, **result.values)
        return _form_view("Update Book", await _form_choices(store), book, result.errors)

    book = await call(store.books.update, book_id, Book(id=book_id, **result.values))
    if book is None:
        raise NotFoundError("Book not found")
    return Redirect(book.url)
