import logging

from locallibrary.errors import NotFoundError
from locallibrary.handlers import Redirect, View, call, fan_out
from locallibrary.models import CATALOG_PREFIX, BookInstance, BookInstanceStatus
from locallibrary.store import CatalogStore
from locallibrary.validators import validate

logger = logging.getLogger(__name__)

LIST_URL = f"{CATALOG_PREFIX}/bookinstances"


def _form_view(title: str, books, bookinstance=None, errors=None) -> View:
    return View("bookinstance_form.html", {
        "title": title,
        "book_list": books,
        "selected_book": bookinstance.book if bookinstance is not None else None,
        "statuses": BookInstanceStatus.values(),
        "bookinstance": bookinstance,
        "errors": errors,
    })


async def bookinstance_list(store: CatalogStore) -> View:
    instances = await call(store.book_instances.find)
    books = await call(store.books.find_many, [i.book for i in instances])
    return View("bookinstance_list.html", {
        "title": "Book Instance List",
        "bookinstance_list": instances,
        "books_by_id": {b.id: b for b in books},
    })


async def _instance_with_book(store: CatalogStore, instance_id: str):
    instance = await call(store.book_instances.find_by_id, instance_id)
    if instance is None:
        return None, None
    return instance, await call(store.books.find_by_id, instance.book)


async def bookinstance_detail(store: CatalogStore, instance_id: str) -> View:
    instance, book = await _instance_with_book(store, instance_id)
    if instance is None:
        raise NotFoundError("Book copy not found")
    return View("bookinstance_detail.html", {
        "title": f"Copy: {book.title if book else 'unknown book'}",
        "bookinstance": instance,
        "book": book,
    })


async def bookinstance_create_get(store: CatalogStore) -> View:
    books = await call(store.books.find, None, "title")
    return _form_view("Create BookInstance", books)


async def bookinstance_create_post(store: CatalogStore, form) -> View | Redirect:
    result = validate("bookinstance", form)
    if not result.is_valid:
        books = await call(store.books.find, None, "title")
        instance = BookInstance.model_construct(**result.values)
        return _form_view("Create BookInstance", books, instance, result.errors)

    instance = await call(store.book_instances.insert, BookInstance(**result.values))
    return Redirect(instance.url)


async def bookinstance_delete_get(store: CatalogStore, instance_id: str) -> View | Redirect:
    instance, book = await _instance_with_book(store, instance_id)
    if instance is None:
        return Redirect(LIST_URL)
    return View("bookinstance_delete.html", {
        "title": "Delete Book Instance",
        "bookinstance": instance,
        "book": book,
    })


async def bookinstance_delete_post(store: CatalogStore, instance_id: str) -> Redirect:
    # No other record references a copy
    await call(store.book_instances.delete, instance_id)
    return Redirect(LIST_URL)


async def bookinstance_update_get(store: CatalogStore, instance_id: str) -> View:
    results = await fan_out(
        bookinstance=(store.book_instances.find_by_id, instance_id),
        books=(store.books.find, None, "title"),
    )
    if results["bookinstance"] is None:
        raise NotFoundError("Book copy not found")
    return _form_view("Update BookInstance", results["books"], results["bookinstance"])


async def bookinstance_update_post(store: CatalogStore, instance_id: str, form) -> View | Redirect:
    result = validate("bookinstance", form)
    if not result.is_valid:
        books = await call(store.books.find, None, "title")
        instance = BookInstance.model_construct(id=instance_id, **result.values)
        return _form_view("Update BookInstance", books, instance, result.errors)

    instance = await call(
        store.book_instances.update, instance_id, BookInstance(id=instance_id, **result.values)
    )
    if instance is None:
        raise NotFoundError("Book copy not found")
    return Redirect(instance.url)
