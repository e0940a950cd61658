import logging

from locallibrary.errors import NotFoundError
from locallibrary.handlers import Redirect, View, call, fan_out
from locallibrary.models import CATALOG_PREFIX, Author
from locallibrary.store import CatalogStore
from locallibrary.validators import validate

logger = logging.getLogger(__name__)

LIST_URL = f"{CATALOG_PREFIX}/authors"


async def author_list(store: CatalogStore) -> View:
    authors = await call(store.authors.find, None, "family_name")
    return View("author_list.html", {"title": "Author List", "author_list": authors})


async def author_detail(store: CatalogStore, author_id: str) -> View:
    results = await fan_out(
        author=(store.authors.find_by_id, author_id),
        author_books=(store.books_by_author, author_id),
    )
    if results["author"] is None:
        raise NotFoundError("Author not found")
    return View("author_detail.html", {
        "title": "Author Detail",
        "author": results["author"],
        "author_books": results["author_books"],
    })


async def author_create_get(store: CatalogStore) -> View:
    return View("author_form.html", {"title": "Create Author"})


async def author_create_post(store: CatalogStore, form) -> View | Redirect:
    result = validate("author", form)
    if not result.is_valid:
        return View("author_form.html", {
            "title": "Create Author",
            "author": Author.model_construct(**result.values),
            "errors": result.errors,
        })

    author = await call(store.authors.insert, Author(**result.values))
    return Redirect(author.url)


async def _delete_view(store: CatalogStore, author_id: str) -> View | Redirect:
    results = await fan_out(
        author=(store.authors.find_by_id, author_id),
        author_books=(store.books_by_author, author_id),
    )
    if results["author"] is None:
        return Redirect(LIST_URL)
    return View("author_delete.html", {
        "title": "Delete Author",
        "author": results["author"],
        "author_books": results["author_books"],
    })


async def author_delete_get(store: CatalogStore, author_id: str) -> View | Redirect:
    return await _delete_view(store, author_id)


async def author_delete_post(store: CatalogStore, author_id: str) -> View | Redirect:
    view = await _delete_view(store, author_id)
    if isinstance(view, View) and view.context["author_books"]:
        logger.info(f"Refusing to delete author {author_id}: it still has books")
        return view

    await call(store.authors.delete, author_id)
    return Redirect(LIST_URL)


async def author_update_get(store: CatalogStore, author_id: str) -> View:
    author = await call(store.authors.find_by_id, author_id)
    if author is None:
        raise NotFoundError("Author not found")
    return View("author_form.html", {"title": "Update Author", "author": author})


async def author_update_post(store: CatalogStore, author_id: str, form) -> View | Redirect:
    result = validate("author", form)
    if not result.is_valid:
        return View("author_form.html", {
            "title": "Update Author",
            "author": Author.model_construct(id=author_id, **result.values),
            "errors": result.errors,
        })

    author = await call(store.authors.update, author_id, Author(id=author_id, **result.values))
    if author is None:
        raise NotFoundError("Author not found")
    return Redirect(author.url)
