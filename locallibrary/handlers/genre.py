import logging

from locallibrary.errors import NotFoundError
from locallibrary.handlers import Redirect, View, call, fan_out
from locallibrary.models import CATALOG_PREFIX, Genre
from locallibrary.store import CatalogStore
from locallibrary.validators import single_error, validate

logger = logging.getLogger(__name__)

LIST_URL = f"{CATALOG_PREFIX}/genres"


async def genre_list(store: CatalogStore) -> View:
    genres = await call(store.genres.find, None, "name")
    return View("genre_list.html", {"title": "Genre List", "genre_list": genres})


async def genre_detail(store: CatalogStore, genre_id: str) -> View:
    results = await fan_out(
        genre=(store.genres.find_by_id, genre_id),
        genre_books=(store.books_by_genre, genre_id),
    )
    if results["genre"] is None:
        raise NotFoundError("Genre not found")
    return View("genre_detail.html", {
        "title": "Genre Detail",
        "genre": results["genre"],
        "genre_books": results["genre_books"],
    })


async def genre_create_get(store: CatalogStore) -> View:
    return View("genre_form.html", {"title": "Create Genre"})


async def genre_create_post(store: CatalogStore, form) -> View | Redirect:
    result = validate("genre", form)
    if not result.is_valid:
        return View("genre_form.html", {
            "title": "Create Genre",
            "genre": Genre.model_construct(**result.values),
            "errors": result.errors,
        })

    # Check-then-insert; two concurrent creates of one name can both insert
    found = await call(store.genres.find_one, name=result.values["name"])
    if found is not None:
        logger.info(f"Genre {result.values['name']!r} already exists as {found.id}")
        return Redirect(found.url)

    genre = await call(store.genres.insert, Genre(**result.values))
    return Redirect(genre.url)


async def _delete_view(store: CatalogStore, genre_id: str) -> View | Redirect:
    results = await fan_out(
        genre=(store.genres.find_by_id, genre_id),
        genre_books=(store.books_by_genre, genre_id),
    )
    if results["genre"] is None:
        return Redirect(LIST_URL)
    return View("genre_delete.html", {
        "title": "Delete Genre",
        "genre": results["genre"],
        "genre_books": results["genre_books"],
    })


async def genre_delete_get(store: CatalogStore, genre_id: str) -> View | Redirect:
    return await _delete_view(store, genre_id)


async def genre_delete_post(store: CatalogStore, genre_id: str) -> View | Redirect:
    view = await _delete_view(store, genre_id)
    if isinstance(view, View) and view.context["genre_books"]:
        logger.info(f"Refusing to delete genre {genre_id}: books are tagged with it")
        return view

    await call(store.genres.delete, genre_id)
    return Redirect(LIST_URL)


async def genre_update_get(store: CatalogStore, genre_id: str) -> View:
    genre = await call(store.genres.find_by_id, genre_id)
    if genre is None:
        raise NotFoundError("Genre not found")
    return View("genre_form.html", {"title": "Update Genre", "genre": genre})


async def genre_update_post(store: CatalogStore, genre_id: str, form) -> View | Redirect:
    result = validate("genre", form)
    genre = Genre.model_construct(id=genre_id, **result.values)
    if not result.is_valid:
        return View("genre_form.html", {
            "title": "Update Genre",
            "genre": genre,
            "errors": result.errors,
        })

    found = await call(store.genres.find_one, name=result.values["name"])
    if found is not None and found.id != genre_id:
        logger.warning(f"Genre {genre_id} cannot be renamed to {found.name!r}: name taken by {found.id}")
        return View("genre_form.html", {
            "title": "Update Genre",
            "genre": genre,
            "errors": single_error("This genre already exists", "name"),
        })

    updated = await call(store.genres.update, genre_id, Genre(id=genre_id, **result.values))
    if updated is None:
        raise NotFoundError("Genre not found")
    return Redirect(updated.url)
