import html
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from locallibrary import __version__
from locallibrary.config import settings
from locallibrary.database import get_db_connection
from locallibrary.errors import CatalogError, NotFoundError, StoreError
from locallibrary.handlers import Redirect, View
from locallibrary.handlers import author as author_handlers
from locallibrary.handlers import book as book_handlers
from locallibrary.handlers import book_instance as bookinstance_handlers
from locallibrary.handlers import genre as genre_handlers
from locallibrary.handlers import home as home_handlers
from locallibrary.models import CATALOG_PREFIX, iso_date
from locallibrary.store import CatalogStore

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


def decode_stored_text(value):
    """Undo the escape applied on write so autoescape encodes stored text exactly once."""
    if isinstance(value, str) and not hasattr(value, "__html__"):
        return html.unescape(value)
    return value


TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["isodate"] = iso_date
# Applies to every {{ }} output, form values included
templates.env.finalize = decode_stored_text


def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


def render(request: Request, result: View | Redirect) -> Response:
    """Turn a handler result into a response."""
    if isinstance(result, Redirect):
        # 303 so that a redirected POST is followed with a GET
        return RedirectResponse(result.url, status_code=303)
    context = {"app_name": settings.app_name, **result.context}
    return templates.TemplateResponse(request, result.template, context, status_code=result.status_code)


# --- Home ---
home_router = APIRouter()


@home_router.get("/")
async def root():
    return RedirectResponse(CATALOG_PREFIX, status_code=303)


@home_router.get(CATALOG_PREFIX)
async def index(request: Request):
    return render(request, await home_handlers.index(get_store(request)))


# --- Authors ---
author_router = APIRouter(prefix=CATALOG_PREFIX)


@author_router.get("/authors")
async def author_list(request: Request):
    return render(request, await author_handlers.author_list(get_store(request)))


@author_router.get("/author/create")
async def author_create_get(request: Request):
    return render(request, await author_handlers.author_create_get(get_store(request)))


@author_router.post("/author/create")
async def author_create_post(request: Request):
    form = await request.form()
    return render(request, await author_handlers.author_create_post(get_store(request), form))


@author_router.get("/author/{author_id}")
async def author_detail(request: Request, author_id: str):
    return render(request, await author_handlers.author_detail(get_store(request), author_id))


@author_router.get("/author/{author_id}/delete")
async def author_delete_get(request: Request, author_id: str):
    return render(request, await author_handlers.author_delete_get(get_store(request), author_id))


@author_router.post("/author/{author_id}/delete")
async def author_delete_post(request: Request, author_id: str):
    form = await request.form()
    target = form.get("authorid") or author_id
    return render(request, await author_handlers.author_delete_post(get_store(request), target))


@author_router.get("/author/{author_id}/update")
async def author_update_get(request: Request, author_id: str):
    return render(request, await author_handlers.author_update_get(get_store(request), author_id))


@author_router.post("/author/{author_id}/update")
async def author_update_post(request: Request, author_id: str):
    form = await request.form()
    return render(request, await author_handlers.author_update_post(get_store(request), author_id, form))


# --- Books ---
book_router = APIRouter(prefix=CATALOG_PREFIX)


@book_router.get("/books")
async def book_list(request: Request):
    return render(request, await book_handlers.book_list(get_store(request)))


@book_router.get("/book/create")
async def book_create_get(request: Request):
    return render(request, await book_handlers.book_create_get(get_store(request)))


@book_router.post("/book/create")
async def book_create_post(request: Request):
    form = await request.form()
    return render(request, await book_handlers.book_create_post(get_store(request), form))


@book_router.get("/book/{book_id}")
async def book_detail(request: Request, book_id: str):
    return render(request, await book_handlers.book_detail(get_store(request), book_id))


@book_router.get("/book/{book_id}/delete")
async def book_delete_get(request: Request, book_id: str):
    return render(request, await book_handlers.book_delete_get(get_store(request), book_id))


@book_router.post("/book/{book_id}/delete")
async def book_delete_post(request: Request, book_id: str):
    form = await request.form()
    target = form.get("bookid") or book_id
    return render(request, await book_handlers.book_delete_post(get_store(request), target))


@book_router.get("/book/{book_id}/update")
async def book_update_get(request: Request, book_id: str):
    return render(request, await book_handlers.book_update_get(get_store(request), book_id))


@book_router.post("/book/{book_id}/update")
async def book_update_post(request: Request, book_id: str):
    form = await request.form()
    return render(request, await book_handlers.book_update_post(get_store(request), book_id, form))


# --- Book instances ---
bookinstance_router = APIRouter(prefix=CATALOG_PREFIX)


@bookinstance_router.get("/bookinstances")
async def bookinstance_list(request: Request):
    return render(request, await bookinstance_handlers.bookinstance_list(get_store(request)))


@bookinstance_router.get("/bookinstance/create")
async def bookinstance_create_get(request: Request):
    return render(request, await bookinstance_handlers.bookinstance_create_get(get_store(request)))


@bookinstance_router.post("/bookinstance/create")
async def bookinstance_create_post(request: Request):
    form = await request.form()
    return render(request, await bookinstance_handlers.bookinstance_create_post(get_store(request), form))


@bookinstance_router.get("/bookinstance/{instance_id}")
async def bookinstance_detail(request: Request, instance_id: str):
    return render(request, await bookinstance_handlers.bookinstance_detail(get_store(request), instance_id))


@bookinstance_router.get("/bookinstance/{instance_id}/delete")
async def bookinstance_delete_get(request: Request, instance_id: str):
    return render(request, await bookinstance_handlers.bookinstance_delete_get(get_store(request), instance_id))


@bookinstance_router.post("/bookinstance/{instance_id}/delete")
async def bookinstance_delete_post(request: Request, instance_id: str):
    form = await request.form()
    target = form.get("bookinstanceid") or instance_id
    return render(request, await bookinstance_handlers.bookinstance_delete_post(get_store(request), target))


@bookinstance_router.get("/bookinstance/{instance_id}/update")
async def bookinstance_update_get(request: Request, instance_id: str):
    return render(request, await bookinstance_handlers.bookinstance_update_get(get_store(request), instance_id))


@bookinstance_router.post("/bookinstance/{instance_id}/update")
async def bookinstance_update_post(request: Request, instance_id: str):
    form = await request.form()
    return render(
        request,
        await bookinstance_handlers.bookinstance_update_post(get_store(request), instance_id, form),
    )


# --- Genres ---
genre_router = APIRouter(prefix=CATALOG_PREFIX)


@genre_router.get("/genres")
async def genre_list(request: Request):
    return render(request, await genre_handlers.genre_list(get_store(request)))


@genre_router.get("/genre/create")
async def genre_create_get(request: Request):
    return render(request, await genre_handlers.genre_create_get(get_store(request)))


@genre_router.post("/genre/create")
async def genre_create_post(request: Request):
    form = await request.form()
    return render(request, await genre_handlers.genre_create_post(get_store(request), form))


@genre_router.get("/genre/{genre_id}")
async def genre_detail(request: Request, genre_id: str):
    return render(request, await genre_handlers.genre_detail(get_store(request), genre_id))


@genre_router.get("/genre/{genre_id}/delete")
async def genre_delete_get(request: Request, genre_id: str):
    return render(request, await genre_handlers.genre_delete_get(get_store(request), genre_id))


@genre_router.post("/genre/{genre_id}/delete")
async def genre_delete_post(request: Request, genre_id: str):
    form = await request.form()
    target = form.get("genreid") or genre_id
    return render(request, await genre_handlers.genre_delete_post(get_store(request), target))


@genre_router.get("/genre/{genre_id}/update")
async def genre_update_get(request: Request, genre_id: str):
    return render(request, await genre_handlers.genre_update_get(get_store(request), genre_id))


@genre_router.post("/genre/{genre_id}/update")
async def genre_update_post(request: Request, genre_id: str):
    form = await request.form()
    return render(request, await genre_handlers.genre_update_post(get_store(request), genre_id, form))


# --- Health check ---
health_router = APIRouter()


@health_router.get("/health")
async def health(request: Request):
    """Lightweight liveness probe with a quick database connection check."""
    db_ok = True
    try:
        conn = get_db_connection(get_store(request).db_file)
        conn.execute("SELECT 1")
        conn.close()
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        db_ok = False
    return {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "db": db_ok,
    }


# --- Error pages ---
async def catalog_error_handler(request: Request, exc: CatalogError):
    status_code = getattr(exc, "status_code", 500)
    if isinstance(exc, StoreError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    message = str(exc) if isinstance(exc, NotFoundError) or settings.debug else "Something went wrong."
    return templates.TemplateResponse(
        request,
        "error.html",
        {"app_name": settings.app_name, "title": "Error", "message": message, "status_code": status_code},
        status_code=status_code,
    )


def create_app(db_file: Optional[str] = None) -> FastAPI:
    """Create the catalog application backed by ``db_file``."""
    app = FastAPI(title=settings.app_name, version=__version__)
    app.state.store = CatalogStore(db_file or settings.database_file)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    app.add_exception_handler(CatalogError, catalog_error_handler)

    app.include_router(home_router)
    app.include_router(author_router)
    app.include_router(book_router)
    app.include_router(bookinstance_router)
    app.include_router(genre_router)
    app.include_router(health_router)
    return app
