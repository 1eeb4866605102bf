"""
main.py – FastAPI app entry point (slim wire-up only).
Connects routes, middleware, error envelopes and lifespan. No business logic.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .db.session import dispose_engines, init_db
from .deps import get_app_settings
from .middleware import access_log, rate_limit
from .routes import auth, favorites, locations, menu, system, trucks, users

logging.basicConfig(
    level=get_app_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_app_settings()
    logger.info("Starting TruckTrace API (%s)", settings.environment)
    init_db(settings.database_url)
    yield
    dispose_engines()
    logger.info("Shutdown.")


app = FastAPI(
    title="TruckTrace API",
    description="Food-truck discovery: live truck locations, menus and favorites.",
    version=__version__,
    lifespan=lifespan,
)

# last added runs first: CORS → rate limit → access log
app.middleware("http")(access_log)
app.middleware("http")(rate_limit)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_app_settings().frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ── Error envelopes ────────────────────────────────────────────────────────────

def _envelope(status_code: int, message: str, errors: list | None = None) -> JSONResponse:
    body: dict = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def _field_name(loc: tuple) -> str:
    # ("body", "email") → "email"; ("query", "lat") → "lat"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def _clean_message(msg: str) -> str:
    return msg.removeprefix("Value error, ")


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    errors = [{"field": _field_name(tuple(e.get("loc", ()))), "message": _clean_message(e.get("msg", ""))}
              for e in exc.errors()]
    return _envelope(400, "Validation errors", errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _envelope(404, "Route not found")
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(IntegrityError)
async def integrity_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _envelope(400, "Duplicate entry")


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(500, "Internal server error")


# ── Routers ────────────────────────────────────────────────────────────────────

app.include_router(system.router)
app.include_router(auth.router)
app.include_router(trucks.router)
app.include_router(locations.router)
app.include_router(menu.router)
app.include_router(users.router)
app.include_router(favorites.router)
