import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from . import quotes
from .config import settings
from .database import Database
from .routes import coin as coin_routes
from .routes import users as users_routes
from .schemas import format_validation_error

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to the store and open the upstream client.

    Any error here aborts startup, so the server exits instead of serving
    traffic without a store.
    """
    database = Database.from_url(settings.database_url)
    database.wait_until_ready(
        attempts=settings.db_ready_attempts,
        interval=settings.db_ready_interval_seconds,
    )
    database.create_schema()
    app.state.database = database
    app.state.http_client = quotes.build_client(settings)
    try:
        yield
    finally:
        app.state.http_client.close()
        database.dispose()


# The service only speaks JSON, so the HTML docs pages are not served.
app = FastAPI(
    title="coinboard",
    description="Users table access and a pass-through crypto quote proxy.",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
)


# Registered first so it runs inside the CORS middleware.
@app.middleware("http")
async def json_content_type(request: Request, call_next):
    response = await call_next(request)
    response.headers["Content-Type"] = "application/json"
    return response


@app.middleware("http")
async def enable_cors(request: Request, call_next):
    """Outermost layer: every response, 500s included, gets the CORS headers."""
    if request.method == "OPTIONS":
        response = Response(status_code=200, media_type="application/json")
    else:
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled application error")
            response = JSONResponse({"detail": "Internal server error"}, status_code=500)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(FastAPIHTTPException)
async def http_exception_handler(request: Request, exc: FastAPIHTTPException):
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client errors like any other: 400, not 422.
    return JSONResponse({"detail": format_validation_error(exc)}, status_code=400)


app.include_router(users_routes.router, prefix=settings.api_prefix)
app.include_router(coin_routes.router, prefix=settings.api_prefix)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
