"""FastAPI application entry point."""

import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from wordlookup.config import settings
from wordlookup.context import AppContext, build_context, get_context
from wordlookup.exceptions import WordNotFoundError
from wordlookup.logging_config import setup_logging
from wordlookup.rate_limit import client_ip, create_limiter, rate_limit_exceeded_handler
from wordlookup.routes import cache_router, entries_router

APP_VERSION = "0.1.0"

# Configure logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("Starting wordlookup...")
    context = await build_context(settings)
    app.state.context = context

    yield

    logger.info("Shutting down wordlookup...")
    await context.close()


# Create FastAPI app
app = FastAPI(
    title="wordlookup",
    description="Dictionary lookup API over local dictionaries with a remote fallback",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Include routers
app.include_router(entries_router)
app.include_router(cache_router)

# Rate limiting; the middleware reads app.state.limiter on every request
app.state.limiter = create_limiter(settings)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    ip = client_ip(request, settings.trust_proxy_hops)
    logger.info(
        f"{request.method} {request.url.path} {response.status_code} ip={ip} {elapsed_ms:.0f}ms"
    )
    return response


@app.exception_handler(WordNotFoundError)
async def word_not_found_handler(request: Request, exc: WordNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "title": "No Definitions Found",
            "message": f'Sorry, we couldn\'t find definitions for the word "{exc.word}".',
            "resolution": "Try checking the spelling or searching for a different word.",
        },
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "title": "Internal Error",
            "message": "An error occurred while processing your request.",
            "resolution": "Please try again later.",
        },
    )


@app.get("/health")
async def health(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Health check endpoint with provider status."""
    providers = [
        {
            "name": provider.name,
            "displayName": provider.display_name,
            "available": provider.is_available(),
        }
        for provider in context.registry.get_all()
    ]
    return {
        "status": "ok",
        "version": APP_VERSION,
        "providers": providers,
        "lazy": context.lazy_manager.loaded_names(),
        "ecdict": context.ecdict_word_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
