"""FastAPI application entrypoint for the document intake service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from kmrl_docs.api.dependencies import get_orchestrator
from kmrl_docs.api.middleware.logging import LoggingMiddleware
from kmrl_docs.api.routes import ingestion
from kmrl_docs.core.config import settings
from kmrl_docs.core.exceptions import ApplicationError
from kmrl_docs.core.observability import setup_tracing

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Resolve the ingestion capabilities on startup."""

    orchestrator = get_orchestrator()
    logger.info(
        "Document intake ready (store=%s, extractor=%s)",
        settings.STORE_BACKEND,
        type(orchestrator.extraction.extractor).__name__,
    )
    try:
        yield
    finally:
        logger.info("Document intake shutting down")


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

setup_tracing(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

# Routers
app.include_router(ingestion.router, prefix="/api")

app.mount("/metrics", make_asgi_app())


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": settings.API_VERSION}


@app.exception_handler(ApplicationError)
async def handle_application_error(_: Request, exc: ApplicationError):
    """Return standardized responses for application layer exceptions."""

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, **exc.details},
    )
