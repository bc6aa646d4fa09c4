"""FastAPI dependency providers."""

from __future__ import annotations

from functools import lru_cache

from kmrl_docs.core.config import settings
from kmrl_docs.ingestion.connectors import load_connector_source
from kmrl_docs.ingestion.extractors import load_metadata_extractor
from kmrl_docs.ingestion.pipeline import IngestionOrchestrator
from kmrl_docs.ingestion.store import build_document_store


@lru_cache
def get_orchestrator() -> IngestionOrchestrator:
    """Process-wide orchestrator; capabilities are resolved on first use."""

    return IngestionOrchestrator(
        store=build_document_store(settings),
        extractor=load_metadata_extractor(settings),
        connectors=load_connector_source(settings),
        settings=settings,
    )
