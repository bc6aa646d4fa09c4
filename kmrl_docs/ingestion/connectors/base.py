"""Common connector scaffolding and the connector registry."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

import httpx

from kmrl_docs.core.exceptions import ConnectorNotFoundError

logger = logging.getLogger(__name__)


class ConnectorSource(Protocol):
    async def ingest_documents(self, connector_id: str) -> List[Dict[str, Any]]: ...


class BaseConnector:
    """Base class shared across connectors.

    `fetch_documents` returns plain dicts in the connector document shape:
    ``{id, title, department, date, tags, source, filePath}``.
    """

    connector_id: str = "unknown"
    source: str = "Unknown"

    def __init__(self, *, timeout: float = 30, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.timeout = timeout
        self.transport = transport

    async def fetch_documents(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def _get_json(self, url: str, *, params: Optional[Dict[str, Any]] = None, auth=None) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(url, params=params, auth=auth)
            response.raise_for_status()
            return response.json()


class DocumentConnectors:
    """Registry of live connectors keyed by connector id."""

    def __init__(self, connectors: Iterable[BaseConnector]) -> None:
        self.connectors: Dict[str, BaseConnector] = {connector.connector_id: connector for connector in connectors}

    async def ingest_documents(self, connector_id: str) -> List[Dict[str, Any]]:
        connector = self.connectors.get(connector_id)
        if connector is None:
            raise ConnectorNotFoundError(f"Unknown connector: {connector_id}")

        documents = await connector.fetch_documents()
        logger.info("Fetched %s documents from connector %s.", len(documents), connector_id)
        return documents


class NullConnectorSource:
    """Connector source used when connectors are unavailable; never yields documents."""

    async def ingest_documents(self, connector_id: str) -> List[Dict[str, Any]]:
        logger.warning("Connectors unavailable; sync of %s returned no documents.", connector_id)
        return []
