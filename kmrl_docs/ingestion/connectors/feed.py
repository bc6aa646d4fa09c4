"""Generic connector for departmental systems that publish a JSON document feed."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from kmrl_docs.ingestion.connectors.base import BaseConnector

logger = logging.getLogger(__name__)


class FeedConnector(BaseConnector):
    """Read documents from a URL returning a list, or ``{"documents": [...]}``.

    Feed entries must already be in connector document shape.
    """

    def __init__(self, connector_id: str, url: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.connector_id = connector_id
        self.source = connector_id
        self.url = url

    async def fetch_documents(self) -> List[Dict[str, Any]]:
        payload = await self._get_json(self.url)
        if isinstance(payload, dict):
            payload = payload.get("documents")
        if not isinstance(payload, list):
            raise ValueError(f"Feed {self.connector_id} returned an unexpected payload")
        logger.info("Fetched %s documents from feed %s.", len(payload), self.connector_id)
        return payload
