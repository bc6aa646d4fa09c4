"""Confluence connector."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from kmrl_docs.ingestion.connectors.base import BaseConnector

logger = logging.getLogger(__name__)


class ConfluenceConnector(BaseConnector):
    connector_id = "confluence"
    source = "Confluence"

    def __init__(
        self,
        *,
        base_url: str,
        email: str,
        api_token: str,
        space_key: Optional[str] = None,
        limit: int = 50,
        department: str = "Operations",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")
        self.auth = (email, api_token)
        self.space_key = space_key
        self.limit = limit
        self.department = department

    async def fetch_documents(self) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "limit": self.limit,
            "expand": "version",
        }
        if self.space_key:
            params["spaceKey"] = self.space_key

        payload = await self._get_json(f"{self.base_url}/rest/api/content", params=params, auth=self.auth)

        pages = payload.get("results", [])
        logger.info("Fetched %s Confluence pages.", len(pages))
        return [self._to_document(page) for page in pages if page.get("id")]

    def _to_document(self, page: Dict[str, Any]) -> Dict[str, Any]:
        version = page.get("version") or {}

        return {
            "id": f"confluence-{page['id']}",
            "title": page.get("title") or "Untitled Page",
            "department": self.department,
            "date": (version.get("when") or "")[:10],
            "tags": ["confluence", f"version:{version.get('number', 1)}"],
            "source": self.source,
            "filePath": f"{self.base_url}/pages/{page['id']}",
        }
