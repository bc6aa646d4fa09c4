"""Jira connector that pulls issues as documents."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from kmrl_docs.ingestion.connectors.base import BaseConnector

logger = logging.getLogger(__name__)


class JiraConnector(BaseConnector):
    connector_id = "jira"
    source = "Jira"

    def __init__(
        self,
        *,
        base_url: str,
        email: str,
        api_token: str,
        jql: str = "order by updated desc",
        max_results: int = 50,
        department: str = "Engineering",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")
        self.auth = (email, api_token)
        self.jql = jql
        self.max_results = max_results
        self.department = department

    async def fetch_documents(self) -> List[Dict[str, Any]]:
        params = {
            "jql": self.jql,
            "maxResults": self.max_results,
            "fields": "summary,status,project,labels,created,updated",
        }
        data = await self._get_json(f"{self.base_url}/rest/api/3/search", params=params, auth=self.auth)

        issues = data.get("issues", [])
        logger.info("Fetched %s Jira issues.", len(issues))
        return [self._to_document(issue) for issue in issues if issue.get("id")]

    def _to_document(self, issue: Dict[str, Any]) -> Dict[str, Any]:
        fields = issue.get("fields") or {}
        status = (fields.get("status") or {}).get("name")
        project_key = (fields.get("project") or {}).get("key")
        timestamp = fields.get("updated") or fields.get("created") or ""

        return {
            "id": f"jira-{issue['id']}",
            "title": fields.get("summary") or "Untitled Issue",
            "department": self.department,
            "date": timestamp[:10],
            "tags": [*(label for label in fields.get("labels", []) if label), *(tag for tag in (status, project_key) if tag)],
            "source": self.source,
            "filePath": f"{self.base_url}/browse/{issue.get('key')}",
        }
