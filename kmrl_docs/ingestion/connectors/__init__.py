"""Connector sources for external document systems."""

from __future__ import annotations

import logging
from typing import List

from kmrl_docs.core.config import Settings

from .base import BaseConnector, ConnectorSource, DocumentConnectors, NullConnectorSource
from .confluence import ConfluenceConnector
from .feed import FeedConnector
from .jira import JiraConnector

logger = logging.getLogger(__name__)


def load_connector_source(settings: Settings) -> ConnectorSource:
    """Select the connector source once at startup."""

    if not settings.ENABLE_CONNECTORS:
        logger.info("Connectors disabled; using the null connector source")
        return NullConnectorSource()

    timeout = settings.CONNECTOR_TIMEOUT_SECONDS
    connectors: List[BaseConnector] = []

    if settings.jira_configured:
        connectors.append(
            JiraConnector(
                base_url=str(settings.JIRA_BASE_URL),
                email=settings.JIRA_EMAIL,
                api_token=settings.JIRA_API_TOKEN,
                jql=settings.JIRA_JQL,
                max_results=settings.JIRA_MAX_RESULTS,
                department=settings.JIRA_DEPARTMENT,
                timeout=timeout,
            )
        )
    if settings.confluence_configured:
        connectors.append(
            ConfluenceConnector(
                base_url=str(settings.CONFLUENCE_URL),
                email=settings.CONFLUENCE_EMAIL,
                api_token=settings.CONFLUENCE_API_TOKEN,
                space_key=settings.CONFLUENCE_SPACE_KEY,
                limit=settings.CONFLUENCE_LIMIT,
                department=settings.CONFLUENCE_DEPARTMENT,
                timeout=timeout,
            )
        )
    for connector_id, url in settings.CONNECTOR_FEEDS.items():
        connectors.append(FeedConnector(connector_id, url, timeout=timeout))

    logger.info("Registered connectors: %s", ", ".join(c.connector_id for c in connectors) or "none")
    return DocumentConnectors(connectors)


__all__ = [
    "BaseConnector",
    "ConfluenceConnector",
    "ConnectorSource",
    "DocumentConnectors",
    "FeedConnector",
    "JiraConnector",
    "NullConnectorSource",
    "load_connector_source",
]
