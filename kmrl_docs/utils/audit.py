"""Audit logging utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger("kmrl_docs.audit")


class AuditLogger:
    """Structured audit logger for document store writes.

    Entries are emitted as JSON lines. Passing a `sink` list keeps a copy of
    every entry in memory, which tests use to inspect the trail.
    """

    def __init__(self, sink: Optional[List[Dict[str, Any]]] = None) -> None:
        self.sink = sink

    def record(self, action: str, actor: str, details: Dict[str, Any]) -> None:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "actor": actor,
            "details": details,
        }
        if self.sink is not None:
            self.sink.append(payload)
        logger.info(json.dumps(payload, default=str))

    def document_written(self, record, *, replaced: bool, origin: str) -> None:
        action = "document.updated" if replaced else "document.created"
        self.record(
            action,
            record.uploaded_by,
            {
                "document_id": record.id,
                "title": record.title,
                "origin": origin,
                "status": record.status.value,
                "file_count": len(record.files),
            },
        )


audit_logger = AuditLogger()


__all__ = ["audit_logger", "AuditLogger"]
