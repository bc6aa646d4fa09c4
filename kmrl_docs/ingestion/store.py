"""Document record persistence with upsert-by-id semantics."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import secrets
import string
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Set

from pydantic import ValidationError as ModelValidationError

from kmrl_docs.core.config import Settings
from kmrl_docs.core.exceptions import StoreError
from kmrl_docs.models import DocumentRecord

logger = logging.getLogger(__name__)

ID_PREFIX = "doc_"
ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9


class StoreBackend(Protocol):
    async def read(self) -> List[Dict[str, Any]]: ...

    async def write(self, records: List[Dict[str, Any]]) -> None: ...


class MemoryStoreBackend:
    """Keep the collection in process memory."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None) -> None:
        self._records: List[Dict[str, Any]] = list(records or [])

    async def read(self) -> List[Dict[str, Any]]:
        return list(self._records)

    async def write(self, records: List[Dict[str, Any]]) -> None:
        self._records = list(records)


class JsonFileStoreBackend:
    """Persist the collection as one JSON array on local disk.

    Writes go to a temporary file in the target directory which then replaces
    the store file, so readers see either the old or the new collection.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    async def read(self) -> List[Dict[str, Any]]:
        def load() -> List[Dict[str, Any]]:
            if not self.path.exists():
                return []
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, found {type(data).__name__}")
            for position, entry in enumerate(data):
                if not isinstance(entry, dict):
                    raise ValueError(f"entry {position} is a {type(entry).__name__}, expected an object")
            return data

        try:
            return await asyncio.to_thread(load)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Unable to read document store {self.path}: {exc}") from exc

    async def write(self, records: List[Dict[str, Any]]) -> None:
        def dump() -> None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(records, handle, indent=2, ensure_ascii=False)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise

        try:
            await asyncio.to_thread(dump)
        except (OSError, TypeError, ValueError) as exc:
            raise StoreError(f"Unable to write document store {self.path}: {exc}") from exc


class DocumentStore:
    """Keyed collection of `DocumentRecord`s shared by every ingestion path."""

    def __init__(self, backend: StoreBackend) -> None:
        self.backend = backend
        self._lock = asyncio.Lock()
        self._reserved_ids: Set[str] = set()

    async def upsert(self, record: DocumentRecord) -> bool:
        """Replace the record with the same id in place, or append it.

        Returns True when an existing record was replaced. The whole
        read-modify-write runs under the store lock.
        """

        payload = record.model_dump(mode="json")
        async with self._lock:
            try:
                records = await self.backend.read()
                index = next((i for i, existing in enumerate(records) if existing.get("id") == record.id), None)
                if index is None:
                    records.append(payload)
                else:
                    records[index] = payload
                await self.backend.write(records)
            finally:
                self._reserved_ids.discard(record.id)

        logger.debug("Upserted document %s (replaced=%s)", record.id, index is not None)
        return index is not None

    async def list_all(self) -> List[DocumentRecord]:
        return [self._load(raw) for raw in await self.backend.read()]

    async def get(self, document_id: str) -> Optional[DocumentRecord]:
        for raw in await self.backend.read():
            if raw.get("id") == document_id:
                return self._load(raw)
        return None

    async def count(self) -> int:
        return len(await self.backend.read())

    async def new_id(self) -> str:
        """Generate an id no stored or pending record uses."""

        async with self._lock:
            taken = {raw.get("id") for raw in await self.backend.read()} | self._reserved_ids
            while True:
                candidate = ID_PREFIX + "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
                if candidate not in taken:
                    self._reserved_ids.add(candidate)
                    return candidate

    def release_id(self, document_id: str) -> None:
        """Give back an id from `new_id` that will not be written."""

        self._reserved_ids.discard(document_id)

    @staticmethod
    def _load(raw: Dict[str, Any]) -> DocumentRecord:
        try:
            return DocumentRecord.model_validate(raw)
        except ModelValidationError as exc:
            document_id = raw.get("id") if isinstance(raw, dict) else None
            raise StoreError(f"Stored document {document_id!r} is invalid: {exc}") from exc


def build_document_store(settings: Settings) -> DocumentStore:
    if settings.STORE_BACKEND == "memory":
        logger.info("Using in-memory document store")
        return DocumentStore(MemoryStoreBackend())
    logger.info("Using JSON document store at %s", settings.DOCUMENT_STORE_PATH)
    return DocumentStore(JsonFileStoreBackend(settings.DOCUMENT_STORE_PATH))
