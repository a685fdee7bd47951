from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Protocol, Tuple

from whoosh import index
from whoosh.fields import ID, STORED, TEXT, Schema
from whoosh.qparser import QueryParser

from ..exceptions import InvalidRecordError
from .models import check_name

logger = logging.getLogger(__name__)


def records_from_payload(payload: Any) -> List[Dict[str, Any]]:
    """
    A JSON object is one record, a JSON array is a list of records. Anything
    else, or an array holding a non-object, is rejected.
    """
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        for position, item in enumerate(payload):
            if not isinstance(item, dict):
                raise InvalidRecordError(f"Record {position} is not a JSON object")
        return list(payload)
    raise InvalidRecordError("Expected a JSON object or an array of JSON objects")


def _flatten_text(value: Any) -> Iterable[str]:
    if isinstance(value, dict):
        for item in value.values():
            yield from _flatten_text(item)
    elif isinstance(value, list):
        for item in value:
            yield from _flatten_text(item)
    elif isinstance(value, bool) or value is None:
        return
    else:
        yield str(value)


class DocumentIndexer(Protocol):
    def index_records(self, schema_name: str, index_name: str, records: Iterable[Dict[str, Any]]) -> int:
        ...

    def count(self, schema_name: str, index_name: str) -> int:
        ...


class MemoryDocumentIndexer:
    """
    Keeps records in a dict, nothing is persisted. Used when
    INDEX_STORAGE_ROOT is set to an empty value.
    """

    def __init__(self):
        self.records: Dict[Tuple[str, str], Dict[str, Dict[str, Any]]] = {}

    def index_records(self, schema_name: str, index_name: str, records: Iterable[Dict[str, Any]]) -> int:
        store = self.records.setdefault((schema_name, index_name), {})
        indexed = 0
        for record in records:
            doc_id = str(record["id"]) if record.get("id") is not None else str(uuid.uuid4())
            store[doc_id] = record
            indexed += 1
        return indexed

    def count(self, schema_name: str, index_name: str) -> int:
        return len(self.records.get((schema_name, index_name), {}))


class WhooshDocumentIndexer:
    """
    File-system backed Whoosh indexer with one index directory per
    schema/index pair. Records with an `id` field replace earlier records
    with the same id.
    """

    def __init__(self, root_dir: Path):
        self.root_dir = root_dir
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.schema = Schema(
            doc_id=ID(stored=True, unique=True),
            content=TEXT,
            source=STORED,
        )

    def _index_dir(self, schema_name: str, index_name: str) -> Path:
        return self.root_dir / check_name(schema_name) / check_name(index_name)

    def _open(self, schema_name: str, index_name: str, create: bool = True):
        index_dir = self._index_dir(schema_name, index_name)
        if index.exists_in(index_dir):
            return index.open_dir(index_dir)
        if not create:
            return None
        index_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Creating Whoosh index in %s", index_dir)
        return index.create_in(index_dir, self.schema)

    def index_records(self, schema_name: str, index_name: str, records: Iterable[Dict[str, Any]]) -> int:
        ix = self._open(schema_name, index_name)
        writer = ix.writer()
        indexed = 0
        try:
            for record in records:
                doc_id = str(record["id"]) if record.get("id") is not None else str(uuid.uuid4())
                writer.update_document(
                    doc_id=doc_id,
                    content=" ".join(_flatten_text(record)),
                    source=json.dumps(record, ensure_ascii=False),
                )
                indexed += 1
        except Exception:
            writer.cancel()
            raise
        writer.commit()
        logger.debug("Indexed %d record(s) into %s/%s", indexed, schema_name, index_name)
        return indexed

    def count(self, schema_name: str, index_name: str) -> int:
        ix = self._open(schema_name, index_name, create=False)
        if ix is None:
            return 0
        return ix.doc_count()

    def search(self, schema_name: str, index_name: str, query_str: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Return the stored records so callers are safe after the searcher closes.
        """
        ix = self._open(schema_name, index_name, create=False)
        if ix is None:
            return []
        q = QueryParser("content", schema=self.schema).parse(query_str)
        with ix.searcher() as searcher:
            return [json.loads(hit["source"]) for hit in searcher.search(q, limit=limit)]
