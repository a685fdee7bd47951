"""
Catalog subsystem exports.
"""

from .indexing import DocumentIndexer, MemoryDocumentIndexer, WhooshDocumentIndexer, records_from_payload
from .models import IndexRecord, SchemaRecord, SubmissionRecord, SubmissionStatus
from .repository import InMemoryIndexCatalog, IndexCatalog, SqlAlchemyIndexCatalog, parse_catalog_spec

__all__ = [
    "DocumentIndexer",
    "IndexCatalog",
    "IndexRecord",
    "InMemoryIndexCatalog",
    "MemoryDocumentIndexer",
    "SchemaRecord",
    "SqlAlchemyIndexCatalog",
    "SubmissionRecord",
    "SubmissionStatus",
    "WhooshDocumentIndexer",
    "parse_catalog_spec",
    "records_from_payload",
]
