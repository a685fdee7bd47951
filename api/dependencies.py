from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from index_console.catalog import (
    DocumentIndexer,
    IndexCatalog,
    MemoryDocumentIndexer,
    SqlAlchemyIndexCatalog,
    WhooshDocumentIndexer,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_catalog() -> IndexCatalog:
    db_url = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./data/index_console.db")
    catalog = SqlAlchemyIndexCatalog(db_url)
    seed = os.getenv("INDEX_CATALOG", "")
    if seed:
        logger.info("Seeding index catalog from INDEX_CATALOG")
        catalog.seed(seed)
    return catalog


@lru_cache(maxsize=1)
def get_indexer() -> DocumentIndexer:
    root = os.getenv("INDEX_STORAGE_ROOT", "./data/indexes")
    if not root:
        logger.warning("INDEX_STORAGE_ROOT is empty, indexed records are kept in memory only")
        return MemoryDocumentIndexer()
    return WhooshDocumentIndexer(Path(root))
