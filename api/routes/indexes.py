from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from index_console.catalog import SubmissionRecord, SubmissionStatus, records_from_payload
from index_console.exceptions import InvalidRecordError, UnknownSchemaError

from api.dependencies import get_catalog, get_indexer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws/indexes", tags=["indexes"])


def _get_catalog():
    return get_catalog()


def _get_indexer():
    return get_indexer()


@router.get("")
def list_schemas():
    catalog = _get_catalog()
    schemas = catalog.list_schemas()
    return {
        schema.name: {"indexes": [i.name for i in catalog.list_indexes(schema.name)]}
        for schema in schemas
    }


@router.get("/{schema_name}")
def list_indexes(schema_name: str):
    try:
        indexes = _get_catalog().list_indexes(schema_name)
    except UnknownSchemaError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    indexer = _get_indexer()
    return {i.name: {"num_docs": indexer.count(schema_name, i.name)} for i in indexes}


@router.post("/{schema_name}/{index_name}/json")
def index_json(schema_name: str, index_name: str, payload: Any = Body(...)) -> int:
    catalog = _get_catalog()
    if catalog.get_index(schema_name, index_name) is None:
        try:
            catalog.list_indexes(schema_name)
        except UnknownSchemaError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        raise HTTPException(status_code=404, detail=f"Index not found: {schema_name}/{index_name}")

    submission = SubmissionRecord(
        id=str(uuid.uuid4()),
        schema_name=schema_name,
        index_name=index_name,
        status=SubmissionStatus.INDEXED,
    )
    try:
        records = records_from_payload(payload)
    except InvalidRecordError as exc:
        submission.status = SubmissionStatus.REJECTED
        submission.error_message = str(exc)
        catalog.save_submission(submission)
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        count = _get_indexer().index_records(schema_name, index_name, records)
    except Exception as exc:  # noqa: BLE001
        submission.status = SubmissionStatus.REJECTED
        submission.error_message = str(exc) or exc.__class__.__name__
        catalog.save_submission(submission)
        raise
    submission.record_count = count
    catalog.save_submission(submission)
    logger.info("Indexed %d record(s) into %s/%s", count, schema_name, index_name)
    return count
