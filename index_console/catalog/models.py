from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..exceptions import InvalidNameError

_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def check_name(name: str) -> str:
    """Schema and index names double as directory names, so keep them path-safe."""
    if not name or not _SAFE_NAME.match(name):
        raise InvalidNameError(name)
    return name


class SubmissionStatus(str, Enum):
    INDEXED = "indexed"
    REJECTED = "rejected"


@dataclass
class SchemaRecord:
    name: str
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class IndexRecord:
    schema_name: str
    name: str
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class SubmissionRecord:
    id: str
    schema_name: str
    index_name: str
    status: SubmissionStatus
    record_count: int = 0
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
