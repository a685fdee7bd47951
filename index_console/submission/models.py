from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class WorkflowPhase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


ACTIVE_PHASES = (WorkflowPhase.VALIDATING, WorkflowPhase.SUBMITTING)


@dataclass(frozen=True)
class WorkflowState:
    phase: WorkflowPhase = WorkflowPhase.IDLE
    message: Optional[str] = None
    spinning: bool = False
    error: bool = False

    @property
    def busy(self) -> bool:
        return self.phase in ACTIVE_PHASES

    def with_changes(self, **changes: Any) -> "WorkflowState":
        return replace(self, **changes)


@dataclass(frozen=True)
class Selection:
    schema_name: Optional[str] = None
    index_name: Optional[str] = None


@dataclass
class DocumentBuffer:
    """
    Editable document text owned by the page. The validation gate replaces
    `text` with the canonical form after a successful parse.
    """

    text: Optional[str] = None


@dataclass(frozen=True)
class ParsedDocument:
    value: Any = field(default=None)

    def canonical_text(self) -> str:
        return json.dumps(self.value, indent=2, ensure_ascii=False)

    def wire_body(self) -> bytes:
        return json.dumps(self.value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
