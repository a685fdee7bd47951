"""
Submission workflow exports.
"""

from .client import ClientConfig, HttpIndexingClient, IndexingClient
from .controller import SubmissionController, SubmissionHandle
from .guard import SelectionGuard
from .models import DocumentBuffer, ParsedDocument, Selection, WorkflowPhase, WorkflowState
from .page import IndexingPage
from .reporter import ResultReporter
from .selectable_list import KeyedValues, ListEntry, OrderedValues, SelectableList, list_values
from .validation import ValidationGate, parse_document

__all__ = [
    "ClientConfig",
    "DocumentBuffer",
    "HttpIndexingClient",
    "IndexingClient",
    "IndexingPage",
    "KeyedValues",
    "ListEntry",
    "OrderedValues",
    "ParsedDocument",
    "ResultReporter",
    "SelectableList",
    "Selection",
    "SelectionGuard",
    "SubmissionController",
    "SubmissionHandle",
    "ValidationGate",
    "WorkflowPhase",
    "WorkflowState",
    "list_values",
    "parse_document",
]
