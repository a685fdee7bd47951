from __future__ import annotations


class IndexConsoleError(Exception):
    """Base class for every error raised by the index console."""


class WorkflowError(IndexConsoleError):
    """
    An error that halts a submission with a human-readable message.
    `detail` is exactly what the user sees.
    """

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class SelectionError(WorkflowError):
    pass


class MissingSchemaError(SelectionError):
    def __init__(self, detail: str = "Please select a schema."):
        super().__init__(detail)


class MissingIndexError(SelectionError):
    def __init__(self, detail: str = "Please select an index."):
        super().__init__(detail)


class ValidationError(WorkflowError):
    pass


class EmptyInputError(ValidationError):
    def __init__(self, detail: str = "Nothing to index"):
        super().__init__(detail)


class InvalidJsonError(ValidationError):
    pass


class BackendError(WorkflowError):
    """Transport failure or non-success response from the indexing backend."""

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.status_code = status_code


class SubmissionInProgressError(IndexConsoleError):
    """Raised when submit is called while another submission is in flight."""


class IllegalTransitionError(IndexConsoleError):
    pass


class CatalogError(IndexConsoleError):
    pass


class UnknownSchemaError(CatalogError):
    def __init__(self, schema_name: str):
        super().__init__(f"Schema not found: {schema_name}")
        self.schema_name = schema_name


class UnknownIndexError(CatalogError):
    def __init__(self, schema_name: str, index_name: str):
        super().__init__(f"Index not found: {schema_name}/{index_name}")
        self.schema_name = schema_name
        self.index_name = index_name


class InvalidRecordError(CatalogError):
    pass


class InvalidNameError(CatalogError):
    def __init__(self, name: str):
        super().__init__(f"Unsupported schema or index name: {name!r}")
        self.name = name
