from __future__ import annotations

from ..exceptions import MissingIndexError, MissingSchemaError
from .models import Selection


class SelectionGuard:
    """
    Refuses to let a submission start until both a schema and an index are
    selected. The schema is checked first.
    """

    def check(self, selection: Selection) -> None:
        if not selection.schema_name:
            raise MissingSchemaError()
        if not selection.index_name:
            raise MissingIndexError()
