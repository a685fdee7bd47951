from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import BackendError
from .client import IndexingClient
from .controller import SubmissionController
from .models import DocumentBuffer, Selection, WorkflowState
from .selectable_list import ListValues, SelectableList

logger = logging.getLogger(__name__)


class IndexingPage:
    """
    The page that owns the selection and the document text. Pickers are fed
    from the backend listings; "Post JSON" is forwarded to the controller.
    """

    def __init__(self, client: IndexingClient, controller: Optional[SubmissionController] = None):
        self.client = client
        self.controller = controller or SubmissionController(client)
        self.selection = Selection()
        self.buffer = DocumentBuffer()
        self.schemas: Optional[ListValues] = None
        self.indexes: Optional[ListValues] = None
        self.listing_error: Optional[str] = None

    @property
    def state(self) -> WorkflowState:
        return self.controller.state

    def set_text(self, text: Optional[str]) -> None:
        self.buffer.text = text

    async def load_schemas(self) -> None:
        try:
            self.schemas = await self.client.list_schemas()
            self.listing_error = None
        except BackendError as exc:
            logger.warning("Could not load schemas: %s", exc.detail)
            self.schemas = None
            self.listing_error = exc.detail

    async def select_schema(self, schema_name: Optional[str]) -> None:
        # Index names belong to a schema, so any change resets the index picker.
        self.selection = Selection(schema_name=schema_name, index_name=None)
        self.indexes = None
        await self.load_indexes()

    async def load_indexes(self) -> None:
        schema_name = self.selection.schema_name
        if not schema_name:
            self.indexes = None
            return
        try:
            indexes = await self.client.list_indexes(schema_name)
        except BackendError as exc:
            if schema_name != self.selection.schema_name:
                return
            logger.warning("Could not load indexes for %s: %s", schema_name, exc.detail)
            self.indexes = None
            self.listing_error = exc.detail
        else:
            # A newer schema choice wins over a late listing.
            if schema_name == self.selection.schema_name:
                self.indexes = indexes
                self.listing_error = None

    def select_index(self, index_name: Optional[str]) -> None:
        self.selection = Selection(schema_name=self.selection.schema_name, index_name=index_name)

    def schema_list(self) -> SelectableList:
        return SelectableList(self.schemas, self.selection.schema_name, self.select_schema)

    def index_list(self) -> SelectableList:
        return SelectableList(self.indexes, self.selection.index_name, self.select_index)

    async def post_json(self) -> WorkflowState:
        return await self.controller.run(self.selection, self.buffer)
