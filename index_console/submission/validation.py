from __future__ import annotations

import json
import logging
from typing import Optional

from ..exceptions import EmptyInputError, InvalidJsonError
from .models import DocumentBuffer, ParsedDocument

logger = logging.getLogger(__name__)


def _reject_constant(name: str):
    # json accepts NaN/Infinity by default, strict JSON does not.
    raise ValueError(f"Unexpected token {name} in JSON")


def parse_document(raw_text: Optional[str]) -> ParsedDocument:
    if raw_text is None or raw_text == "":
        raise EmptyInputError()
    try:
        value = json.loads(raw_text, parse_constant=_reject_constant)
    except ValueError as exc:
        # JSONDecodeError is a ValueError subclass; its message is the parser diagnostic.
        raise InvalidJsonError(str(exc)) from exc
    return ParsedDocument(value)


class ValidationGate:
    """
    Parses the page's document buffer. On success the buffer is rewritten
    with the canonical 2-space indented form, whatever happens to the
    submission afterwards. On failure the buffer is left untouched.
    """

    def validate(self, buffer: DocumentBuffer) -> ParsedDocument:
        document = parse_document(buffer.text)
        buffer.text = document.canonical_text()
        logger.debug("Canonicalized document (%d chars)", len(buffer.text))
        return document
