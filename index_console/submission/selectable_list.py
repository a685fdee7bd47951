from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class OrderedValues:
    items: Tuple[str, ...] = ()

    @property
    def values(self) -> Tuple[str, ...]:
        return self.items


@dataclass(frozen=True)
class KeyedValues:
    """Mapping whose keys are the listed values, in insertion order."""

    mapping: Mapping[str, Any] = field(default_factory=dict)

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(self.mapping.keys())


ListValues = Union[OrderedValues, KeyedValues]


def list_values(raw: Union[Sequence[str], Mapping[str, Any], None]) -> Optional[ListValues]:
    """
    Resolve a raw backend payload into a list variant once, at the call site.
    """
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return KeyedValues(dict(raw))
    if isinstance(raw, (str, bytes)):
        raise TypeError("List values must be a sequence or a mapping, not a string")
    items = tuple(raw)
    if not all(isinstance(item, str) for item in items):
        raise TypeError("Ordered list values must be strings")
    return OrderedValues(items)


@dataclass(frozen=True)
class ListEntry:
    value: str
    selected: bool


class SelectableList:
    """
    Renders a collection as selectable entries, marking the one equal to
    `selected_value`, and reports clicks back to the owner through
    `on_select`.
    """

    def __init__(
        self,
        values: Optional[ListValues],
        selected_value: Optional[str],
        on_select: Callable[[str], Any],
    ):
        self.values = values
        self.selected_value = selected_value
        self.on_select = on_select

    def entries(self) -> List[ListEntry]:
        if self.values is None:
            return []
        return [ListEntry(value=v, selected=v == self.selected_value) for v in self.values.values]

    def select(self, value: str) -> Any:
        """Returns whatever the owner's callback returns, so async owners can be awaited."""
        return self.on_select(value)
