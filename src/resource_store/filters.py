"""
Typed filter parameters.

Each entity declares a frozen dataclass of optional fields. Serialization
omits None, empty strings and empty sequences, so a filter can never send
``name=`` or ``active=None`` to the backend.
"""
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, List, Optional, Tuple, TypeVar
from urllib.parse import urlencode

from pydantic.alias_generators import to_camel

F = TypeVar("F", bound="FilterParams")

QueryPairs = List[Tuple[str, str]]


def filter_field(
    param: Optional[str] = None,
    *,
    default: Any = None,
    query: bool = True,
) -> Any:
    """
    Declare a filter field.

    Args:
        param: Wire name. Defaults to the camelCase form of the attribute name.
        default: Default value. Defaults to None (omitted).
        query: Whether the field is sent as a query parameter. Fields used
            in the request path set this to False.
    """
    return field(default=default, metadata={"param": param, "query": query})


def is_blank(value: Any) -> bool:
    """True for values that must never be serialized."""
    if value is None:
        return True
    if isinstance(value, str) and value == "":
        return True
    if isinstance(value, (list, tuple, set, frozenset)) and len(value) == 0:
        return True
    return False


def format_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class FilterParams:
    """Base class for entity filters."""

    query_prefix: ClassVar[str] = ""
    """Prefix added to every wire name (e.g. ``filter.``)."""

    def __post_init__(self) -> None:
        # Sequences are stored as tuples so equal filters compare equal.
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (list, set, frozenset)):
                object.__setattr__(self, f.name, tuple(value))

    def _pairs(self, include_non_query: bool) -> QueryPairs:
        pairs: QueryPairs = []
        for f in fields(self):
            if not f.metadata.get("query", True) and not include_non_query:
                continue
            value = getattr(self, f.name)
            if is_blank(value):
                continue
            name = self.query_prefix + (f.metadata.get("param") or to_camel(f.name))
            if isinstance(value, tuple):
                pairs.extend((name, format_query_value(item)) for item in value if not is_blank(item))
            else:
                pairs.append((name, format_query_value(value)))
        return pairs

    def to_query(self) -> QueryPairs:
        """Query parameters in declaration order, blank values omitted."""
        return self._pairs(include_non_query=False)

    def cache_key(self) -> str:
        """Stable string identifying this filter combination."""
        return urlencode(sorted(self._pairs(include_non_query=True)))

    def is_empty(self) -> bool:
        return not self._pairs(include_non_query=True)

    def with_changes(self: F, **changes: Any) -> F:
        return replace(self, **changes)
