"""Minimal GraphQL query builder.

Queries are described as data and rendered in one place, so argument values
(film titles in particular) are always escaped the same way instead of being
spliced into query strings by hand.

    >>> GraphQLQuery(
    ...     field="films",
    ...     arguments={"filters": {"title": {"in": ['Say "Hi"']}}},
    ...     selection=[{"data": ["id", "title"]}],
    ... ).render()
    '{ films(filters: {title: {in: ["Say \\\\"Hi\\\\""]}}) { data { id title } } }'
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

_NAME_RE = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")

# A selection item is a field name or {field_name: nested selection}
Selection = list[Union[str, dict[str, "Selection"]]]


def _check_name(name: str) -> str:
    if not _NAME_RE.match(name):
        raise ValueError(f"Invalid GraphQL name: {name!r}")
    return name


def render_value(value: Any) -> str:
    """Render a Python value as a GraphQL input literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, datetime):
        return json.dumps(value.isoformat())
    if isinstance(value, str):
        # JSON string escapes are a subset of GraphQL string escapes
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, dict):
        items = ", ".join(f"{_check_name(k)}: {render_value(v)}" for k, v in value.items())
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    raise TypeError(f"Cannot render {type(value).__name__} as a GraphQL value")


def render_selection(selection: Selection) -> str:
    parts: list[str] = []
    for item in selection:
        if isinstance(item, str):
            parts.append(_check_name(item))
        else:
            for name, nested in item.items():
                parts.append(f"{_check_name(name)} {render_selection(nested)}")
    return "{ " + " ".join(parts) + " }"


@dataclass
class GraphQLQuery:
    """A single top-level query field with arguments and a selection set."""

    field: str
    selection: Selection
    arguments: dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        name = _check_name(self.field)
        if self.arguments:
            args = ", ".join(
                f"{_check_name(k)}: {render_value(v)}" for k, v in self.arguments.items()
            )
            name = f"{name}({args})"
        return "{ " + f"{name} {render_selection(self.selection)}" + " }"

    def to_payload(self) -> dict[str, str]:
        """Request body for a GraphQL-over-HTTP POST."""
        return {"query": self.render()}
