"""Keyword-safe update expressions for the record store."""

import re
from dataclasses import dataclass, field

# Subset of the record store's reserved words that can plausibly appear as
# attribute names. Comparison is case-insensitive.
RESERVED_WORDS = frozenset(
    {
        "by",
        "comment",
        "count",
        "data",
        "date",
        "day",
        "hour",
        "index",
        "item",
        "items",
        "key",
        "keys",
        "minute",
        "month",
        "name",
        "order",
        "owner",
        "second",
        "size",
        "source",
        "status",
        "table",
        "time",
        "timestamp",
        "type",
        "user",
        "value",
        "values",
        "year",
        "zone",
    }
)

_PLAIN_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def is_reserved(attribute: str) -> bool:
    """Return whether an attribute name must be aliased in expressions."""
    return attribute.lower() in RESERVED_WORDS or not _PLAIN_NAME.match(attribute)


@dataclass(frozen=True)
class SetUpdate:
    """A ``SET`` update and its placeholder maps."""

    assignments: dict[str, object]
    expression: str
    names: dict[str, str] = field(default_factory=dict)
    values: dict[str, object] = field(default_factory=dict)


def build_set_update(assignments: dict[str, object]) -> SetUpdate:
    """Build a ``SET`` expression, aliasing reserved attribute names."""
    if not assignments:
        raise ValueError("At least one attribute is required")
    names: dict[str, str] = {}
    values: dict[str, object] = {}
    clauses = []
    for index, (attribute, value) in enumerate(assignments.items()):
        reference = attribute
        if is_reserved(attribute):
            reference = f"#a{index}"
            names[reference] = attribute
        placeholder = f":v{index}"
        values[placeholder] = value
        clauses.append(f"{reference} = {placeholder}")
    return SetUpdate(
        assignments=dict(assignments),
        expression="SET " + ", ".join(clauses),
        names=names,
        values=values,
    )
