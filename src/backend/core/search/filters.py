"""
Filter expressions for the search engine.

Filters are a small tree of clauses. ``str(clause)`` renders the textual filter
grammar (``field = "value"``, ``createdAt >= 1700000000``, ``(a OR b)``), which
is what gets logged and asserted on, and ``clause.to_dsl()`` renders the same
clause as Elasticsearch query DSL for the actual request.

Values are identifiers, enum tags, booleans and timestamps, never free text
typed by a user. Strings containing a quote or a backslash are refused so a
value can never escape its quotes.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

Value = Union[str, int, bool]


def format_value(value: Value) -> str:
    """Render a scalar the way the filter grammar expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    value = str(value)
    if '"' in value or "\\" in value:
        raise ValueError(f"Filter value cannot contain quotes or backslashes: {value!r}")
    return f'"{value}"'


def _term_value(value: Value) -> Value:
    if isinstance(value, (bool, int)):
        return value
    return str(value)


@dataclass(frozen=True)
class Equals:
    """``field = value``"""

    field: str
    value: Value

    def __str__(self):
        return f"{self.field} = {format_value(self.value)}"

    def to_dsl(self):
        """Exact match on a keyword, boolean or numeric field."""
        return {"term": {self.field: _term_value(self.value)}}


@dataclass(frozen=True)
class NotEquals:
    """``field != value``"""

    field: str
    value: Value

    def __str__(self):
        return f"{self.field} != {format_value(self.value)}"

    def to_dsl(self):
        """Documents whose field is anything but the value."""
        return {"bool": {"must_not": [{"term": {self.field: _term_value(self.value)}}]}}


RANGE_OPERATORS = {">=": "gte", "<=": "lte", ">": "gt", "<": "lt"}


@dataclass(frozen=True)
class Range:
    """``field >= value`` and friends, on numeric fields."""

    field: str
    operator: str
    value: int

    def __post_init__(self):
        if self.operator not in RANGE_OPERATORS:
            raise ValueError(f"Unsupported range operator: {self.operator}")

    def __str__(self):
        return f"{self.field} {self.operator} {format_value(self.value)}"

    def to_dsl(self):
        """Bounded range on a numeric field."""
        return {"range": {self.field: {RANGE_OPERATORS[self.operator]: self.value}}}


@dataclass(frozen=True)
class Or:
    """Disjunction, always parenthesized."""

    clauses: Tuple["Clause", ...]

    def __str__(self):
        return "(" + " OR ".join(str(clause) for clause in self.clauses) + ")"

    def to_dsl(self):
        """At least one of the clauses must match."""
        return {
            "bool": {
                "should": [clause.to_dsl() for clause in self.clauses],
                "minimum_should_match": 1,
            }
        }


@dataclass(frozen=True)
class And:
    """Conjunction, always parenthesized."""

    clauses: Tuple["Clause", ...]

    def __str__(self):
        return "(" + " AND ".join(str(clause) for clause in self.clauses) + ")"

    def to_dsl(self):
        """Every clause must match."""
        return {"bool": {"filter": [clause.to_dsl() for clause in self.clauses]}}


Clause = Union[Equals, NotEquals, Range, Or, And]


def serialize(clauses: Iterable[Clause]) -> List[str]:
    """Render a list of clauses (implicitly ANDed) to filter strings."""
    return [str(clause) for clause in clauses]


def to_epoch_seconds(moment: datetime) -> int:
    """Whole seconds since the epoch, rounded down."""
    return math.floor(moment.timestamp())


# Builders


def any_of(field: str, values: Iterable[Value]) -> Or:
    """``(field = "a" OR field = "b")``, also for a single value."""
    values = list(values)
    if not values:
        raise ValueError(f"Cannot build an inclusion filter on {field} without values")
    return Or(tuple(Equals(field, value) for value in values))


def none_of(field: str, values: Iterable[Value]) -> And:
    """``(field != "a" AND field != "b")``, also for a single value."""
    values = list(values)
    if not values:
        raise ValueError(f"Cannot build an exclusion filter on {field} without values")
    return And(tuple(NotEquals(field, value) for value in values))


def date_range(
    field: str,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> List[Range]:
    """One clause per bound that is present."""
    clauses = []
    if date_from is not None:
        clauses.append(Range(field, ">=", to_epoch_seconds(date_from)))
    if date_to is not None:
        clauses.append(Range(field, "<=", to_epoch_seconds(date_to)))
    return clauses


def flag(field: str, value: Optional[bool]) -> List[Equals]:
    """``field = true|false`` only when the caller set the flag."""
    if value is None:
        return []
    return [Equals(field, bool(value))]
