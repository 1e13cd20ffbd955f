"""Storage port shared by every persistence backend.

Backends store flat JSON-compatible records in named collections and answer
predicate queries. A predicate is a dict whose entries are ANDed together:

- ``{}`` matches every record
- ``{"field": value}`` matches records whose field equals value exactly
- ``{"field": {"$contains": "text"}}`` matches records whose field contains
  text, compared case-insensitively

Records always carry their key under ``"id"``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

CONTAINS = "$contains"
SUPPORTED_OPERATORS = frozenset({CONTAINS})

Record = dict[str, Any]
Predicate = dict[str, Any]


@dataclass(frozen=True)
class FindOptions:
    """Ordering and paging for find().

    Results are ordered by ``sort`` (ties broken by id) before ``offset``
    and ``limit`` are applied. Missing or null values sort first ascending
    and last descending. ``limit=None`` returns everything after the
    offset.
    """

    sort: str | None = None
    descending: bool = False
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")


@runtime_checkable
class StoragePort(Protocol):
    """Key-addressable record store with predicate queries."""

    async def initialize(self) -> None:
        """Prepare the backend (schema, directories). Safe to call repeatedly."""
        ...

    async def get(self, collection: str, record_id: str) -> Record | None:
        """Get a record by key."""
        ...

    async def put(self, collection: str, record_id: str, record: Record) -> None:
        """Write a record, replacing any existing value at the key."""
        ...

    async def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns True if it existed."""
        ...

    async def find(
        self,
        collection: str,
        predicate: Predicate,
        options: FindOptions | None = None,
    ) -> list[Record]:
        """Find records matching a predicate."""
        ...

    async def find_one(self, collection: str, predicate: Predicate) -> Record | None:
        """Find the first record matching a predicate."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...


def parse_condition(field: str, condition: Any) -> tuple[str, Any]:
    """Split a predicate entry into (operator, operand).

    Exact matches are reported with operator ``"$eq"``.

    Raises:
        ValueError: If the condition uses an unsupported operator.
    """
    if isinstance(condition, dict):
        if len(condition) != 1:
            raise ValueError(
                f"Condition on '{field}' must have exactly one operator, "
                f"got {sorted(condition)}"
            )
        ((operator, operand),) = condition.items()
        if operator not in SUPPORTED_OPERATORS:
            raise ValueError(f"Unsupported operator '{operator}' on '{field}'")
        if operator == CONTAINS and not isinstance(operand, str):
            raise ValueError(f"'{CONTAINS}' on '{field}' requires a string operand")
        return operator, operand
    return "$eq", condition


def matches(record: Record, predicate: Predicate) -> bool:
    """Evaluate a predicate against an in-memory record."""
    for field, condition in predicate.items():
        operator, operand = parse_condition(field, condition)
        value = record.get(field)
        if operator == CONTAINS:
            if not isinstance(value, str) or operand.lower() not in value.lower():
                return False
        elif value != operand:
            return False
    return True


def sort_and_page(records: list[Record], options: FindOptions) -> list[Record]:
    """Apply FindOptions ordering and paging to in-memory records."""
    if options.sort is not None:
        sort_field = options.sort

        # Missing values sort before everything else, as NULL does in SQL
        def sort_key(record: Record) -> tuple[bool, Any, str]:
            value = record.get(sort_field)
            if value is None:
                return (False, "", record["id"])
            return (True, value, record["id"])

        records = sorted(records, key=sort_key, reverse=options.descending)

    end = None if options.limit is None else options.offset + options.limit
    return records[options.offset : end]
