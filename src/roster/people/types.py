"""Public types for the people registry."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Final

# Metadata keys the tools expose as individual fields
METADATA_FIELDS: Final = ("relationship", "email", "phone", "birthday", "workplace")


class ValidationError(ValueError):
    """Raised when input fails validation before reaching storage."""


class UnsetType:
    """Marker for a field that was not provided at all."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = UnsetType()


def normalize_name(name: str) -> str:
    """Canonical comparison key for a name: trimmed and lowercased."""
    return name.strip().lower()


def generate_person_id() -> str:
    return f"person_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def _parse_datetime(s: str) -> datetime:
    """Parse ISO datetime string, handling Z suffix and ensuring timezone awareness."""
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def require_name(name: Any) -> str:
    """Validate a person name and return it unchanged.

    Raises:
        ValidationError: If name is missing, not a string, or blank.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required and must be a non-empty string")
    return name


@dataclass
class Person:
    """A person stored in the registry.

    normalized_name is derived from name and is only used for matching.
    """

    id: str
    name: str
    normalized_name: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    metadata: dict[str, Any] | None = None

    def to_record(self) -> dict[str, Any]:
        """Serialize to the flat record shape every storage backend stores."""
        return {
            "id": self.id,
            "name": self.name,
            "normalized_name": self.normalized_name,
            "description": self.description,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, d: dict[str, Any]) -> Person:
        """Deserialize from a stored record.

        Records written without normalized_name get it derived from name.
        """
        name = d["name"]
        return cls(
            id=d["id"],
            name=name,
            normalized_name=d.get("normalized_name") or normalize_name(name),
            description=d.get("description"),
            metadata=d.get("metadata") or None,
            created_at=_parse_datetime(d["created_at"]),
            updated_at=_parse_datetime(d["updated_at"]),
        )

    def get_field(self, key: str) -> Any:
        """Get a metadata field, or None when unset."""
        return (self.metadata or {}).get(key)


@dataclass
class PersonInput:
    """Input for creating or updating a person.

    description and metadata default to UNSET. On update, an UNSET field
    keeps the stored value while any other value, including None, replaces
    it. name is required for create and upsert, optional for update.
    """

    name: str | None = None
    description: str | None | UnsetType = UNSET
    metadata: dict[str, Any] | None | UnsetType = UNSET


@dataclass
class UpsertResult:
    """Result of an upsert: the stored person and whether it was created."""

    person: Person
    created: bool


@dataclass
class MetadataUpdate:
    """Field-level changes to apply to stored metadata.

    Only keys present in ``fields`` are touched. A non-blank string value
    replaces the stored value (trimmed); a blank value removes the key.
    """

    fields: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.fields)


def merge_metadata(
    existing: dict[str, Any] | None, update: MetadataUpdate
) -> dict[str, Any] | None:
    """Merge field-level updates into existing metadata.

    Keys not mentioned in the update, including unrecognized extra keys, are
    preserved. Returns None when the merged metadata is empty.
    """
    merged = dict(existing or {})
    for key, value in update.fields.items():
        trimmed = value.strip()
        if trimmed:
            merged[key] = trimmed
        else:
            merged.pop(key, None)
    return merged or None
