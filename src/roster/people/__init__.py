"""People registry: entity model and repository."""

from roster.people.repository import PEOPLE_COLLECTION, PeopleRepository
from roster.people.types import (
    METADATA_FIELDS,
    UNSET,
    MetadataUpdate,
    Person,
    PersonInput,
    UnsetType,
    UpsertResult,
    ValidationError,
    merge_metadata,
    normalize_name,
)

__all__ = [
    "METADATA_FIELDS",
    "PEOPLE_COLLECTION",
    "UNSET",
    "MetadataUpdate",
    "PeopleRepository",
    "Person",
    "PersonInput",
    "UnsetType",
    "UpsertResult",
    "ValidationError",
    "merge_metadata",
    "normalize_name",
]
