"""People repository: identity, normalization, and upsert over a storage port.

The repository is the only component that turns person-level operations
into storage calls. It never depends on which backend implements the port.

Concurrency: every operation is a sequence of independent storage calls
with no locking. upsert() looks up by name and then writes, so two
concurrent upserts of a previously unknown name can both create a record,
leaving two people with the same normalized name. update() reads, merges
and writes, so concurrent updates of one person are last-write-wins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from roster.people.types import (
    UNSET,
    Person,
    PersonInput,
    UpsertResult,
    generate_person_id,
    normalize_name,
    require_name,
    utc_now,
)
from roster.storage.base import CONTAINS, FindOptions

if TYPE_CHECKING:
    from roster.storage.base import StoragePort

logger = logging.getLogger(__name__)

PEOPLE_COLLECTION = "people"
DEFAULT_LIST_LIMIT = 50


class PeopleRepository:
    """CRUD, search and name-based upsert for person records.

    Storage failures propagate unchanged; absent records are reported as
    None or False rather than raised.
    """

    def __init__(
        self, storage: StoragePort, collection: str = PEOPLE_COLLECTION
    ) -> None:
        self._storage = storage
        self._collection = collection
        self._initialized = False

    async def initialize(self) -> None:
        """Prepare the storage backend once."""
        if self._initialized:
            return
        await self._storage.initialize()
        self._initialized = True

    async def list_people(
        self,
        query: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> list[Person]:
        """List people ordered by display name.

        Args:
            query: Optional text matched as a case-insensitive substring of
                the normalized name.
            limit: Maximum number of results. A negative limit means no
                limit.
            offset: Number of results to skip. Negative offsets count as 0.
        """
        await self.initialize()

        normalized_query = normalize_name(query) if query else ""
        predicate = (
            {"normalized_name": {CONTAINS: normalized_query}}
            if normalized_query
            else {}
        )
        records = await self._storage.find(
            self._collection,
            predicate,
            FindOptions(
                sort="name",
                limit=limit if limit >= 0 else None,
                offset=max(offset, 0),
            ),
        )
        return [Person.from_record(r) for r in records]

    async def get_by_id(self, person_id: str) -> Person | None:
        await self.initialize()
        record = await self._storage.get(self._collection, person_id)
        return Person.from_record(record) if record is not None else None

    async def get_by_name(self, name: str) -> Person | None:
        """Get the person whose normalized name equals the normalized input."""
        await self.initialize()
        record = await self._storage.find_one(
            self._collection, {"normalized_name": normalize_name(name)}
        )
        return Person.from_record(record) if record is not None else None

    async def create(self, data: PersonInput) -> Person:
        """Create a new person.

        Does not check for an existing person with the same name; use
        upsert() for collision-safe writes.

        Raises:
            ValidationError: If the name is missing or blank.
        """
        name = require_name(data.name)
        await self.initialize()

        now = utc_now()
        person = Person(
            id=generate_person_id(),
            name=name,
            normalized_name=normalize_name(name),
            description=None if data.description is UNSET else data.description,
            metadata=None if data.metadata is UNSET else (data.metadata or None),
            created_at=now,
            updated_at=now,
        )
        await self._storage.put(self._collection, person.id, person.to_record())

        logger.debug(
            "person_created", extra={"person.id": person.id, "person.name": name}
        )
        return person

    async def update(self, person_id: str, data: PersonInput) -> Person | None:
        """Apply a partial update to an existing person.

        name replaces the stored name (and normalized name) when given.
        description and metadata replace the stored value whenever they are
        not UNSET, so passing None clears them.

        Returns:
            The updated person, or None if no person has this ID.

        Raises:
            ValidationError: If a name is given but blank.
        """
        if data.name is not None:
            require_name(data.name)
        await self.initialize()

        existing = await self.get_by_id(person_id)
        if existing is None:
            return None

        name = data.name if data.name is not None else existing.name
        updated = Person(
            id=existing.id,
            name=name,
            normalized_name=(
                normalize_name(name)
                if data.name is not None
                else existing.normalized_name
            ),
            description=(
                existing.description
                if data.description is UNSET
                else data.description
            ),
            metadata=(
                existing.metadata
                if data.metadata is UNSET
                else (data.metadata or None)
            ),
            created_at=existing.created_at,
            updated_at=max(utc_now(), existing.created_at),
        )
        await self._storage.put(self._collection, updated.id, updated.to_record())

        logger.debug("person_updated", extra={"person.id": updated.id})
        return updated

    async def upsert(self, data: PersonInput) -> UpsertResult:
        """Update the person with the same normalized name, or create one.

        Not atomic: see the module docstring.

        Raises:
            ValidationError: If the name is missing or blank.
        """
        name = require_name(data.name)
        await self.initialize()

        existing = await self.get_by_name(name)
        if existing is not None:
            updated = await self.update(existing.id, data)
            if updated is not None:
                return UpsertResult(person=updated, created=False)
            # Deleted between lookup and update; fall through to create
            logger.debug(
                "person_vanished_during_upsert", extra={"person.id": existing.id}
            )

        person = await self.create(data)
        return UpsertResult(person=person, created=True)

    async def delete(self, person_id: str) -> bool:
        """Delete a person by ID. Returns False if no such person exists."""
        await self.initialize()
        deleted = await self._storage.delete(self._collection, person_id)
        if deleted:
            logger.debug("person_deleted", extra={"person.id": person_id})
        return deleted

    async def delete_by_name(self, name: str) -> bool:
        """Delete the person matching a name. Returns False if none matches."""
        await self.initialize()
        existing = await self.get_by_name(name)
        if existing is None:
            return False
        return await self.delete(existing.id)
