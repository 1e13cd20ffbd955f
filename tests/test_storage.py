"""Tests for the storage port and both backends."""

import json
from pathlib import Path

import pytest

from roster.config.models import StorageConfig
from roster.db.engine import Database
from roster.storage import create_storage
from roster.storage.base import (
    CONTAINS,
    FindOptions,
    StoragePort,
    matches,
    parse_condition,
)
from roster.storage.document import DocumentStorage
from roster.storage.sql import SQLStorage

PEOPLE = "people"


def _record(record_id: str, name: str, **extra) -> dict:
    return {
        "id": record_id,
        "name": name,
        "normalized_name": name.strip().lower(),
        "description": None,
        "metadata": None,
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
        **extra,
    }


async def _seed(storage: StoragePort, *records: dict) -> None:
    for record in records:
        await storage.put(PEOPLE, record["id"], record)


class TestPredicates:
    def test_empty_predicate_matches_everything(self):
        assert matches({"id": "a", "name": "x"}, {})

    def test_exact_match(self):
        record = {"id": "a", "name": "Bob"}

        assert matches(record, {"name": "Bob"})
        assert not matches(record, {"name": "bob"})

    def test_contains_is_case_insensitive(self):
        assert matches({"id": "a", "name": "Maria"}, {"name": {CONTAINS: "ARI"}})

    def test_contains_on_non_string_does_not_match(self):
        assert not matches({"id": "a", "name": None}, {"name": {CONTAINS: "x"}})

    def test_conditions_are_anded(self):
        record = {"id": "a", "name": "Maria", "description": "friend"}

        assert matches(record, {"name": {CONTAINS: "mar"}, "description": "friend"})
        assert not matches(record, {"name": {CONTAINS: "mar"}, "description": "x"})

    def test_unknown_operator_raises(self):
        with pytest.raises(ValueError, match="Unsupported operator"):
            parse_condition("name", {"$regex": "^M"})

    def test_contains_requires_string(self):
        with pytest.raises(ValueError):
            parse_condition("name", {CONTAINS: 3})

    def test_exact_condition_parses_as_eq(self):
        assert parse_condition("name", "Bob") == ("$eq", "Bob")


class TestFindOptions:
    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            FindOptions(limit=-1)

    def test_negative_offset_rejected(self):
        with pytest.raises(ValueError):
            FindOptions(offset=-1)


class TestStoragePort:
    """Behavior every backend shares."""

    async def test_backends_satisfy_protocol(self, storage: StoragePort):
        assert isinstance(storage, StoragePort)

    async def test_put_then_get(self, storage: StoragePort):
        record = _record("p1", "Bob", metadata={"email": "bob@example.com"})

        await storage.put(PEOPLE, "p1", record)

        assert await storage.get(PEOPLE, "p1") == record

    async def test_get_missing_returns_none(self, storage: StoragePort):
        assert await storage.get(PEOPLE, "missing") is None

    async def test_put_replaces_whole_record(self, storage: StoragePort):
        await storage.put(PEOPLE, "p1", _record("p1", "Bob", description="old"))

        await storage.put(PEOPLE, "p1", _record("p1", "Robert"))

        stored = await storage.get(PEOPLE, "p1")
        assert stored["name"] == "Robert"
        assert stored["description"] is None

    async def test_put_partial_record_drops_missing_fields(
        self, storage: StoragePort
    ):
        await storage.put(
            PEOPLE, "p1", _record("p1", "Bob", description="old", metadata={"a": 1})
        )
        partial = _record("p1", "Robert")
        del partial["description"], partial["metadata"]

        await storage.put(PEOPLE, "p1", partial)

        stored = await storage.get(PEOPLE, "p1")
        assert stored["name"] == "Robert"
        assert stored.get("description") is None
        assert stored.get("metadata") is None

    async def test_put_uses_key_as_id(self, storage: StoragePort):
        await storage.put(PEOPLE, "p1", _record("ignored", "Bob"))

        assert (await storage.get(PEOPLE, "p1"))["id"] == "p1"

    async def test_delete_reports_existence(self, storage: StoragePort):
        await _seed(storage, _record("p1", "Bob"))

        assert await storage.delete(PEOPLE, "p1") is True
        assert await storage.delete(PEOPLE, "p1") is False
        assert await storage.get(PEOPLE, "p1") is None

    async def test_find_with_empty_predicate_returns_all(self, storage: StoragePort):
        await _seed(storage, _record("p2", "Bob"), _record("p1", "Alice"))

        records = await storage.find(PEOPLE, {})

        assert [r["id"] for r in records] == ["p1", "p2"]

    async def test_find_exact_match(self, storage: StoragePort):
        await _seed(storage, _record("p1", "Bob"), _record("p2", "Bobby"))

        records = await storage.find(PEOPLE, {"normalized_name": "bob"})

        assert [r["id"] for r in records] == ["p1"]

    async def test_find_contains_is_case_insensitive(self, storage: StoragePort):
        await _seed(
            storage,
            _record("p1", "Maria"),
            _record("p2", "MARK"),
            _record("p3", "Zoe"),
        )

        records = await storage.find(
            PEOPLE, {"name": {CONTAINS: "mAr"}}, FindOptions(sort="name")
        )

        assert [r["name"] for r in records] == ["MARK", "Maria"]

    async def test_find_contains_escapes_wildcards(self, storage: StoragePort):
        await _seed(
            storage,
            _record("p1", "50% off"),
            _record("p2", "500 off"),
            _record("p3", "a_b"),
            _record("p4", "axb"),
        )

        percent = await storage.find(PEOPLE, {"name": {CONTAINS: "0%"}})
        underscore = await storage.find(PEOPLE, {"name": {CONTAINS: "a_"}})

        assert [r["id"] for r in percent] == ["p1"]
        assert [r["id"] for r in underscore] == ["p3"]

    async def test_find_sort_ties_broken_by_id(self, storage: StoragePort):
        await _seed(
            storage,
            _record("p3", "Sam"),
            _record("p1", "Sam"),
            _record("p2", "Alex"),
        )

        records = await storage.find(PEOPLE, {}, FindOptions(sort="name"))

        assert [r["id"] for r in records] == ["p2", "p1", "p3"]

    async def test_find_descending(self, storage: StoragePort):
        await _seed(storage, _record("p1", "A"), _record("p2", "C"), _record("p3", "B"))

        records = await storage.find(
            PEOPLE, {}, FindOptions(sort="name", descending=True)
        )

        assert [r["name"] for r in records] == ["C", "B", "A"]

    async def test_find_sorts_missing_values_first_ascending(
        self, storage: StoragePort
    ):
        await _seed(
            storage,
            _record("p1", "Bob", description="zebra keeper"),
            _record("p2", "Ann"),
            _record("p3", "Cat", description="accountant"),
        )

        ascending = await storage.find(PEOPLE, {}, FindOptions(sort="description"))
        descending = await storage.find(
            PEOPLE, {}, FindOptions(sort="description", descending=True)
        )

        assert [r["id"] for r in ascending] == ["p2", "p3", "p1"]
        assert [r["id"] for r in descending] == ["p1", "p3", "p2"]

    async def test_find_pages_after_sorting(self, storage: StoragePort):
        await _seed(
            storage,
            *(_record(f"p{i}", name) for i, name in enumerate("EDCBA")),
        )

        records = await storage.find(
            PEOPLE, {}, FindOptions(sort="name", limit=2, offset=2)
        )

        assert [r["name"] for r in records] == ["C", "D"]

    async def test_find_one_returns_first_by_id(self, storage: StoragePort):
        await _seed(storage, _record("p2", "Sam"), _record("p1", "sam"))

        record = await storage.find_one(PEOPLE, {"normalized_name": "sam"})

        assert record is not None
        assert record["id"] == "p1"

    async def test_find_one_no_match_returns_none(self, storage: StoragePort):
        assert await storage.find_one(PEOPLE, {"normalized_name": "x"}) is None

    async def test_find_unknown_operator_raises(self, storage: StoragePort):
        await _seed(storage, _record("p1", "Bob"))

        with pytest.raises(ValueError):
            await storage.find(PEOPLE, {"name": {"$gt": "A"}})

    async def test_returned_records_are_copies(self, storage: StoragePort):
        await _seed(storage, _record("p1", "Bob", metadata={"email": "b@x.com"}))

        record = await storage.get(PEOPLE, "p1")
        record["metadata"]["email"] = "changed"

        assert (await storage.get(PEOPLE, "p1"))["metadata"] == {"email": "b@x.com"}

    async def test_initialize_is_repeatable(self, storage: StoragePort):
        await _seed(storage, _record("p1", "Bob"))

        await storage.initialize()

        assert await storage.get(PEOPLE, "p1") is not None


class TestSQLStorage:
    async def test_unknown_collection_raises(self, sql_storage: SQLStorage):
        with pytest.raises(ValueError, match="Unknown collection"):
            await sql_storage.get("pets", "x")

    async def test_unknown_field_in_record_raises(self, sql_storage: SQLStorage):
        with pytest.raises(ValueError, match="Unknown fields"):
            await sql_storage.put(PEOPLE, "p1", _record("p1", "Bob", nickname="B"))

    async def test_unknown_field_in_predicate_raises(self, sql_storage: SQLStorage):
        with pytest.raises(ValueError, match="Unknown field"):
            await sql_storage.find(PEOPLE, {"nickname": "B"})

    async def test_data_survives_reconnect(self, tmp_path: Path):
        db_path = tmp_path / "persist.db"
        storage = SQLStorage(Database(database_path=db_path))
        await storage.initialize()
        await storage.put(PEOPLE, "p1", _record("p1", "Bob"))
        await storage.close()

        reopened = SQLStorage(Database(database_path=db_path))
        await reopened.initialize()
        try:
            assert (await reopened.get(PEOPLE, "p1"))["name"] == "Bob"
        finally:
            await reopened.close()


    async def test_directory_created_on_connect_not_construction(
        self, tmp_path: Path
    ):
        db_dir = tmp_path / "nested" / "data"
        database = Database(database_path=db_dir / "roster.db")

        assert not db_dir.exists()

        await database.connect()
        try:
            assert db_dir.is_dir()
        finally:
            await database.disconnect()


class TestDocumentStorage:
    async def test_writes_one_json_line_per_record(
        self, document_storage: DocumentStorage
    ):
        await _seed(document_storage, _record("p1", "Bob"), _record("p2", "Ann"))

        lines = (document_storage.root / "people.jsonl").read_text().splitlines()

        assert sorted(json.loads(line)["id"] for line in lines) == ["p1", "p2"]

    async def test_accepts_arbitrary_fields(self, document_storage: DocumentStorage):
        record = _record("p1", "Bob", nickname="B")

        await document_storage.put(PEOPLE, "p1", record)

        assert await document_storage.get(PEOPLE, "p1") == record

    async def test_skips_malformed_lines(self, tmp_path: Path):
        root = tmp_path / "docs"
        root.mkdir()
        good = json.dumps(_record("p1", "Bob"))
        (root / "people.jsonl").write_text(f"{good}\nnot json\n{{}}\n\n")

        storage = DocumentStorage(root)
        records = await storage.find(PEOPLE, {})

        assert [r["id"] for r in records] == ["p1"]

    async def test_reloads_when_file_changes(self, tmp_path: Path):
        root = tmp_path / "docs"
        first = DocumentStorage(root)
        second = DocumentStorage(root)
        await first.initialize()

        assert await second.get(PEOPLE, "p1") is None
        await first.put(PEOPLE, "p1", _record("p1", "Bob"))

        assert (await second.get(PEOPLE, "p1"))["name"] == "Bob"

    async def test_rewrite_leaves_no_temp_files(
        self, document_storage: DocumentStorage
    ):
        await _seed(document_storage, _record("p1", "Bob"))
        await document_storage.delete(PEOPLE, "p1")

        assert [p.name for p in document_storage.root.iterdir()] == ["people.jsonl"]

    @pytest.mark.parametrize("name", ["", "../people", ".hidden"])
    async def test_invalid_collection_name_raises(
        self, document_storage: DocumentStorage, name: str
    ):
        with pytest.raises(ValueError, match="Invalid collection name"):
            await document_storage.get(name, "p1")


class TestCreateStorage:
    def test_document_backend(self, tmp_path: Path):
        storage = create_storage(
            StorageConfig(backend="document", documents_path=tmp_path / "docs")
        )

        assert isinstance(storage, DocumentStorage)
        assert storage.root == tmp_path / "docs"

    def test_sql_backend(self, tmp_path: Path):
        storage = create_storage(
            StorageConfig(backend="sql", database_path=tmp_path / "r.db")
        )

        assert isinstance(storage, SQLStorage)
