import duckdb
import pytest

from article_migrator.migrators import DuplicateMappingError, MappingStore
from article_migrator.models import EntityKind


@pytest.fixture
def con():
    con = duckdb.connect(":memory:")
    yield con
    con.close()


def test_lookup_unknown_returns_none(con):
    assert MappingStore(con, "legacy").lookup("node", 1) is None


def test_record_then_lookup(con):
    store = MappingStore(con, "legacy")
    entry = store.record(EntityKind.NODE, 12, 340)
    assert entry.source_id == "12" and entry.dest_id == "340"
    assert store.lookup("node", "12") == "340"
    assert store.lookup("term", "12") is None


def test_duplicate_record_raises(con):
    store = MappingStore(con, "legacy")
    store.record("file", "7", "70")
    with pytest.raises(DuplicateMappingError):
        store.record("file", "7", "71")
    assert store.lookup("file", "7") == "70"


def test_scopes_are_isolated(con):
    first = MappingStore(con, "site_one")
    second = MappingStore(con, "site_two")
    first.record("node", "1", "10")

    assert second.lookup("node", "1") is None
    second.record("node", "1", "20")
    assert first.lookup("node", "1") == "10"


def test_invalid_scope_is_rejected(con):
    with pytest.raises(ValueError):
        MappingStore(con, "bad-scope; DROP TABLE x")


def test_entries_keep_insertion_order(con):
    store = MappingStore(con, "legacy")
    for source_id in ("9", "2", "5"):
        store.record("term", source_id, f"d{source_id}")
    assert [e.source_id for e in store.entries("term")] == ["9", "2", "5"]
    assert store.all_dest_ids("term") == ["d9", "d2", "d5"]


def test_count_and_delete_all(con):
    store = MappingStore(con, "legacy")
    store.record("node", "1", "10")
    store.record("term", "1", "11")
    store.record("file", "1", "12")

    assert store.count() == 3
    assert store.count("term") == 1
    assert store.delete_all() == 3
    assert store.count() == 0
    assert store.lookup("node", "1") is None
