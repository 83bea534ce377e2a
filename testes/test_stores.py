import pytest

from article_migrator.models import CollisionPolicy
from article_migrator.stores import UnknownFieldError


def test_entity_crud(destination):
    store = destination.entity_store
    term_id = store.create("term", {"name": "News", "vocabulary": "tags"})

    assert store.load("term", term_id) == {"id": term_id, "name": "News", "vocabulary": "tags"}
    store.update("term", term_id, {"weight": 3})
    assert store.load("term", term_id)["weight"] == 3
    assert store.find("term", vocabulary="tags", name="News")[0]["id"] == term_id
    assert store.delete("term", term_id) is True
    assert store.delete("term", term_id) is False
    assert store.load("term", term_id) is None


def test_kinds_do_not_mix(destination):
    store = destination.entity_store
    node_id = store.create("node", {"title": "x"})
    assert store.load("term", node_id) is None
    assert store.all_ids("term") == []


def test_unknown_fields_are_rejected(destination):
    with pytest.raises(UnknownFieldError):
        destination.entity_store.create("term", {"name": "x", "colour": "red"})


def test_optional_capabilities(destination):
    assert destination.entity_store.has_field("node", "domain_refs")
    assert not destination.entity_store.has_field("term", "domain_refs")


def test_alias_store(destination):
    aliases = destination.alias_store
    entry = aliases.create("/node/3", "/about", "en")

    assert aliases.find_by_alias("/about") == entry
    assert aliases.find_by_path("/node/3") == [entry]
    aliases.delete(entry)
    assert aliases.find_by_alias("/about") is None


def test_asset_store_rejects_paths_outside_root(destination):
    with pytest.raises(ValueError):
        destination.asset_store.write(b"x", "../escape.txt", policy=CollisionPolicy.REPLACE)


def test_asset_directory_listing_and_deletion(destination):
    store = destination.asset_store
    store.write(b"1", "body_images/s/1/a.jpg", policy=CollisionPolicy.RENAME)
    store.write(b"2", "body_images/s/1/b.jpg", policy=CollisionPolicy.RENAME)
    store.write(b"3", "body_images/s/10/c.jpg", policy=CollisionPolicy.RENAME)

    assert sorted(a.filename for a in store.list_directory("body_images/s/1")) == ["a.jpg", "b.jpg"]
    assert store.delete_directory("body_images/s/1") == 2
    assert not (destination.public_root / "body_images" / "s" / "1").exists()
    assert [a.filename for a in store.list_directory("body_images/s/10")] == ["c.jpg"]
