import json

from article_migrator.extractors import build_reader
from article_migrator.migrators import AliasMigrator, MappingStore, TermResolver
from article_migrator.models import MigrationSettings


def _resolver(source, destination, **options):
    settings = MigrationSettings(connection_key="legacy_news", **options)
    reader = build_reader(source, settings)
    mapping = MappingStore(destination.con, "legacy_news")
    aliases = AliasMigrator(reader, destination.alias_store, settings)
    return TermResolver(reader, mapping, destination.entity_store, aliases), mapping


def test_creates_term_in_target_vocabulary(flat_source, destination):
    resolver, mapping = _resolver(flat_source, destination)
    dest_id = resolver.resolve("10")

    term = destination.entity_store.load("term", dest_id)
    assert term["name"] == "News"
    assert term["vocabulary"] == "tags"
    assert term["description"] == "All news"
    assert mapping.lookup("term", 10) == dest_id


def test_same_name_collapses_onto_one_term(flat_source, destination):
    resolver, mapping = _resolver(flat_source, destination)
    first = resolver.resolve("10")
    second = resolver.resolve("12")

    assert first == second
    assert len(destination.entity_store.find("term")) == 1
    assert mapping.lookup("term", 12) == first


def test_existing_destination_term_is_reused_and_mapped(flat_source, destination):
    existing = destination.entity_store.create("term", {"name": "News", "vocabulary": "tags"})
    resolver, mapping = _resolver(flat_source, destination)

    assert resolver.resolve("10") == existing
    assert mapping.lookup("term", 10) == existing
    assert len(destination.entity_store.find("term")) == 1


def test_names_are_label_normalized(flat_source, destination):
    resolver, _ = _resolver(flat_source, destination)
    term = destination.entity_store.load("term", resolver.resolve("11"))
    assert term["name"] == "Local news"


def test_second_resolve_uses_mapping(flat_source, destination, monkeypatch):
    resolver, _ = _resolver(flat_source, destination)
    dest_id = resolver.resolve("10")

    def fail(term_id):
        raise AssertionError("source should not be read again")

    monkeypatch.setattr(resolver.reader, "read_term", fail)
    assert resolver.resolve("10") == dest_id


def test_term_of_other_vocabulary_is_ineligible(flat_source, destination):
    resolver, mapping = _resolver(flat_source, destination)
    assert resolver.resolve("13") is None
    assert mapping.lookup("term", 13) is None


def test_configured_source_vocabulary(flat_source, destination):
    resolver, _ = _resolver(flat_source, destination, source_vocabulary_id=1)
    assert resolver.resolve("13") is not None
    assert resolver.resolve("10") is None


def test_excluded_term_names(flat_source, destination):
    resolver, _ = _resolver(flat_source, destination, excluded_term_names=["local news"])
    assert resolver.resolve("11") is None
    assert resolver.resolve("10") is not None


def test_missing_source_term_is_reported(flat_source, destination, report_dir):
    resolver, _ = _resolver(flat_source, destination)
    assert resolver.resolve("404") is None

    entry = json.loads((report_dir / "errors.jsonl").read_text().splitlines()[0])
    assert entry["code"] == "TERM_MISSING"
    assert entry["source_id"] == "404"


def test_term_alias_is_migrated(flat_source, destination):
    resolver, _ = _resolver(flat_source, destination)
    dest_id = resolver.resolve("10")
    aliases = destination.alias_store.find_by_path(f"/taxonomy/term/{dest_id}")
    assert [(a.alias, a.language) for a in aliases] == [("/tags/news", "und")]


def test_alias_already_taken_is_not_duplicated(flat_source, destination):
    destination.alias_store.create("/node/77", "/tags/news", "und")
    resolver, _ = _resolver(flat_source, destination)
    resolver.resolve("10")
    assert len(destination.alias_store.all()) == 1


def test_normalized_vocabulary_filter(normalized_source, destination):
    resolver, _ = _resolver(normalized_source, destination, schema_version="normalized", source_vocabularies=["topics"])
    assert resolver.resolve("20") is not None
    # Term 21 has no parent bundle, so it is outside the allowed vocabularies.
    assert resolver.resolve("21") is None
