import os
import sys
from types import SimpleNamespace

import duckdb
import pytest
import requests

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from article_migrator.extractors import SourceConnection, build_reader
from article_migrator.migrators import (
    AliasMigrator,
    ArticleMigrator,
    AssetTransfer,
    FileResolver,
    MappingStore,
    MigrationReverser,
    TermResolver,
)
from article_migrator.models import MigrationSettings
from article_migrator.stores import DuckDBAliasStore, DuckDBEntityStore, LocalAssetStore
from article_migrator.utils.errors import configure_reports

SCOPE = "legacy_news"
PUBLIC_URL = "https://new.example.com/files"

FIRST_BODY = (
    '<div style="x" class="y"><b>hi</b></div><p>&nbsp;</p>'
    '<p><img src="/sites/default/files/inline/pic.jpg" alt="pic"></p>'
)


def create_flat_tables(con):
    """Small legacy database in the flat-table layout."""
    con.execute("CREATE TABLE node (nid INTEGER, type VARCHAR, title VARCHAR, status INTEGER, created BIGINT, changed BIGINT, uid INTEGER)")
    con.execute(
        """
        INSERT INTO node VALUES
            (2, 'article', 'Second story', 1, 2000, 2100, 5),
            (1, 'article', 'First story', 1, 1000, 1100, 5),
            (3, 'article', 'Draft story', 0, 3000, 3000, 5),
            (4, 'page', 'About us', 1, 4000, 4000, 5),
            (5, 'article', 'Excluded story', 1, 5000, 5000, 5),
            (6, 'article', '   ', 1, 6000, 6000, 5)
        """
    )
    con.execute("CREATE TABLE field_data_body (entity_type VARCHAR, entity_id INTEGER, delta INTEGER, body_value VARCHAR, body_format VARCHAR)")
    con.execute(
        "INSERT INTO field_data_body VALUES (?, ?, ?, ?, ?), (?, ?, ?, ?, ?), (?, ?, ?, ?, ?), (?, ?, ?, ?, ?)",
        [
            "node", 1, 0, FIRST_BODY, "filtered_html",
            "node", 2, 0, '<p>Second <img src="missing.png"> text</p>', "filtered_html",
            "node", 5, 0, "<p>x</p>", "filtered_html",
            "node", 6, 0, "<p>y</p>", "filtered_html",
        ],
    )
    con.execute("CREATE TABLE field_data_field_tags (entity_type VARCHAR, entity_id INTEGER, delta INTEGER, field_tags_tid INTEGER)")
    con.execute("INSERT INTO field_data_field_tags VALUES ('node', 1, 0, 10), ('node', 1, 1, 11), ('node', 2, 0, 12), ('node', 2, 1, 13)")
    con.execute("CREATE TABLE taxonomy_term_data (tid INTEGER, vid INTEGER, name VARCHAR, description VARCHAR, weight INTEGER)")
    con.execute(
        """
        INSERT INTO taxonomy_term_data VALUES
            (10, 3, 'News', 'All news', 0),
            (11, 3, 'Local&nbsp;news', NULL, 1),
            (12, 3, 'news ', NULL, 0),
            (13, 1, 'Forum', NULL, 0)
        """
    )
    con.execute("CREATE TABLE field_data_field_image (entity_type VARCHAR, entity_id INTEGER, delta INTEGER, field_image_fid INTEGER)")
    con.execute("INSERT INTO field_data_field_image VALUES ('node', 1, 0, 100), ('node', 2, 0, 101)")
    con.execute("CREATE TABLE file_managed (fid INTEGER, filename VARCHAR, uri VARCHAR, filemime VARCHAR)")
    con.execute(
        """
        INSERT INTO file_managed VALUES
            (100, 'lead.jpg', 'public://2020/lead.jpg', 'image/jpeg'),
            (101, 'gone.jpg', 'public://2020/gone.jpg', 'image/jpeg')
        """
    )
    con.execute("CREATE TABLE url_alias (pid INTEGER, source VARCHAR, alias VARCHAR, language VARCHAR)")
    con.execute("INSERT INTO url_alias VALUES (1, 'node/1', 'news/first-story', 'en'), (2, 'taxonomy/term/10', 'tags/news', 'und')")
    con.execute("CREATE TABLE parser_map (entity_id INTEGER)")
    con.execute("INSERT INTO parser_map VALUES (5)")


def create_normalized_tables(con):
    """Small legacy database in the normalized layout."""
    con.execute("CREATE TABLE node_field_data (nid INTEGER, type VARCHAR, title VARCHAR, status INTEGER, created BIGINT, changed BIGINT, uid INTEGER)")
    con.execute(
        """
        INSERT INTO node_field_data VALUES
            (1, 'article', 'Video story', 1, 1000, 1100, 1),
            (2, 'article', 'Odd video', 1, 2000, 2100, 1)
        """
    )
    con.execute("CREATE TABLE node__body (entity_id INTEGER, body_value VARCHAR, body_format VARCHAR)")
    con.execute("INSERT INTO node__body VALUES (1, '<p class=\"lead\">Intro</p>', 'basic_html'), (2, '<p>b</p>', 'basic_html')")
    con.execute("CREATE TABLE node__field_video (entity_id INTEGER, field_video_value VARCHAR)")
    con.execute("INSERT INTO node__field_video VALUES (1, 'https://youtu.be/dQw4w9WgXcQ'), (2, 'https://example.com/v/1')")
    con.execute("CREATE TABLE node__field_tags (entity_id INTEGER, delta INTEGER, field_tags_target_id INTEGER)")
    con.execute("INSERT INTO node__field_tags VALUES (1, 0, 20), (1, 1, 21)")
    con.execute("CREATE TABLE node__field_image (entity_id INTEGER, delta INTEGER, field_image_target_id INTEGER)")
    con.execute("CREATE TABLE taxonomy_term_field_data (tid INTEGER, name VARCHAR, description__value VARCHAR, weight INTEGER, langcode VARCHAR)")
    con.execute("INSERT INTO taxonomy_term_field_data VALUES (20, 'Sports', 'Sport results', 2, 'en'), (21, 'Football', NULL, 0, 'en')")
    con.execute("CREATE TABLE taxonomy_term__parent (entity_id INTEGER, bundle VARCHAR)")
    con.execute("INSERT INTO taxonomy_term__parent VALUES (20, 'topics')")
    con.execute("CREATE TABLE file_managed (fid INTEGER, filename VARCHAR, uri VARCHAR, filemime VARCHAR)")
    con.execute("CREATE TABLE path_alias (id INTEGER, path VARCHAR, alias VARCHAR, langcode VARCHAR)")
    con.execute("INSERT INTO path_alias VALUES (1, '/node/1', '/video-story', 'en')")


class FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content
        self.closed = False

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for ``requests.Session``; answers from a url -> response table."""

    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.calls = []

    def get(self, url, stream=False, timeout=None):
        self.calls.append({"url": url, "stream": stream, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.responses.get(url, FakeResponse(404))


@pytest.fixture(autouse=True)
def report_dir(tmp_path):
    path = tmp_path / "reports"
    configure_reports(str(path))
    return path


@pytest.fixture
def flat_source():
    con = duckdb.connect(":memory:")
    create_flat_tables(con)
    yield SourceConnection(con, SCOPE)
    con.close()


@pytest.fixture
def normalized_source():
    con = duckdb.connect(":memory:")
    create_normalized_tables(con)
    yield SourceConnection(con, SCOPE)
    con.close()


@pytest.fixture
def files_base(tmp_path):
    base = tmp_path / "legacy_files"
    (base / "2020").mkdir(parents=True)
    (base / "inline").mkdir()
    (base / "2020" / "lead.jpg").write_bytes(b"lead-bytes")
    (base / "inline" / "pic.jpg").write_bytes(b"pic-bytes")
    return base


@pytest.fixture
def dest_con():
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture
def destination(dest_con, tmp_path):
    entity_store = DuckDBEntityStore(dest_con, capabilities={"node": ["domain_refs", "canonical_domain"]})
    return SimpleNamespace(
        con=dest_con,
        entity_store=entity_store,
        alias_store=DuckDBAliasStore(dest_con),
        asset_store=LocalAssetStore(str(tmp_path / "public"), PUBLIC_URL, entity_store),
        public_root=tmp_path / "public",
    )


@pytest.fixture
def build_migrator(destination, files_base):
    """Factory wiring an :class:`ArticleMigrator` the way the tool does."""

    def _build(source, schema_version="flat", session=None, entity_store=None, scope=SCOPE, **options):
        settings = MigrationSettings(
            connection_key=scope,
            schema_version=schema_version,
            files_base_path=str(files_base),
            **options,
        )
        entity_store = entity_store or destination.entity_store
        asset_store = destination.asset_store
        if entity_store is not destination.entity_store:
            asset_store = LocalAssetStore(str(destination.public_root), PUBLIC_URL, entity_store)
        mapping = MappingStore(destination.con, scope)
        reader = build_reader(source, settings)
        transfer = AssetTransfer(
            settings.files_base_path,
            asset_store,
            session=session or FakeSession(),
            strip_prefixes=settings.strip_prefixes,
            body_image_destination=settings.body_image_destination,
        )
        aliases = AliasMigrator(reader, destination.alias_store, settings)
        migrator = ArticleMigrator(
            reader,
            mapping,
            entity_store,
            destination.alias_store,
            TermResolver(reader, mapping, entity_store, aliases),
            FileResolver(reader, mapping, transfer),
            transfer,
            aliases,
            settings,
        )
        reverser = MigrationReverser(mapping, entity_store, destination.alias_store, asset_store, transfer.body_image_directory)
        return SimpleNamespace(
            migrator=migrator,
            reverser=reverser,
            mapping=mapping,
            reader=reader,
            transfer=transfer,
            entity_store=entity_store,
            settings=settings,
        )

    return _build


@pytest.fixture
def requests_error():
    return requests.ConnectionError("connection refused")
