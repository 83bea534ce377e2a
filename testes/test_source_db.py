import pytest

pytest.importorskip("pandas")

from article_migrator.extractors import SourceConnection, import_csv_dump


def _write_exports(directory):
    directory.mkdir()
    (directory / "node.csv").write_text(
        "nid,type,title,status,created,changed,uid\n"
        "1,article,Hello,1,100,200,1\n"
        "2,page,About,1,100,200,1\n",
        encoding="utf-8",
    )
    (directory / "url_alias.csv").write_text("pid,Source,Alias,Language\n1,node/1,hello,en\n", encoding="utf-8")


def test_import_csv_dump(tmp_path):
    _write_exports(tmp_path / "exports")
    database = str(tmp_path / "db" / "legacy.duckdb")

    counts = import_csv_dump(str(tmp_path / "exports"), database)
    assert counts == {"node": 2, "url_alias": 1}

    source = SourceConnection.open(database, "legacy")
    try:
        assert source.table_exists("node")
        assert not source.table_exists("parser_map")
        row = source.query_one("SELECT title FROM node WHERE type = ?", ["article"])
        assert row == {"title": "Hello"}
        # Column names are lower-cased on import.
        assert source.query("SELECT source, alias FROM url_alias") == [{"source": "node/1", "alias": "hello"}]
    finally:
        source.close()


def test_existing_tables_are_kept_unless_replaced(tmp_path):
    exports = tmp_path / "exports"
    _write_exports(exports)
    database = str(tmp_path / "legacy.duckdb")
    import_csv_dump(str(exports), database)

    (exports / "node.csv").write_text("nid,type,title,status,created,changed,uid\n3,article,New,1,1,1,1\n", encoding="utf-8")
    assert import_csv_dump(str(exports), database) == {}
    assert import_csv_dump(str(exports), database, replace=True) == {"node": 1, "url_alias": 1}


def test_empty_export_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        import_csv_dump(str(tmp_path), str(tmp_path / "legacy.duckdb"))
