import csv

from article_migrator.utils.redirects import generate_redirects_csv


def test_redirect_csv_with_base(tmp_path):
    out = generate_redirects_csv(
        [
            {"OldPath": "/node/1", "NewPath": "/node/40", "Alias": "/news/first-story"},
            {"OldPath": "/node/2", "NewPath": "/node/41"},
        ],
        new_base="https://www.example.com/",
        out_path=str(tmp_path / "reports" / "redirect_map.csv"),
    )

    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == [
        ["OldPath", "NewURL", "Alias"],
        ["/node/1", "https://www.example.com/node/40", "/news/first-story"],
        ["/node/2", "https://www.example.com/node/41", ""],
    ]


def test_redirect_csv_without_base_keeps_paths(tmp_path):
    out = generate_redirects_csv([{"OldPath": "/node/1", "NewPath": "/node/9"}], out_path=str(tmp_path / "r.csv"))
    with open(out, newline="", encoding="utf-8") as f:
        assert list(csv.reader(f))[1] == ["/node/1", "/node/9", ""]
