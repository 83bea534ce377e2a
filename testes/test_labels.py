from article_migrator.utils.labels import normalize_label, split_list_option


def test_entities_and_nbsp_are_normalized():
    assert normalize_label("Local&nbsp;news ") == "Local news"
    assert normalize_label("Tips &amp; Tricks") == "Tips & Tricks"


def test_inner_whitespace_collapses_and_case_is_kept():
    assert normalize_label("  Big\t\tData  ") == "Big Data"


def test_empty_label():
    assert normalize_label("") == ""
    assert normalize_label(None) == ""


def test_split_list_option():
    assert split_list_option("site_a, site_b,,") == ["site_a", "site_b"]
    assert split_list_option("") == []
