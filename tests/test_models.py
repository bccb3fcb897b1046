import pytest

from models import Article, ArticleResult, ImportSummary, MissingScan, coerce_article_number


def test_article_from_dict():
    article = Article.from_dict({
        "articleNumber": "12",
        "title": "Hello",
        "content": "<p>Hi</p>",
        "image": {"id": "img-12", "url": "https://cdn.test/12.png"},
    })
    assert article.article_number == 12
    assert article.image.id == "img-12"
    assert article.image.url == "https://cdn.test/12.png"


@pytest.mark.parametrize("record", [
    {"title": "t", "image": {"id": "i", "url": "u"}},
    {"articleNumber": 1, "image": {"id": "i", "url": "u"}},
    {"articleNumber": 1, "title": "t"},
    {"articleNumber": 1, "title": "t", "image": {"id": "i"}},
    {"articleNumber": "one", "title": "t", "image": {"id": "i", "url": "u"}},
    {"articleNumber": 3.7, "title": "t", "image": {"id": "i", "url": "u"}},
    {"articleNumber": True, "title": "t", "image": {"id": "i", "url": "u"}},
    {"articleNumber": "-2", "title": "t", "image": {"id": "i", "url": "u"}},
    ["not", "an", "object"],
])
def test_article_from_dict_rejects_incomplete_records(record):
    with pytest.raises(ValueError):
        Article.from_dict(record)


def test_missing_scan_membership():
    scan = MissingScan(expected=5, missing=[3, 5], remote_count=3)
    assert 3 in scan
    assert 4 not in scan


def test_import_summary_counts_and_orphans():
    summary = ImportSummary(files=2, files_failed=1)
    summary.results.extend([
        ArticleResult(1, "a", "imported", asset_id="as-1", item_id="it-1"),
        ArticleResult(2, "b", "skipped"),
        ArticleResult(3, "c", "failed", error="{}", asset_id="as-3"),
        ArticleResult(4, "d", "failed", error="{}"),
    ])

    data = summary.to_dict()

    assert data["counts"] == {
        "imported": 1, "skipped": 1, "failed": 2, "total": 4, "files": 2, "files_failed": 1,
    }
    assert data["orphaned_assets"] == ["as-3"]
    assert data["results"][0]["item_id"] == "it-1"


@pytest.mark.parametrize("raw, expected", [
    (7, 7),
    (7.0, 7),
    (" 7 ", 7),
    (7.5, None),
    (False, None),
    ("7a", None),
    (None, None),
])
def test_coerce_article_number(raw, expected):
    assert coerce_article_number(raw) == expected
