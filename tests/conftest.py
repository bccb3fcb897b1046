# tests/conftest.py
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest
import requests

# ---------- import helpers ----------
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from logging_setup import LOGGER_NAME  # noqa: E402
from models import Article, ArticleImage, AssetPayload, RunConfig  # noqa: E402


# ---------- the Kontent test double ----------
class DummyKontent:
    """
    Record-only Management client.

    Every pipeline call is appended to `calls` as (method_name, payload) and
    answered with a canned response shaped like the real API. Set
    `fail_on = {"upload_binary_file": {3}}` to raise for specific article
    numbers (matched on the title "Article <n>" or the filename "img<n>.png").
    """

    def __init__(self):
        self.calls: list[tuple[str, object]] = []
        self.fail_on: dict[str, set[int]] = {}
        self._counter = 0

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def _maybe_fail(self, method: str, number: int | None) -> None:
        if number is not None and number in self.fail_on.get(method, set()):
            resp = requests.Response()
            resp.status_code = 400
            resp._content = json.dumps({"message": f"{method} rejected", "error_code": 5}).encode()
            raise requests.HTTPError(f"400 error in {method}", response=resp)

    @staticmethod
    def _number_from(text: str) -> int | None:
        digits = "".join(ch for ch in text if ch.isdigit())
        return int(digits) if digits else None

    def upload_binary_file(self, asset: AssetPayload) -> dict:
        self.calls.append(("upload_binary_file", asset))
        self._maybe_fail("upload_binary_file", self._number_from(asset.filename))
        return {"id": self._next("file"), "type": "internal"}

    def add_asset(self, data: dict) -> dict:
        self.calls.append(("add_asset", data))
        return {"id": self._next("asset"), "external_id": data.get("external_id")}

    def add_content_item(self, data: dict) -> dict:
        self.calls.append(("add_content_item", data))
        self._maybe_fail("add_content_item", self._number_from(data["name"]))
        item_id = self._next("item")
        return {"id": item_id, "codename": item_id.replace("-", "_"), "name": data["name"]}

    def upsert_language_variant(self, item_codename: str, language_codename: str, elements: list) -> dict:
        self.calls.append(("upsert_language_variant", {
            "item": item_codename, "language": language_codename, "elements": elements,
        }))
        return {
            "item": {"id": item_codename.replace("_", "-")},
            "language": {"id": f"lang-{language_codename}"},
            "elements": elements,
        }

    def publish_language_variant(self, item_id: str, language_id: str) -> None:
        self.calls.append(("publish_language_variant", {"item_id": item_id, "language_id": language_id}))

    @property
    def method_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class RecordingFetcher:
    """Stands in for utils.assets.fetch_asset; records URLs."""

    def __init__(self, fail_urls: set[str] | None = None):
        self.urls: list[str] = []
        self.fail_urls = fail_urls or set()

    def __call__(self, url: str) -> AssetPayload:
        self.urls.append(url)
        if url in self.fail_urls:
            raise requests.ConnectionError(f"cannot reach {url}")
        name = url.rsplit("/", 1)[-1]
        return AssetPayload(binary_data=b"\x89PNG", content_length=4, content_type="image/png", filename=name)


def make_record(n: int, **overrides) -> dict:
    record = {
        "articleNumber": n,
        "title": f"Article {n}",
        "content": f"<p>Body {n}</p>",
        "image": {"id": f"img-{n}", "url": f"https://cdn.test/images/img{n}.png"},
    }
    record.update(overrides)
    return record


def make_article(n: int) -> Article:
    return Article(
        article_number=n,
        title=f"Article {n}",
        content=f"<p>Body {n}</p>",
        image=ArticleImage(id=f"img-{n}", url=f"https://cdn.test/images/img{n}.png"),
    )


def write_articles(folder: Path, name: str, records) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / name
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


# ---------- common fixtures ----------
@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch):
    monkeypatch.setenv("KONTENT_DOTENV_DISABLE", "1")


@pytest.fixture
def kontent_caplog(caplog):
    """caplog wired to the kontent_import logger (it does not propagate to root once configured)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture
def dummy_kontent():
    return DummyKontent()


@pytest.fixture
def fetcher():
    return RecordingFetcher()


@pytest.fixture
def data_folder(tmp_path: Path) -> Path:
    root = tmp_path / "data" / "5"
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def run_config(data_folder: Path) -> RunConfig:
    return RunConfig(
        project_id="proj-1",
        management_key="key-1",
        folder=data_folder,
        language="en-US",
        type_codename="article",
    )
