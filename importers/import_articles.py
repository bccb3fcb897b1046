# importers/import_articles.py
"""
Import articles from <folder>/*.json into Kontent.ai.

Per article (strictly in this order):
  1) Download the image from article.image.url
  2) Upload the binary, obtaining a file reference
  3) Create the asset (description + optional external_id + file reference)
  4) Create the content item (name = title, type = configured codename)
  5) Upsert the language variant: title, content, image, article_number
  6) Publish the variant

No step is retried here and nothing is rolled back: an article that fails
after step 3 leaves its asset behind. The failed result keeps the ids that
were created so the summary lists them.
"""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from logging_setup import get_logger
from models import Article, ArticleResult, AssetPayload, ImportSummary, MissingScan, RunConfig, coerce_article_number
from utils.assets import fetch_asset
from utils.fs import list_json_files, read_articles
from utils.html_postprocessor import to_rich_text

__all__ = ["import_article", "import_file", "import_folder", "scan_folder", "build_elements"]

Fetcher = Callable[[str], AssetPayload]


# ---------------- Protocol (compatible with DummyKontent in tests) --------------

class ManagementLike(Protocol):
    def upload_binary_file(self, asset: AssetPayload) -> Dict[str, Any]: ...
    def add_asset(self, data: Dict[str, Any]) -> Dict[str, Any]: ...
    def add_content_item(self, data: Dict[str, Any]) -> Dict[str, Any]: ...
    def upsert_language_variant(
        self, item_codename: str, language_codename: str, elements: List[Dict[str, Any]]
    ) -> Dict[str, Any]: ...
    def publish_language_variant(self, item_id: str, language_id: str) -> None: ...


# ---------------- Helpers -------------------------------------------------------

def _serialize_error(exc: BaseException) -> str:
    """JSON description of a failure, including the API response body when there is one."""
    info: Dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    resp = getattr(exc, "response", None)
    if resp is not None:
        info["status"] = getattr(resp, "status_code", None)
        try:
            info["response"] = resp.json()
        except (ValueError, AttributeError):
            info["response"] = (getattr(resp, "text", "") or "")[:500]
    return json.dumps(info, indent=2, default=str)


def _ref_id(payload: Dict[str, Any], key: str) -> str:
    """Pull {key: {"id": ...}}["id"] out of a variant response."""
    ref = payload.get(key) if isinstance(payload, dict) else None
    value = ref.get("id") if isinstance(ref, dict) else None
    if not value:
        raise RuntimeError(f"Kontent response is missing {key}.id")
    return str(value)


def _required(payload: Dict[str, Any], key: str, what: str) -> str:
    value = payload.get(key) if isinstance(payload, dict) else None
    if not value:
        raise RuntimeError(f"Kontent did not return {key} for the new {what}")
    return str(value)


def build_asset_data(article: Article, file_reference: Dict[str, Any], config: RunConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "descriptions": [{
            "language": {"codename": config.language},
            "description": f"Image for article {article.title}",
        }],
        "file_reference": dict(file_reference),
    }
    if not config.ignore_external_id:
        data["external_id"] = article.image.id
    return data


def build_elements(article: Article, asset_id: str, *, rich_text: bool = False) -> List[Dict[str, Any]]:
    content = to_rich_text(article.content) if rich_text else article.content
    return [
        {"element": {"codename": "title"}, "value": article.title},
        {"element": {"codename": "content"}, "value": content},
        {"element": {"codename": "image"}, "value": [{"id": asset_id}]},
        {"element": {"codename": "article_number"}, "value": article.article_number},
    ]


# ---------------- Core pipeline -------------------------------------------------

def import_article(
    article: Article,
    *,
    config: RunConfig,
    management: ManagementLike,
    fetch: Fetcher = fetch_asset,
    missing: Optional[MissingScan] = None,
    file: Optional[str] = None,
) -> ArticleResult:
    """Run the six-step pipeline for one article; never raises."""
    log = get_logger(stage="articles", project_id=config.project_id or "-")

    if missing is not None and article.article_number not in missing:
        log.info("Skipping article (%d) %s: already present", article.article_number, article.title)
        return ArticleResult(article.article_number, article.title, "skipped", file=file)

    log.debug("Importing item: (%d) %s", article.article_number, article.title)

    asset_id: Optional[str] = None
    item_id: Optional[str] = None
    try:
        payload = fetch(article.image.url)
        file_reference = management.upload_binary_file(payload)
        log.debug("uploaded binary %s (%d bytes)", payload.filename, payload.content_length)

        asset = management.add_asset(build_asset_data(article, file_reference, config))
        asset_id = _required(asset, "id", "asset")

        item = management.add_content_item({
            "name": article.title,
            "type": {"codename": config.type_codename},
        })
        item_id = _required(item, "id", "content item")
        item_codename = _required(item, "codename", "content item")

        variant = management.upsert_language_variant(
            item_codename,
            config.language or "",
            build_elements(article, asset_id, rich_text=config.rich_text),
        )
        management.publish_language_variant(_ref_id(variant, "item"), _ref_id(variant, "language"))

    except Exception as e:
        error = _serialize_error(e)
        log.error(
            "Failed to import article (%d) %s: %s",
            article.article_number, article.title, error,
            extra={"asset_id": asset_id, "item_id": item_id},
        )
        return ArticleResult(
            article.article_number, article.title, "failed",
            error=error, asset_id=asset_id, item_id=item_id, file=file,
        )

    log.info(
        "Imported article (%d) %s -> item=%s asset=%s",
        article.article_number, article.title, item_id, asset_id,
    )
    return ArticleResult(
        article.article_number, article.title, "imported",
        asset_id=asset_id, item_id=item_id, file=file,
    )


def import_file(
    path: Path,
    *,
    config: RunConfig,
    management: ManagementLike,
    fetch: Fetcher = fetch_asset,
    missing: Optional[MissingScan] = None,
) -> Tuple[List[ArticleResult], bool]:
    """
    Import every article in one file, in order.
    Returns (results, file_ok); file_ok is False when the file could not be read.
    """
    log = get_logger(stage="files", project_id=config.project_id or "-")
    log.debug("Importing file: %s", path)

    try:
        records = read_articles(path)
    except (OSError, ValueError) as e:
        log.error("Cannot read %s, skipping its articles: %s", path, e)
        return [], False

    results: List[ArticleResult] = []
    for idx, record in enumerate(records):
        try:
            article = Article.from_dict(record)
        except ValueError as e:
            number = record.get("articleNumber") if isinstance(record, dict) else None
            log.error("Invalid article record #%d in %s: %s", idx, path.name, e)
            results.append(ArticleResult(
                coerce_article_number(number),
                record.get("title") if isinstance(record, dict) else None,
                "failed",
                error=_serialize_error(e),
                file=path.name,
            ))
            continue

        results.append(import_article(
            article,
            config=config,
            management=management,
            fetch=fetch,
            missing=missing,
            file=path.name,
        ))
    return results, True


def scan_folder(folder: Path) -> Dict[str, int]:
    """Article counts per input file (dry-run planning); unreadable files count 0."""
    log = get_logger(stage="scan")
    counts: Dict[str, int] = {}
    for path in list_json_files(folder):
        try:
            counts[path.name] = len(read_articles(path))
        except (OSError, ValueError) as e:
            log.warning("Cannot read %s: %s", path, e)
            counts[path.name] = 0
    return counts


# ---------------- Public entrypoint --------------------------------------------

def import_folder(
    config: RunConfig,
    *,
    management: ManagementLike,
    fetch: Fetcher = fetch_asset,
    missing: Optional[MissingScan] = None,
) -> ImportSummary:
    """
    Import all *.json files in config.folder. Files run on a bounded pool of
    config.workers threads; the call returns only when every file is done.
    Results keep file order, and article order within each file.
    """
    log = get_logger(stage="runner", project_id=config.project_id or "-")
    summary = ImportSummary()

    folder = Path(config.folder)
    if not folder.is_dir():
        log.error("Cannot read the folder %s", folder)
        return summary

    files = list_json_files(folder)
    log.info(
        "Starting import at %s files=%d workers=%d",
        datetime.now(timezone.utc).isoformat(), len(files), config.workers,
    )
    log.debug("Loading files: %s", ", ".join(p.name for p in files))

    with ThreadPoolExecutor(max_workers=max(1, config.workers)) as pool:
        futures = [
            pool.submit(import_file, path, config=config, management=management, fetch=fetch, missing=missing)
            for path in files
        ]
        outcomes = [f.result() for f in futures]

    for results, file_ok in outcomes:
        summary.files += 1
        if not file_ok:
            summary.files_failed += 1
        summary.results.extend(results)

    log.info(
        "Article import complete. imported=%d skipped=%d failed=%d total=%d files=%d files_failed=%d",
        summary.imported, summary.skipped, summary.failed, summary.total,
        summary.files, summary.files_failed,
    )
    if summary.orphaned_assets:
        log.warning("Assets left without a published item: %s", ", ".join(summary.orphaned_assets))
    return summary
