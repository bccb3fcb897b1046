# importers/find_missing.py
"""
Reconcile the expected article range 1..N (N from the folder name) against
the items already published for the configured type + language.

An item is matched on its `article_number` element. Items present without
exactly one image are reported but not treated as missing, so a re-import
never duplicates them.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from logging_setup import get_logger
from models import MissingScan, RunConfig, coerce_article_number
from utils.fs import expected_count_from_folder
from utils.pagination import element_value, list_items_feed

__all__ = ["find_missing_articles", "index_by_article_number"]

ARTICLE_NUMBER_ELEMENT = "article_number"
IMAGE_ELEMENT = "image"


class DeliveryLike(Protocol):
    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]: ...


def index_by_article_number(items: List[Dict[str, Any]]) -> Dict[int, Dict[str, Any]]:
    """First remote item per article number; items without a usable number are ignored."""
    index: Dict[int, Dict[str, Any]] = {}
    for item in items:
        number = coerce_article_number(element_value(item, ARTICLE_NUMBER_ELEMENT))
        if number is not None:
            index.setdefault(number, item)
    return index


def find_missing_articles(config: RunConfig, delivery: DeliveryLike) -> MissingScan:
    """
    Return a MissingScan for 1..N. Raises ValueError when the folder name
    carries no article count.
    """
    log = get_logger(stage="find_missing", project_id=config.project_id or "-")

    expected = expected_count_from_folder(config.folder)
    items = list_items_feed(delivery, type_codename=config.type_codename or "", language=config.language or "")

    if not items:
        log.warning(
            "No items of type %r found for language %r; treating all %d articles as missing",
            config.type_codename, config.language, expected,
        )
        return MissingScan(expected=expected, missing=list(range(1, expected + 1)), remote_count=0, type_found=False)

    by_number = index_by_article_number(items)
    missing: List[int] = []

    for i in range(1, expected + 1):
        item = by_number.get(i)
        if item is None:
            missing.append(i)
            log.warning("Article %d missing", i)
            continue

        images = element_value(item, IMAGE_ELEMENT)
        if not isinstance(images, list) or len(images) != 1:
            count = len(images) if isinstance(images, list) else 0
            log.warning(
                "Article %d has missing image (images=%d)", i, count,
                extra={"codename": (item.get("system") or {}).get("codename")},
            )
            continue

        log.debug("Article %d OK", i)

    log.info(
        "Missing scan complete. expected=%d remote=%d missing=%d",
        expected, len(items), len(missing),
    )
    return MissingScan(expected=expected, missing=missing, remote_count=len(items), type_found=True)
