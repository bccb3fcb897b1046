#models.py
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

ResultStatus = Literal["imported", "skipped", "failed"]


def coerce_article_number(value: Any) -> Optional[int]:
    """int, integral float or digit string -> int; anything else (bools included) -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _require(record: Mapping[str, Any], key: str) -> Any:
    if key not in record or record[key] is None:
        raise ValueError(f"article record is missing '{key}'")
    return record[key]


@dataclass(frozen=True, slots=True)
class ArticleImage:
    id: str
    url: str


@dataclass(frozen=True, slots=True)
class Article:
    article_number: int
    title: str
    content: str
    image: ArticleImage

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Article":
        """Build from the exported shape {articleNumber, title, content, image: {id, url}}."""
        if not isinstance(record, Mapping):
            raise ValueError(f"article record must be an object, got {type(record).__name__}")
        image = _require(record, "image")
        if not isinstance(image, Mapping):
            raise ValueError("article record 'image' must be an object")
        raw = _require(record, "articleNumber")
        number = coerce_article_number(raw)
        if number is None:
            raise ValueError(f"article record has a non-integer 'articleNumber': {raw!r}")
        return cls(
            article_number=number,
            title=str(_require(record, "title")),
            content=str(record.get("content") or ""),
            image=ArticleImage(id=str(_require(image, "id")), url=str(_require(image, "url"))),
        )


@dataclass(frozen=True, slots=True)
class RunConfig:
    project_id: Optional[str]
    management_key: Optional[str]
    folder: Path
    language: Optional[str]
    type_codename: Optional[str]
    verbose: bool = False
    just_missing: bool = False
    ignore_external_id: bool = False
    workers: int = 1
    dry_run: bool = False
    rich_text: bool = False  # normalize `content` to Kontent rich-text HTML before upsert
    summary_json: Optional[Path] = None


@dataclass(frozen=True, slots=True)
class AssetPayload:
    binary_data: bytes
    content_length: int
    content_type: str
    filename: str


@dataclass(frozen=True, slots=True)
class ArticleResult:
    article_number: Optional[int]
    title: Optional[str]
    status: ResultStatus
    error: Optional[str] = None      # serialized JSON for failures
    asset_id: Optional[str] = None   # set as soon as the asset exists remotely
    item_id: Optional[str] = None
    file: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MissingScan:
    expected: int
    missing: List[int] = field(default_factory=list)
    remote_count: int = 0
    type_found: bool = True  # False when the feed returned no items at all

    def __contains__(self, article_number: object) -> bool:
        return article_number in self.missing


@dataclass
class ImportSummary:
    """Counters plus per-article results for one run."""

    results: List[ArticleResult] = field(default_factory=list)
    files: int = 0
    files_failed: int = 0

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def imported(self) -> int:
        return self._count("imported")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def orphaned_assets(self) -> List[str]:
        return [r.asset_id for r in self.results if r.status == "failed" and r.asset_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "counts": {
                "imported": self.imported,
                "skipped": self.skipped,
                "failed": self.failed,
                "total": self.total,
                "files": self.files,
                "files_failed": self.files_failed,
            },
            "orphaned_assets": self.orphaned_assets,
            "results": [asdict(r) for r in self.results],
        }
