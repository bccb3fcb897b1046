# utils/fs.py

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List


def ensure_dir(path: Path) -> None:
    """Create directory (and parents) if missing."""
    path.mkdir(parents=True, exist_ok=True)


def atomic_write(path: Path, data: str | bytes) -> None:
    """
    Write to a temp file in the same dir then atomic-rename.
    Prevents partial files if the process dies mid-write.
    """
    ensure_dir(path.parent)
    mode = "wb" if isinstance(data, (bytes, bytearray)) else "w"
    encoding = None if "b" in mode else "utf-8"

    tmp_fd, tmp_name = tempfile.mkstemp(dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(tmp_fd, mode, encoding=encoding) as f:
            f.write(data)  # type: ignore[arg-type]
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def json_dumps_stable(obj: Any) -> str:
    """Deterministic JSON: 2-space indent, sorted keys, UTF-8, trailing newline."""
    return json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def list_json_files(folder: Path) -> List[Path]:
    """*.json directly inside `folder` (non-recursive), sorted by name."""
    return sorted(p for p in folder.glob("*.json") if p.is_file())


def read_articles(path: Path) -> List[Any]:
    """
    Parse one input file. Raises OSError / json.JSONDecodeError on bad files,
    ValueError when the top level is not an array.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path.name}: expected a JSON array of articles, got {type(data).__name__}")
    return data


def expected_count_from_folder(folder: Path | str) -> int:
    """
    Number of articles the folder should hold, taken from its trailing
    numeric path segment: data/articles/250 -> 250.
    """
    name = Path(str(folder).rstrip("/\\")).name
    if not name.isdigit():
        raise ValueError(f"Folder name {name!r} does not end in an article count (e.g. data/250)")
    return int(name)
