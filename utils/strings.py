# utils/strings.py
from __future__ import annotations
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse


def filename_from_url(url: str) -> str:
    """
    Last path segment of a URL, percent-decoded.
      - query string and fragment are ignored
      - trailing slashes are ignored
    Returns "" when the URL has no path.
    """
    if not url:
        return ""
    path = urlparse(url).path.rstrip("/")
    return unquote(PurePosixPath(path).name) if path else ""
