# utils/assets.py
"""
Download a remote image (or any binary) into an AssetPayload ready for
ManagementAPI.upload_binary_file().
"""
from __future__ import annotations

import mimetypes
import time
from typing import Optional

import requests

from logging_setup import get_logger
from models import AssetPayload
from utils.api import DEFAULT_TIMEOUT, USER_AGENT
from utils.strings import filename_from_url

log = get_logger(stage="assets")

FALLBACK_FILENAME = "asset"
FALLBACK_CONTENT_TYPE = "application/octet-stream"


def _content_length(resp: requests.Response) -> int:
    raw = resp.headers.get("Content-Length")
    try:
        return int(raw) if raw is not None else len(resp.content)
    except (TypeError, ValueError):
        return len(resp.content)


def fetch_asset(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout=DEFAULT_TIMEOUT,
) -> AssetPayload:
    """
    GET `url` as binary. Network errors, timeouts and non-2xx statuses are
    raised to the caller.
    """
    log.debug("Downloading asset: %s", url)
    start = time.time()

    getter = session.get if session is not None else requests.get
    resp = getter(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
    resp.raise_for_status()

    filename = filename_from_url(url) or FALLBACK_FILENAME
    content_type = (
        resp.headers.get("Content-Type")
        or mimetypes.guess_type(filename)[0]
        or FALLBACK_CONTENT_TYPE
    )
    payload = AssetPayload(
        binary_data=resp.content,
        content_length=_content_length(resp),
        content_type=content_type,
        filename=filename,
    )
    log.debug(
        "Downloading asset completed: %s (%d bytes, %s) duration=%.2fs",
        url, payload.content_length, payload.content_type, time.time() - start,
    )
    return payload
