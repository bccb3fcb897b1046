# utils/api.py
from __future__ import annotations

import os
import time
import requests
import random
import threading
from typing import Dict, Any, Optional, List
from urllib.parse import quote, urljoin

from logging_setup import get_logger
from models import AssetPayload

# --- Tunables ---------------------------------------------------------------
DEFAULT_TIMEOUT: tuple[float, float] = (5, 30)  # (connect, read) seconds
USER_AGENT = "KontentArticleImport/1.0 (+https://example.org)"  # customize
MANAGEMENT_ROOT = os.getenv("KONTENT_MANAGEMENT_URL") or "https://manage.kontent.ai/v2"
DELIVERY_ROOT = os.getenv("KONTENT_DELIVERY_URL") or "https://deliver.kontent.ai"
CONTINUATION_HEADER = "X-Continuation"

# Allow overrides via env (e.g., KONTENT_HTTP_TIMEOUT="10,300")
_to = os.getenv("KONTENT_HTTP_TIMEOUT")
if _to:
    try:
        parts = [float(p.strip()) for p in _to.split(",")]
        if len(parts) == 2:
            DEFAULT_TIMEOUT = (parts[0], parts[1])  # type: ignore[assignment]
    except ValueError:
        pass

log = get_logger(stage="api")


class KontentAPI:
    """
    Retry behaviour for the Kontent.ai REST endpoints.

    requests.Session is not thread-safe, so each thread that uses the client
    (import_folder runs files on a pool) gets its own session built from
    `self.headers`.
    """

    def __init__(self, api_root: str) -> None:
        self.api_root = api_root.rstrip("/") + "/"
        self.headers: Dict[str, str] = {"User-Agent": USER_AGENT}
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        s = getattr(self._local, "session", None)
        if s is None:
            s = requests.Session()
            s.headers.update(self.headers)
            self._local.session = s
        return s

    def _full_url(self, endpoint: str) -> str:
        ep = (endpoint or "").strip()
        if ep.startswith("http://") or ep.startswith("https://"):
            return ep
        return urljoin(self.api_root, ep.lstrip("/"))

    # Basic retry/backoff for 429/5xx + timeouts
    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        max_attempts = 4
        delay = 1.0
        for attempt in range(1, max_attempts + 1):
            try:
                resp = self.session.request(method, url, timeout=DEFAULT_TIMEOUT, **kwargs)

                if resp.status_code == 429 and attempt < max_attempts:
                    retry_after = float(resp.headers.get("Retry-After", delay))
                    jitter = random.uniform(0, 0.25 * retry_after)
                    wait_time = retry_after + jitter
                    log.warning(
                        "Rate limited: 429 received. Retrying after %.2fs (attempt %s/%s)",
                        wait_time, attempt, max_attempts,
                        extra={"url": url, "retry_after": retry_after},
                    )
                    time.sleep(wait_time)
                    continue

                resp.raise_for_status()
                return resp

            except requests.HTTPError as e:
                status = getattr(e.response, "status_code", None)
                if status and status >= 500 and attempt < max_attempts:
                    jitter = random.uniform(0, 0.25 * delay)
                    wait_time = delay + jitter
                    log.warning(
                        "Server error %s. Retrying after %.2fs (attempt %s/%s)",
                        status, wait_time, attempt, max_attempts,
                        extra={"url": url},
                    )
                    time.sleep(wait_time)
                    delay *= 2
                    continue
                raise

            except (requests.ConnectionError, requests.Timeout):
                if attempt < max_attempts:
                    jitter = random.uniform(0, 0.25 * delay)
                    wait_time = delay + jitter
                    log.warning(
                        "Connection/timeout error. Retrying after %.2fs (attempt %s/%s)",
                        wait_time, attempt, max_attempts,
                        extra={"url": url},
                    )
                    time.sleep(wait_time)
                    delay *= 2
                    continue
                raise
        raise requests.HTTPError(f"request to {url} failed after {max_attempts} attempts")

    @staticmethod
    def _json_or_empty(resp: requests.Response) -> dict:
        """
        Return parsed JSON if the response looks like JSON; otherwise {}.
        Safely handles 204, empty bodies, and malformed JSON.
        """
        if resp.status_code == 204 or not resp.content:
            return {}
        ctype = resp.headers.get("Content-Type", "")
        if "json" in ctype.lower():
            try:
                return resp.json()
            except ValueError:
                return {}
        return {}


class ManagementAPI(KontentAPI):
    """Write side: Management API v2, one project per client."""

    def __init__(self, project_id: str | None, api_key: str | None, *, root: str | None = None) -> None:
        if not project_id or not api_key:
            raise ValueError("ManagementAPI project_id and api_key are required (check KONTENT_PROJECT_ID / KONTENT_MANAGEMENT_KEY)")
        super().__init__(f"{(root or MANAGEMENT_ROOT).rstrip('/')}/projects/{project_id}")
        self.project_id = project_id
        self.headers["Authorization"] = f"Bearer {api_key}"

    def post_json(self, endpoint: str, *, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = self._request("POST", self._full_url(endpoint), json=payload)
        return self._json_or_empty(r)

    def put_json(self, endpoint: str, *, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        r = self._request("PUT", self._full_url(endpoint), json=payload)
        return self._json_or_empty(r)

    # ---- Kontent-specific helpers -----------------------------------------

    def upload_binary_file(self, asset: AssetPayload) -> Dict[str, Any]:
        """
        Upload raw bytes; returns the file reference {"id": ..., "type": "internal"}
        that add_asset() expects.
        """
        url = self._full_url(f"files/{quote(asset.filename, safe='')}")
        r = self._request(
            "POST",
            url,
            data=asset.binary_data,
            headers={
                "Content-Type": asset.content_type,
                "Content-Length": str(asset.content_length),
            },
        )
        return self._json_or_empty(r)

    def add_asset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.post_json("assets", payload=data)

    def add_content_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.post_json("items", payload=data)

    def upsert_language_variant(
        self,
        item_codename: str,
        language_codename: str,
        elements: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """PUT the variant's element values, addressed by element codename."""
        endpoint = (
            f"items/codename/{quote(item_codename, safe='')}"
            f"/variants/codename/{quote(language_codename, safe='')}"
        )
        return self.put_json(endpoint, payload={"elements": elements})

    def publish_language_variant(self, item_id: str, language_id: str) -> None:
        """Publish now (no scheduling payload)."""
        self._request("PUT", self._full_url(f"items/{item_id}/variants/{language_id}/publish"))


class DeliveryAPI(KontentAPI):
    """Read side: Delivery API, used only for the items feed."""

    def __init__(self, project_id: str | None, *, root: str | None = None) -> None:
        if not project_id:
            raise ValueError("DeliveryAPI project_id is required (check KONTENT_PROJECT_ID)")
        super().__init__(f"{(root or DELIVERY_ROOT).rstrip('/')}/{project_id}")
        self.project_id = project_id

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET with transparent continuation paging.
        - Pages are fetched while the response carries an X-Continuation header.
        - `items` from every page are combined into the returned object.
        """
        url = self._full_url(endpoint)
        headers: Dict[str, str] = {}
        combined: Dict[str, Any] = {}
        items: List[Dict[str, Any]] = []

        while True:
            r = self._request("GET", url, params=params, headers=headers)
            data = r.json()
            if not isinstance(data, dict):
                return {"items": items}
            page_items = data.get("items")
            if not isinstance(page_items, list):
                return data  # not a listing; no paging
            items.extend(page_items)
            combined.update({k: v for k, v in data.items() if k != "items"})

            token = r.headers.get(CONTINUATION_HEADER)
            if not token:
                break
            headers = {CONTINUATION_HEADER: token}

        combined["items"] = items
        return combined


__all__ = [
    "KontentAPI",
    "ManagementAPI",
    "DeliveryAPI",
    "DEFAULT_TIMEOUT",
    "USER_AGENT",
    "MANAGEMENT_ROOT",
    "DELIVERY_ROOT",
    "CONTINUATION_HEADER",
]
