# utils/pagination.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

from utils.api import DeliveryAPI


def get_items(api: DeliveryAPI, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Thin wrapper that defers continuation paging to DeliveryAPI.get().
    Returns a list (empty if the server returned no `items` listing).
    """
    data = api.get(endpoint, params=params)
    items = data.get("items") if isinstance(data, dict) else None
    return items if isinstance(items, list) else []


def list_items_feed(api: DeliveryAPI, *, type_codename: str, language: str) -> List[Dict[str, Any]]:
    return get_items(api, "items-feed", {"system.type": type_codename, "language": language})


def element_value(item: Dict[str, Any], codename: str) -> Any:
    """Value of a Delivery item element, or None when the element is absent."""
    elements = item.get("elements") if isinstance(item, dict) else None
    if not isinstance(elements, dict):
        return None
    element = elements.get(codename)
    if not isinstance(element, dict):
        return None
    return element.get("value")
