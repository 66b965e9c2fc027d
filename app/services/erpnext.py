"""Thin read-only ERPNext REST client used by the storefront sync."""
import json
import logging
import math
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from app.schemas.erpnext import (
    ERPNextBrand,
    ERPNextItem,
    ERPNextItemGroup,
    ERPNextItemPrice,
    PaginatedItems,
    Pagination,
)

logger = logging.getLogger(__name__)

BRAND_FIELDS = [
    "name",
    "brand",
    "custom_cf_image_id",
    "custom_bc_custom_url",
    "custom_show_in_website",
]
# Custom item group fields are not readable by the API user; transforms default them
ITEM_GROUP_FIELDS = ["name", "item_group_name", "parent_item_group", "is_group"]
ITEM_PRICE_FIELDS = ["name", "item_code", "price_list", "price_list_rate", "currency", "uom"]


class ERPNextAPIError(Exception):
    def __init__(self, message: str, status_code: int, error_type: str = "unknown", raw_response: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.raw_response = raw_response

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "message": self.message,
            "type": self.error_type,
        }


class ERPNextNotFoundError(ERPNextAPIError):
    def __init__(self, doctype: str, name: str, raw_response: Optional[str] = None):
        super().__init__(f"{doctype} '{name}' not found", 404, "not_found", raw_response)


class ERPNextValidationError(ERPNextAPIError):
    def __init__(self, message: str, raw_response: Optional[str] = None):
        super().__init__(message, 417, "validation", raw_response)


class ERPNextDuplicateError(ERPNextAPIError):
    def __init__(self, doctype: str, name: str, raw_response: Optional[str] = None):
        super().__init__(f"{doctype} '{name}' already exists", 409, "duplicate", raw_response)


def _extract_message(text: str) -> str:
    """Pull the human readable message out of a Frappe error body."""
    try:
        body = json.loads(text)
    except ValueError:
        return text
    if not isinstance(body, dict):
        return text
    message = body.get("message") or text
    server_messages = body.get("_server_messages")
    if server_messages:
        try:
            first = json.loads(json.loads(server_messages)[0])
            message = first.get("message") or message
        except (ValueError, IndexError, TypeError, AttributeError):
            pass
    return str(message)


def raise_for_response(response: requests.Response, doctype: str = "Document", name: str = "unknown") -> None:
    if response.ok:
        return
    status = response.status_code
    text = response.text
    message = _extract_message(text)
    if status == 404:
        raise ERPNextNotFoundError(doctype, name, text)
    if status == 417:
        raise ERPNextValidationError(message, text)
    if status == 409 or "DuplicateEntryError" in message or "already exists" in message:
        raise ERPNextDuplicateError(doctype, name, text)
    if status == 403:
        raise ERPNextAPIError(f"Permission denied: {message}", status, "permission", text)
    if status >= 500:
        raise ERPNextAPIError(f"Server error: {message}", status, "server", text)
    raise ERPNextAPIError(message, status, "unknown", text)


class ERPNextClient:
    def __init__(self, base_url: str, api_key: str, api_secret: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"token {api_key}:{api_secret}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def _resource(self, doctype: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/api/resource/{quote(doctype)}"
        response = self.session.get(url, params=params, timeout=self.timeout)
        raise_for_response(response, doctype=doctype)
        return response.json().get("data", [])

    def _method(self, method: str, args: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/api/method/{method}"
        response = self.session.post(url, data=json.dumps(args or {}), timeout=self.timeout)
        raise_for_response(response)
        return response.json().get("message")

    def get_brands(self) -> List[ERPNextBrand]:
        rows = self._resource("Brand", {
            "fields": json.dumps(BRAND_FIELDS),
            "limit_page_length": 0,
        })
        return [ERPNextBrand.model_validate(row) for row in rows]

    def get_item_groups(self) -> List[ERPNextItemGroup]:
        rows = self._resource("Item Group", {
            "fields": json.dumps(ITEM_GROUP_FIELDS),
            "limit_page_length": 0,
        })
        return [ERPNextItemGroup.model_validate(row) for row in rows]

    def get_items(self, page: int = 1, limit: int = 50) -> PaginatedItems:
        rows = self._resource("Item", {
            "limit_start": (page - 1) * limit,
            "limit_page_length": limit,
            "fields": json.dumps(["*"]),
        })
        # List responses carry no total, Frappe needs a separate count call
        total = int(self._method("frappe.client.get_count", {"doctype": "Item", "filters": {}}) or 0)
        return PaginatedItems(
            data=[ERPNextItem.model_validate(row) for row in rows],
            pagination=Pagination(
                page=page,
                per_page=limit,
                total=total,
                total_pages=math.ceil(total / limit) if limit else 0,
            ),
        )

    def get_item_prices(self, item_code: str) -> List[ERPNextItemPrice]:
        rows = self._resource("Item Price", {
            "filters": json.dumps([["item_code", "=", item_code]]),
            "fields": json.dumps(ITEM_PRICE_FIELDS),
        })
        return [ERPNextItemPrice.model_validate(row) for row in rows]


def client_from_config(config) -> ERPNextClient:
    return ERPNextClient(
        config.get("ERPNEXT_URL", ""),
        config.get("ERPNEXT_API_KEY", ""),
        config.get("ERPNEXT_API_SECRET", ""),
        timeout=float(config.get("ERPNEXT_TIMEOUT", 30)),
    )
