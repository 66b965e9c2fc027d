import json
from unittest.mock import MagicMock

import pytest

from app.services.erpnext import (
    ERPNextAPIError,
    ERPNextClient,
    ERPNextDuplicateError,
    ERPNextNotFoundError,
    ERPNextValidationError,
    client_from_config,
)


def _response(status=200, body=None, text=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.json.return_value = body or {}
    resp.text = text if text is not None else json.dumps(body or {})
    return resp


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


def test_auth_header_uses_token_scheme(session):
    ERPNextClient("https://erp.example.com/", "key", "secret", session=session)
    assert session.headers["Authorization"] == "token key:secret"


def test_get_brands_parses_records(session):
    session.get.return_value = _response(body={"data": [{"name": "Sol-Ark", "custom_show_in_website": 1, "extra": "x"}]})
    client = ERPNextClient("https://erp.example.com/", "k", "s", session=session)

    brands = client.get_brands()

    assert brands[0].name == "Sol-Ark"
    assert brands[0].custom_show_in_website == 1
    url = session.get.call_args[0][0]
    assert url == "https://erp.example.com/api/resource/Brand"


def test_get_items_paginates_with_count(session):
    session.get.return_value = _response(body={"data": [{"name": "A"}, {"name": "B"}]})
    session.post.return_value = _response(body={"message": 3})
    client = ERPNextClient("https://erp.example.com", "k", "s", session=session)

    page = client.get_items(page=2, limit=2)

    params = session.get.call_args.kwargs["params"]
    assert params["limit_start"] == 2
    assert params["limit_page_length"] == 2
    assert [i.name for i in page.data] == ["A", "B"]
    assert page.pagination.total == 3
    assert page.pagination.total_pages == 2
    assert session.post.call_args[0][0].endswith("/api/method/frappe.client.get_count")


def test_get_item_prices_filters_by_item_code(session):
    session.get.return_value = _response(body={"data": [
        {"item_code": "A", "price_list": "Standard Selling", "price_list_rate": 10},
    ]})
    client = ERPNextClient("https://erp.example.com", "k", "s", session=session)

    prices = client.get_item_prices("A")

    assert prices[0].price_list_rate == 10.0
    assert json.loads(session.get.call_args.kwargs["params"]["filters"]) == [["item_code", "=", "A"]]


@pytest.mark.parametrize("status,exc_type,error_type", [
    (404, ERPNextNotFoundError, "not_found"),
    (409, ERPNextDuplicateError, "duplicate"),
    (403, ERPNextAPIError, "permission"),
    (502, ERPNextAPIError, "server"),
    (400, ERPNextAPIError, "unknown"),
])
def test_http_errors_map_to_hierarchy(session, status, exc_type, error_type):
    session.get.return_value = _response(status=status, body={"message": "nope"})
    client = ERPNextClient("https://erp.example.com", "k", "s", session=session)

    with pytest.raises(exc_type) as exc:
        client.get_brands()
    assert exc.value.status_code == status
    assert exc.value.error_type == error_type


def test_server_messages_are_unwrapped(session):
    body = {"_server_messages": json.dumps([json.dumps({"message": "Item Code is mandatory"})])}
    session.get.return_value = _response(status=417, body=body)
    client = ERPNextClient("https://erp.example.com", "k", "s", session=session)

    with pytest.raises(ERPNextValidationError) as exc:
        client.get_item_groups()
    assert exc.value.message == "Item Code is mandatory"


def test_client_from_config():
    client = client_from_config({
        "ERPNEXT_URL": "https://erp.example.com/",
        "ERPNEXT_API_KEY": "k",
        "ERPNEXT_API_SECRET": "s",
        "ERPNEXT_TIMEOUT": 5,
    })
    assert client.base_url == "https://erp.example.com"
    assert client.timeout == 5.0
