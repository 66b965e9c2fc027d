def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/does-not-exist")
    assert resp.status_code == 404
    body = resp.get_json()
    assert body["status"] == "error"
    assert body["code"] == 404


def test_unhandled_exception_is_hidden(client):
    resp = client.get("/__boom")
    assert resp.status_code == 500
    body = resp.get_json()
    assert "boom" not in body["message"]


def test_erpnext_failure_maps_to_bad_gateway(client):
    resp = client.get("/__erpnext_down")
    assert resp.status_code == 502
    assert resp.get_json()["message"] == "ERPNext error: Server error: upstream unavailable"


def test_security_headers(client):
    resp = client.get("/__ok")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in resp.headers["Access-Control-Expose-Headers"]
