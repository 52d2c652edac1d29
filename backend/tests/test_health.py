def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    database = ready.json()["database"]
    assert database["ok"] is True
    assert database["schema_ok"] is True
    assert database["missing_tables"] == []


def test_security_headers_and_size_limit(client):
    response = client.get("/api/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"

    oversized = client.post(
        "/api/auth/login",
        content=b"x" * 10,
        headers={"content-type": "application/json", "content-length": str(5_000_000)},
    )
    assert oversized.status_code == 413
    assert oversized.json()["code"] == "request_too_large"
