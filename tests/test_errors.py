import json

from starlette.requests import Request

from notesai.errors import ApiError, problem

ENVELOPE_KEYS = (
    "error",
    "code",
    "status",
    "title",
    "detail",
    "correlation_id",
    "details",
)


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/__nope__")
    assert r.status_code == 404
    assert r.headers["content-type"].startswith("application/problem+json")
    body = r.json()
    for k in ENVELOPE_KEYS:
        assert k in body
    assert body["code"] == "NOT_FOUND"


def test_validation_error_is_400(client):
    r = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "password123", "name": "X"},
    )
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert any("email" in e["field"] for e in body["details"]["errors"])


def test_missing_token_is_401(client):
    r = client.get("/api/notes")
    assert r.status_code == 401
    body = r.json()
    assert body["code"] == "UNAUTHORIZED"
    assert body["error"]


def test_correlation_id_echoed(client):
    r = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert r.status_code == 200
    assert r.headers["x-correlation-id"] == "abc-123"

    r = client.get("/__nope__", headers={"X-Correlation-ID": "abc-456"})
    assert r.json()["correlation_id"] == "abc-456"


def test_problem_shape():
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "path": "/test",
        "raw_path": b"/test",
        "query_string": b"",
        "headers": [],
        "server": ("testserver", 80),
    }
    exc = ApiError(429, "Slow down", details={"retryAfter": 12}, headers={"Retry-After": "12"})
    response = problem(Request(scope), exc.status, exc.message, exc.code, exc.details, exc.headers)

    assert response.status_code == 429
    assert response.headers["retry-after"] == "12"
    data = json.loads(response.body.decode("utf-8"))
    assert data["code"] == "RATE_LIMIT_EXCEEDED"
    assert data["error"] == "Slow down"
    assert data["title"] == "Too Many Requests"
    assert data["details"] == {"retryAfter": 12}
    assert data["correlation_id"]


def test_health_ready(client):
    r = client.get("/health/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}
