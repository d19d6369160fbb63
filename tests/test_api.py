"""Tests for health, version endpoints, and the error envelope."""

from httpx import ASGITransport, AsyncClient


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "success", "message": "Service is healthy"}


async def test_security_headers(client):
    resp = await client.get("/health")
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"


async def test_version(client):
    resp = await client.get("/api/version")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["data"] == {"version": "1.0.0-test"}


async def test_version_details_requires_auth(client):
    resp = await client.get("/api/version/details")
    assert resp.status_code == 401
    body = resp.json()
    assert body["status"] == "error"
    assert body["message"] == "Authentication required"


async def test_version_details_with_test_header(client):
    resp = await client.get("/api/version/details", headers={"x-test-auth": "true"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["version"] == "1.0.0-test"
    assert data["environment"] == "test"
    assert "pythonVersion" in data
    assert "timestamp" in data


async def test_version_details_with_api_key(client, api_key):
    resp = await client.get(
        "/api/version/details", headers={"Authorization": f"Bearer {api_key}"}
    )
    assert resp.status_code == 200


async def test_unknown_route(client):
    resp = await client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {
        "status": "error",
        "message": "Can't find /api/nope on this server!",
    }


async def test_unexpected_error_hides_message_in_production(settings):
    from devdox.app import create_app

    prod = settings.model_copy(update={"env": "production"})
    application = create_app(prod)

    @application.get("/boom")
    async def boom():
        raise RuntimeError("internal detail")

    async with application.router.lifespan_context(application):
        transport = ASGITransport(app=application, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/boom")

    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "Something went wrong"}
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"


async def _request_many(settings, requests):
    """Run (method, path, kwargs) requests against a fresh app and return responses."""
    from devdox.app import create_app

    application = create_app(settings)
    responses = []
    async with application.router.lifespan_context(application):
        transport = ASGITransport(app=application)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            for method, path, kwargs in requests:
                responses.append(await c.request(method, path, **kwargs))
    return responses


async def test_rate_limit_on_api_routes(settings):
    limited = settings.model_copy(update={"rate_limit": "2 per minute"})
    responses = await _request_many(limited, [("GET", "/api/version", {})] * 3)
    assert [r.status_code for r in responses] == [200, 200, 429]
    assert responses[2].json() == {
        "status": "error",
        "message": "Too many requests, please try again later.",
    }
    assert int(responses[2].headers["retry-after"]) >= 0
    assert responses[2].headers["x-content-type-options"] == "nosniff"


async def test_rate_limit_skips_health(settings):
    limited = settings.model_copy(update={"rate_limit": "1 per minute"})
    responses = await _request_many(limited, [("GET", "/health", {})] * 3)
    assert [r.status_code for r in responses] == [200, 200, 200]


async def test_oversized_body_rejected(settings):
    body = {"label": "x", "provider_type": "github", "token_value": "a" * 20_000}
    (resp,) = await _request_many(
        settings,
        [("POST", "/api/git-tokens", {"json": body, "headers": {"x-test-auth": "true"}})],
    )
    assert resp.status_code == 413
    assert resp.json() == {"status": "error", "message": "Request body too large"}


async def test_app_error_envelope_status(client):
    resp = await client.get("/api/git-tokens/missing", headers={"x-test-auth": "true"})
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Git token not found"}


async def test_unexpected_error_in_development_shows_message(settings):
    from devdox.app import create_app

    application = create_app(settings.model_copy(update={"env": "development"}))

    @application.get("/api/boom")
    async def boom():
        raise RuntimeError("internal detail")

    async with application.router.lifespan_context(application):
        transport = ASGITransport(app=application, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/api/boom")

    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "internal detail"}
    assert resp.headers["referrer-policy"] == "no-referrer"
