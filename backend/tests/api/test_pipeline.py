"""Dispatch Pipeline — end-to-end tests through the FastAPI app.

Tests cover:
    - /health answers even when a route group failed to load
    - Unmatched and unloaded prefixes → 404 with path and method
    - Framework 404s report the same path (with query string) as dispatch 404s
    - Route group failures → finalizer (declared status or 500, no stack in production)
    - Development mode adds error and stack diagnostics
    - Body normalization: parsed JSON/form next to byte-identical raw body
    - 400 for malformed JSON, 413 over the ceiling, group never invoked
    - OPTIONS preflight short-circuits before the registry
    - CORS headers on success, error and 404 responses
"""

import json
import logging

from fastapi import HTTPException

from gateway.api.pipeline import create_app
from gateway.core.route_registry import RouteRegistry
from gateway.core.gateway_config import GatewayConfig

from tests.api.fake_groups import RecordingGroup, build_config

ALLOWED_ORIGIN = "http://localhost:3000"
DENIED_ORIGIN = "https://evil.example.com"


# ─── /health ─────────────────────────────────────────────────────

async def test_health_returns_ok(client):
    res = await client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "OK"
    assert body["message"] == "Fal Platform Backend is running"
    assert body["version"] == "1.0.0"
    assert body["environment"] == "production"
    assert body["timestamp"]


async def test_health_survives_failed_route_group(client, gateway_config):
    assert [e.prefix for e in gateway_config.registry.failed] == ["/api/admin"]
    res = await client.get("/health")
    assert res.status_code == 200


async def test_loaded_groups_survive_failed_route_group(client):
    res = await client.post("/api/auth/login", json={"email": "a@b.c"})
    assert res.status_code == 200
    assert res.json()["group"] == "auth"


# ─── 404 ─────────────────────────────────────────────────────────

async def test_unknown_route_returns_404_with_path_and_method(client):
    res = await client.post("/api/unknown")
    assert res.status_code == 404
    assert res.json() == {
        "success": False,
        "message": "API route not found",
        "path": "/api/unknown",
        "method": "POST",
    }


async def test_unloaded_group_behaves_like_unregistered_path(client):
    res = await client.get("/api/admin/users")
    assert res.status_code == 404
    assert res.json()["path"] == "/api/admin/users"
    assert res.json()["method"] == "GET"


async def test_non_get_health_falls_through_to_404(client):
    res = await client.delete("/health")
    assert res.status_code == 404
    assert res.json()["method"] == "DELETE"


async def test_framework_404_reports_path_with_query_like_dispatch(
    gateway_config, make_client,
):
    app = create_app(gateway_config)

    async def retired():
        raise HTTPException(status_code=404)

    app.add_api_route("/api/retired", retired, methods=["GET"])
    app.router.routes.insert(0, app.router.routes.pop())
    async with make_client(app) as client:
        framework = await client.get("/api/retired?page=2")
        dispatched = await client.get("/api/unknown?page=2")
    assert framework.status_code == 404
    assert framework.json()["path"] == "/api/retired?page=2"
    assert dispatched.json()["path"] == "/api/unknown?page=2"


# ─── Dispatch ────────────────────────────────────────────────────

async def test_group_receives_prefix_and_sub_path(client, groups):
    res = await client.get("/api/fortune-limits/check")
    body = res.json()
    assert body["group"] == "fortune-limits"
    assert body["prefix"] == "/api/fortune-limits"
    assert body["sub_path"] == "/check"


async def test_group_mounted_at_exact_prefix_gets_root_sub_path(client):
    res = await client.get("/api/fortune")
    assert res.json()["sub_path"] == "/"


async def test_group_response_object_passes_through(client):
    res = await client.post("/api/rituals/create", json={})
    assert res.status_code == 201
    assert res.json() == {"success": True, "created": True}


# ─── Handler failures ────────────────────────────────────────────

async def test_handler_error_without_status_is_500_without_stack(client):
    res = await client.post("/api/coins/spend", json={"amount": 100})
    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "insufficient balance"}


async def test_handler_error_with_declared_status_is_used(client):
    res = await client.post("/api/rituals/paid", json={})
    assert res.status_code == 402
    assert res.json() == {"success": False, "message": "ritual requires coins"}


async def test_development_mode_adds_diagnostics(groups, make_client):
    config = build_config(groups, debug=True, environment="development")
    async with make_client(create_app(config)) as client:
        res = await client.post("/api/coins/spend", json={})
    body = res.json()
    assert res.status_code == 500
    assert body["success"] is False
    assert body["error"] == "insufficient balance"
    assert "InsufficientBalance" in body["stack"]


async def test_handler_failure_is_logged(client, caplog):
    with caplog.at_level(logging.ERROR, logger="gateway.api.finalizer"):
        await client.post("/api/coins/spend", json={})
    assert any("insufficient balance" in r.getMessage() for r in caplog.records)


# ─── Body normalization ──────────────────────────────────────────

async def test_json_body_parsed_and_raw_bytes_preserved(make_client):
    auth = RecordingGroup("auth")
    config = build_config({"/api/auth": lambda: auth})
    raw = b'{ "event":  "payment.succeeded",\n  "amount": 250 }'
    async with make_client(create_app(config)) as client:
        res = await client.post(
            "/api/auth/webhook", content=raw,
            headers={"content-type": "application/json"},
        )
    assert res.status_code == 200
    received = auth.calls[0]
    assert received.body == {"event": "payment.succeeded", "amount": 250}
    assert received.raw_body == raw


async def test_form_body_parsed(make_client):
    auth = RecordingGroup("auth")
    config = build_config({"/api/auth": lambda: auth})
    async with make_client(create_app(config)) as client:
        await client.post(
            "/api/auth/login", content=b"user[email]=a%40b.c&remember=1",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )
    assert auth.calls[0].body == {"user": {"email": "a@b.c"}, "remember": "1"}


async def test_unknown_content_type_keeps_raw_bytes_only(make_client):
    auth = RecordingGroup("auth")
    config = build_config({"/api/auth": lambda: auth})
    async with make_client(create_app(config)) as client:
        await client.post(
            "/api/auth/avatar", content=b"\x89PNG",
            headers={"content-type": "image/png"},
        )
    assert auth.calls[0].body is None
    assert auth.calls[0].raw_body == b"\x89PNG"


async def test_malformed_json_is_400_and_never_reaches_group(make_client):
    auth = RecordingGroup("auth")
    config = build_config({"/api/auth": lambda: auth})
    async with make_client(create_app(config)) as client:
        res = await client.post(
            "/api/auth/login", content=b'{"email": ',
            headers={"content-type": "application/json"},
        )
    assert res.status_code == 400
    assert res.json()["success"] is False
    assert res.json()["message"].startswith("Invalid JSON body")
    assert auth.calls == []


async def test_body_over_ceiling_is_413_and_never_reaches_group(make_client):
    auth = RecordingGroup("auth")
    config = build_config({"/api/auth": lambda: auth}, body_limit_bytes=16)
    async with make_client(create_app(config)) as client:
        res = await client.post(
            "/api/auth/login", content=json.dumps({"pad": "x" * 64}),
            headers={"content-type": "application/json"},
        )
    assert res.status_code == 413
    assert res.json() == {"success": False, "message": "Request entity too large"}
    assert auth.calls == []


# ─── Preflight & CORS ────────────────────────────────────────────

class _UnconsultableRegistry(RouteRegistry):
    def match(self, path):
        raise AssertionError("route registry consulted during preflight")


async def test_preflight_short_circuits_before_registry(make_client):
    registry = _UnconsultableRegistry.build([])
    app = create_app(GatewayConfig(registry=registry))
    async with make_client(app) as client:
        res = await client.options(
            "/api/auth/login",
            headers={
                "Origin": ALLOWED_ORIGIN,
                "Access-Control-Request-Method": "POST",
            },
        )
    assert res.status_code == 200
    assert res.content == b""
    assert res.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
    assert "POST" in res.headers["access-control-allow-methods"]
    assert res.headers["access-control-max-age"] == "86400"


async def test_allowed_origin_is_echoed_on_success(client):
    res = await client.get("/health", headers={"Origin": ALLOWED_ORIGIN})
    assert res.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
    assert res.headers["access-control-allow-credentials"] == "true"
    assert "Origin" in res.headers["vary"]


async def test_denied_origin_is_served_without_allow_origin(client):
    res = await client.get("/health", headers={"Origin": DENIED_ORIGIN})
    assert res.status_code == 200
    assert "access-control-allow-origin" not in res.headers
    assert res.headers["access-control-allow-methods"]


async def test_error_and_404_responses_keep_cors_headers(client):
    failed = await client.post(
        "/api/coins/spend", json={}, headers={"Origin": ALLOWED_ORIGIN},
    )
    missing = await client.get("/api/nope", headers={"Origin": ALLOWED_ORIGIN})
    for res in (failed, missing):
        assert res.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert res.headers["access-control-max-age"] == "86400"


async def test_wildcard_origin_rule_applies_to_vercel_previews(client):
    origin = "https://fal-web-git-main.vercel.app"
    res = await client.get("/health", headers={"Origin": origin})
    assert res.headers["access-control-allow-origin"] == origin


# ─── Logging ─────────────────────────────────────────────────────

async def test_every_request_is_logged_with_method_and_path(client, caplog):
    with caplog.at_level(logging.INFO, logger="gateway.api.middleware"):
        await client.post("/api/unknown")
    record = next(r for r in caplog.records if r.name == "gateway.api.middleware")
    assert record.method == "POST"
    assert record.path == "/api/unknown"
    assert "POST /api/unknown" in record.getMessage()
