"""Thin aiohttp.web front end for :class:`GsisLookupClient`.

Routes:
  - GET  /health      liveness probe
  - POST /lookup      ``{"lat": ..., "lng": ...}``
  - POST /lookup-zip  ``{"zip": "..."}``
"""

from __future__ import annotations

import argparse
import json
import logging
import secrets
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from aiohttp import web

from pygsis.client import GsisLookupClient
from pygsis.config import GsisConfig
from pygsis.models.result import ErrorKind, NormalizedZoneResult

_logger = logging.getLogger(__name__)

CONFIG_KEY: web.AppKey[GsisConfig] = web.AppKey("config", GsisConfig)
CLIENT_KEY: web.AppKey[GsisLookupClient] = web.AppKey("client", GsisLookupClient)

MAX_BODY_BYTES = 256 * 1024
_PROTECTED_PATHS = frozenset({"/lookup", "/lookup-zip"})

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _cors_headers(config: GsisConfig, origin: str | None) -> dict[str, str]:
    if not origin:
        return {}
    if config.allowed_origins and origin not in config.allowed_origins:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Vary": "Origin",
        "Access-Control-Allow-Headers": "Content-Type, X-API-Key",
        "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    }


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    headers = _cors_headers(request.app[CONFIG_KEY], request.headers.get("Origin"))
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=headers)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(headers)
        raise
    response.headers.update(headers)
    return response


@web.middleware
async def api_key_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    expected = request.app[CONFIG_KEY].api_key
    if expected and request.path in _PROTECTED_PATHS:
        provided = request.headers.get("X-API-Key", "")
        if not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            return web.json_response({"ok": False, "error": "Unauthorized"}, status=401)
    return await handler(request)


async def _read_body(request: web.Request) -> dict[str, Any] | None:
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _respond(result: NormalizedZoneResult) -> web.Response:
    status = 400 if result.error_kind == ErrorKind.VALIDATION else 200
    return web.json_response(result.to_response(), status=status)


def _bad_body() -> web.Response:
    return web.json_response({"success": False, "error": "request body must be a JSON object"}, status=400)


async def health(_request: web.Request) -> web.Response:
    return web.json_response({"ok": True})


async def lookup(request: web.Request) -> web.Response:
    body = await _read_body(request)
    if body is None:
        return _bad_body()
    result = await request.app[CLIENT_KEY].lookup_coordinate(body.get("lat"), body.get("lng"))
    return _respond(result)


async def lookup_zip(request: web.Request) -> web.Response:
    body = await _read_body(request)
    if body is None:
        return _bad_body()
    result = await request.app[CLIENT_KEY].lookup_postal_code(body.get("zip"))
    return _respond(result)


def create_app(config: GsisConfig, *, client: GsisLookupClient | None = None) -> web.Application:
    """Build the application; the lookup client lives as long as the app."""
    app = web.Application(
        middlewares=[cors_middleware, api_key_middleware],
        client_max_size=MAX_BODY_BYTES,
    )
    app[CONFIG_KEY] = config

    async def _client_ctx(app: web.Application) -> AsyncIterator[None]:
        async with client or GsisLookupClient(config) as active:
            app[CLIENT_KEY] = active
            yield

    app.cleanup_ctx.append(_client_ctx)
    app.router.add_get("/health", health)
    app.router.add_post("/lookup", lookup)
    app.router.add_post("/lookup-zip", lookup_zip)
    return app


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Relay GSIS zone valuations over HTTP.")
    parser.add_argument("--host", help="Bind address (default: GSIS_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Bind port (default: GSIS_PORT or 3000)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    overrides: dict[str, Any] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    config = GsisConfig.from_env(**overrides)

    _logger.info("GSIS lookup relay listening on %s:%d", config.host, config.port)
    web.run_app(create_app(config), host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
