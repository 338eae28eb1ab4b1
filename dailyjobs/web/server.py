"""Async HTTP control surface for the scheduled jobs.

Routes per registered job::

    GET  /jobs/{job}/scheduler/status
    POST /jobs/{job}/scheduler/start
    POST /jobs/{job}/scheduler/stop
    POST /jobs/{job}/scheduler/trigger   body (optional): {"key": "2025-01-15"}

Uses aiohttp's AppRunner/TCPSite for non-blocking start/stop in the same
event loop as the schedulers. The trigger handler awaits the whole attempt;
callers must not time out before a slow task finishes.
"""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web

from dailyjobs.config import settings
from dailyjobs.scheduler.coordinator import ALREADY_RUNNING
from dailyjobs.web.registry import JobRegistry

logger = logging.getLogger(__name__)

REGISTRY_KEY = web.AppKey("registry", JobRegistry)


def _not_found(job: str) -> web.Response:
    logger.warning("Scheduler request rejected: unknown job=%s", job)
    return web.json_response(
        {"success": False, "message": f"Unknown job: {job}"}, status=404
    )


async def _health(request: web.Request) -> web.Response:
    """GET /health — basic liveness check."""
    return web.json_response({"status": "ok"})


async def _list_jobs(request: web.Request) -> web.Response:
    """GET /jobs — status of every registered job."""
    registry = request.app[REGISTRY_KEY]
    data = [registry.get(name).status().to_dict() for name in registry.names]
    return web.json_response({"success": True, "data": data})


async def _status(request: web.Request) -> web.Response:
    job = request.match_info["job"]
    engine = request.app[REGISTRY_KEY].get(job)
    if engine is None:
        return _not_found(job)
    return web.json_response({"success": True, "data": engine.status().to_dict()})


async def _start(request: web.Request) -> web.Response:
    job = request.match_info["job"]
    engine = request.app[REGISTRY_KEY].get(job)
    if engine is None:
        return _not_found(job)
    engine.start()
    return web.json_response(
        {"success": True, "message": "Scheduler started", "data": engine.status().to_dict()}
    )


async def _stop(request: web.Request) -> web.Response:
    job = request.match_info["job"]
    engine = request.app[REGISTRY_KEY].get(job)
    if engine is None:
        return _not_found(job)
    engine.stop()
    return web.json_response(
        {"success": True, "message": "Scheduler stopped", "data": engine.status().to_dict()}
    )


async def _trigger(request: web.Request) -> web.Response:
    """POST /jobs/{job}/scheduler/trigger — run an attempt now."""
    job = request.match_info["job"]
    engine = request.app[REGISTRY_KEY].get(job)
    if engine is None:
        return _not_found(job)

    key: str | None = None
    if request.can_read_body:
        try:
            payload: Any = await request.json()
        except ValueError:
            logger.warning("Trigger bad request: invalid JSON (job=%s)", job)
            return web.json_response(
                {"success": False, "message": "invalid JSON"}, status=400
            )
        if payload is not None:
            key = payload.get("key") if isinstance(payload, dict) else ""
            if key is not None and (not isinstance(key, str) or not key.strip()):
                logger.warning("Trigger bad request: invalid key (job=%s)", job)
                return web.json_response(
                    {"success": False, "message": "key must be a non-empty string"},
                    status=400,
                )

    logger.info("Manual trigger request received (job=%s, key=%s)", job, key)
    result = await engine.manual_trigger(key)

    if result.success:
        return web.json_response(
            {"success": True, "message": result.message, "data": result.to_dict()}
        )
    status = 409 if result.error_message == ALREADY_RUNNING else 500
    return web.json_response(
        {
            "success": False,
            "message": result.message,
            "willRetry": result.will_retry,
            "retryIn": result.retry_in,
        },
        status=status,
    )


def create_web_app(registry: JobRegistry) -> web.Application:
    """Build the aiohttp Application with routes for *registry*."""
    app = web.Application()
    app[REGISTRY_KEY] = registry
    app.router.add_get("/health", _health)
    app.router.add_get("/jobs", _list_jobs)
    app.router.add_get("/jobs/{job}/scheduler/status", _status)
    app.router.add_post("/jobs/{job}/scheduler/start", _start)
    app.router.add_post("/jobs/{job}/scheduler/stop", _stop)
    app.router.add_post("/jobs/{job}/scheduler/trigger", _trigger)
    return app


class ControlServer:
    """Manages the aiohttp server lifecycle."""

    def __init__(
        self, registry: JobRegistry, host: str | None = None, port: int | None = None
    ) -> None:
        self.host = host or settings.http_host
        self.port = port or settings.http_port
        self._registry = registry
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start listening for control requests."""
        self._runner = web.AppRunner(create_web_app(self._registry))
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(
            "Control server listening on %s:%d (jobs: %s)",
            self.host,
            self.port,
            self._registry.names or ["none registered"],
        )

    async def stop(self) -> None:
        """Shut down the server gracefully."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Control server stopped")
