# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
HTTP surface for user credential bundles.

Routes:
- ``POST /``: create a bundle (headers ``X-User-ID``, ``X-Service-Key``)
- ``GET /``: fetch a fresh bundle (same headers)
- ``GET /validate/{key}``: check a candidate against the bundle
  (header ``X-User-ID``)
- ``/ping``, ``/health``, ``/probe``: liveness and readiness
- ``/metrics``: Prometheus exposition
"""

import logging
import time
from typing import Any, Optional

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from keyservice.constants import HEADER_SERVICE_KEY, HEADER_USER_ID, Status
from keyservice.identity.models import CredentialBundle
from keyservice.observability.metrics import KeyServiceMetrics
from keyservice.services.credential_service import CredentialService

logger = logging.getLogger(__name__)

HTTP_STATUS: dict[Status, int] = {
    Status.OK: 200,
    Status.MISSING_SERVICE_KEY: 400,
    Status.MISSING_USER_ID: 400,
    Status.MISSING_COMPANY_ID: 400,
    Status.MISSING_KEY: 400,
    Status.INVALID_SERVICE_KEY: 401,
    Status.NOT_ALLOWED: 401,
    Status.NOT_FOUND: 404,
    Status.SYSTEM_ERROR: 500,
}


def _body(status: Status, bundle: Optional[CredentialBundle] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": status.value}
    if bundle is not None:
        body.update(
            user_service=bundle.user_service,
            hooks_service=bundle.hooks_service,
            company_service=bundle.company_service,
            billing_service=bundle.billing_service,
            permissions=bundle.permissions_service,
        )
    return body


def _respond(status: Status, bundle: Optional[CredentialBundle] = None) -> JSONResponse:
    return JSONResponse(status_code=HTTP_STATUS[status], content=_body(status, bundle))


def create_app(
    service: CredentialService,
    metrics: Optional[KeyServiceMetrics] = None,
) -> FastAPI:
    """Build the FastAPI application around a credential service."""
    app = FastAPI(title="keyservice")

    @app.middleware("http")
    async def observe_duration(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        if metrics is not None:
            # Route template, never the raw path: /validate/{key} embeds a credential.
            route = getattr(request.scope.get("route"), "path", "unmatched")
            metrics.observe_request("http", route, time.perf_counter() - started)
        return response

    @app.post("/")
    async def create_bundle(
        x_user_id: str = Header(default="", alias=HEADER_USER_ID),
        x_service_key: str = Header(default="", alias=HEADER_SERVICE_KEY),
    ) -> JSONResponse:
        result = await service.create_bundle(x_user_id, x_service_key)
        return _respond(result.status, result.bundle)

    @app.get("/")
    async def get_bundle(
        x_user_id: str = Header(default="", alias=HEADER_USER_ID),
        x_service_key: str = Header(default="", alias=HEADER_SERVICE_KEY),
    ) -> JSONResponse:
        result = await service.get_bundle(x_user_id, x_service_key)
        return _respond(result.status, result.bundle)

    @app.get("/validate/{key}")
    async def validate_key(
        key: str,
        x_user_id: str = Header(default="", alias=HEADER_USER_ID),
    ) -> JSONResponse:
        result = await service.validate_bundle_key(x_user_id, key)
        return _respond(result.status)

    @app.get("/ping")
    async def ping() -> PlainTextResponse:
        return PlainTextResponse(".")

    @app.get("/health")
    async def health() -> JSONResponse:
        healthy = await service.store.health_check()
        if not healthy:
            logger.warning("Health check failed: store unreachable")
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "ok" if healthy else "unavailable"},
        )

    @app.get("/probe")
    async def probe() -> JSONResponse:
        return JSONResponse(content={"status": "ok"})

    @app.get("/metrics")
    async def export_metrics() -> Response:
        if metrics is None:
            return Response(status_code=404)
        payload, content_type = metrics.render()
        return Response(content=payload, media_type=content_type)

    return app
