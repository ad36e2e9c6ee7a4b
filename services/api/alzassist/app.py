from __future__ import annotations
import time, uuid
from datetime import datetime, timezone
from typing import Callable

import structlog
from alzassist.config import settings
from alzassist.observability import init_logging, init_otel, instrument_app

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

init_logging("alzassist-api", settings.log_level)
otel_on = init_otel("alzassist-api", settings.otel_enabled, settings.alzassist_env)
log = structlog.get_logger("alzassist-api")

from alzassist.db import engine
from alzassist.errors import AppError
from alzassist.responses import fail
from alzassist.routers import alerts, connections, locations, profiles, records

REQ_COUNT = Counter("alzassist_http_requests_total", "HTTP requests", ["method", "route", "status"])
REQ_LAT = Histogram("alzassist_http_request_seconds", "Request latency", ["route"])

app = FastAPI(title="AlzAssist API", version="1.0.0", redirect_slashes=False)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if otel_on:
    try:
        instrument_app(app, engine())
    except Exception as e:
        log.warning("otel_instrument_failed", error=str(e))

def _route_label(request: Request) -> str:
    # route template, not the raw path, so patient ids do not explode label cardinality
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"

@app.middleware("http")
async def request_mw(request: Request, call_next: Callable):
    rid = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(request_id=rid)
    start = time.time()
    try:
        response: Response = await call_next(request)
    finally:
        REQ_LAT.labels(route=_route_label(request)).observe(time.time() - start)
        structlog.contextvars.unbind_contextvars("request_id")
    response.headers["X-Request-Id"] = rid
    REQ_COUNT.labels(method=request.method, route=_route_label(request), status=str(response.status_code)).inc()
    return response

@app.exception_handler(AppError)
async def app_error(request: Request, exc: AppError):
    return fail(exc.status_code, exc.message)

@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return fail(400, message)

@app.exception_handler(StarletteHTTPException)
async def http_exc(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return fail(404, "Route not found")
    return fail(exc.status_code, str(exc.detail))

@app.exception_handler(Exception)
async def unhandled(request: Request, exc: Exception):
    log.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=exc)
    return fail(500, "Internal server error")

@app.get("/health")
def health():
    return {"status": "ok", "service": "alzassist_api", "timestamp": datetime.now(timezone.utc).isoformat()}

@app.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

app.include_router(profiles.router)
app.include_router(connections.router)
app.include_router(locations.router)
app.include_router(alerts.router)
for r in (records.journals, records.medications, records.tasks, records.gallery, records.emergency):
    app.include_router(r)
