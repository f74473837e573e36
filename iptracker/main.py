from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import Response
from starlette.middleware.cors import CORSMiddleware

from .config import settings
from .logging_utils import configure_logging
from .metrics import CONTENT_TYPE_LATEST, REQUESTS_TOTAL, TRACKER_DISTINCT_KEYS, generate_latest
from .schemas import HitRequest, HitResponse, ResetResponse, TopEntry, TopResponse
from .tracker import TopNTracker

configure_logging()
logger = logging.getLogger("iptracker.app")

app = FastAPI(title="IP Tracker API", version="1.0.0")
api_router = APIRouter(prefix="/api")

tracker = TopNTracker(limit=settings.top_n)

# Probes and scrapes would otherwise dominate the ranking.
_UNTRACKED_PATHS = {"/metrics", "/api/health"}


@app.on_event("startup")
async def startup_event() -> None:
    logger.info(
        "Tracker service startup complete",
        extra={"event": "startup", "limit": tracker.limit},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _client_ip_from_request(request: Request) -> str:
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _record(key: str) -> None:
    tracker.record_hit(key)
    TRACKER_DISTINCT_KEYS.set(len(tracker))


@app.middleware("http")
async def hit_tracking_middleware(request: Request, call_next):
    path = request.url.path
    method = request.method

    if path not in _UNTRACKED_PATHS:
        _record(_client_ip_from_request(request))

    response = await call_next(request)
    route = request.scope.get("route")
    # Label by route template; raw paths embed keys.
    route_path = getattr(route, "path", "unmatched")
    REQUESTS_TOTAL.labels(method=method, path=route_path, status=str(response.status_code)).inc()
    return response


@api_router.get("/")
async def root() -> dict[str, str]:
    return {"message": "IP Tracker API"}


@api_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@api_router.get("/top", response_model=TopResponse)
async def top(limit: Optional[int] = Query(default=None, ge=1)) -> TopResponse:
    if limit is not None and limit > tracker.limit:
        raise HTTPException(status_code=422, detail=f"limit must be between 1 and {tracker.limit}")

    entries = tracker.top_n()
    if limit is not None:
        entries = entries[:limit]
    return TopResponse(
        limit=tracker.limit,
        size=len(entries),
        entries=[TopEntry(key=str(key), count=count) for key, count in entries],
    )


@api_router.get("/counts/{key}", response_model=HitResponse)
async def key_count(key: str) -> HitResponse:
    return HitResponse(key=key, count=tracker.count(key), ranked=key in tracker)


@api_router.post("/hits", response_model=HitResponse)
async def record_hit(payload: HitRequest) -> HitResponse:
    _record(payload.key)
    return HitResponse(key=payload.key, count=tracker.count(payload.key), ranked=payload.key in tracker)


@api_router.post("/reset", response_model=ResetResponse)
async def reset(x_admin_token: Optional[str] = Header(default=None)) -> ResetResponse:
    if settings.admin_token and x_admin_token != settings.admin_token:
        logger.warning("Rejected tracker reset", extra={"event": "reset_denied", "status": 403})
        raise HTTPException(status_code=403, detail="Invalid admin token")

    cleared = len(tracker)
    tracker.reset()
    TRACKER_DISTINCT_KEYS.set(0)
    return ResetResponse(cleared_keys=cleared)


@app.get("/metrics")
async def metrics() -> Response:
    if not settings.enable_prometheus_metrics:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(api_router)
