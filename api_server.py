"""FastAPI transport for the upload tracker."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from config.settings import CORS_ORIGINS, LOG_LEVEL, PORT, check_credentials
from tracker.service import DEFAULT_DAYS, TrackerService

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "invalid_input": 400,
    "not_found": 404,
    "quota_exceeded": 429,
    "upstream": 502,
    "provider": 502,
    "config": 500,
    "internal": 500,
}


class IngestInput(BaseModel):
    handle: Optional[str] = Field(default=None, description="Channel @handle or search term.")
    channel_id: Optional[str] = Field(default=None, alias="channelId", description="Canonical channel ID (UC...).")
    since: Optional[str] = Field(default=None, description="ISO date or RFC3339 lower bound for publish time.")
    backfill: bool = Field(default=False, description="Ignore the cursor and walk back to `since`.")

    model_config = {"populate_by_name": True}


class InsightInput(BaseModel):
    days: int = Field(default=DEFAULT_DAYS)
    rows: Optional[List[Dict[str, Any]]] = Field(default=None)
    metrics: Optional[Dict[str, Any]] = Field(default=None, description="Metrics payload whose `rows` are used.")
    handle: Optional[str] = Field(default=None)
    channel_id: Optional[str] = Field(default=None, alias="channelId")

    model_config = {"populate_by_name": True}


def _respond(payload: Dict[str, Any]) -> JSONResponse:
    error = payload.get("error")
    if isinstance(error, dict):
        status = STATUS_BY_KIND.get(error.get("kind"), 500)
        return JSONResponse(status_code=status, content={"ok": False, "error": error})
    return JSONResponse(content=payload)


def build_app(service: Optional[TrackerService] = None, allow_origins: Optional[List[str]] = None) -> FastAPI:
    """Construct the FastAPI app around a ``TrackerService``."""
    tracker = service or TrackerService()
    origins = allow_origins if allow_origins is not None else CORS_ORIGINS
    app = FastAPI(title="YouTube upload tracker")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "YT API running"

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True, "time": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/yt/resolve")
    def resolve(handle: str = Query(default="")) -> JSONResponse:
        return _respond(tracker.resolve(handle))

    @app.post("/api/yt/ingest")
    def ingest(body: IngestInput) -> JSONResponse:
        return _respond(tracker.ingest(body.channel_id or body.handle, since=body.since, backfill=body.backfill))

    @app.get("/api/yt/metrics-by-handle")
    def metrics_by_handle(
        days: int = Query(default=DEFAULT_DAYS),
        handle: Optional[str] = Query(default=None),
        channel_id: Optional[str] = Query(default=None, alias="channelId"),
    ) -> JSONResponse:
        return _respond(tracker.channel_metrics(channel_id or handle, days=days))

    @app.get("/api/yt/metrics-by-query")
    def metrics_by_query(q: str = Query(default=""), days: int = Query(default=DEFAULT_DAYS)) -> JSONResponse:
        return _respond(tracker.keyword_metrics(q, days=days))

    @app.post("/api/yt/insight")
    def insight(body: InsightInput) -> JSONResponse:
        rows = None
        if body.metrics and isinstance(body.metrics.get("rows"), list):
            rows = body.metrics["rows"]
        elif body.rows:
            rows = body.rows
        return _respond(tracker.insight(rows=rows, handle_or_id=body.channel_id or body.handle, days=body.days))

    return app


def main() -> None:
    """Main entry point used by `python3 api_server.py`."""
    for problem in check_credentials():
        logger.warning("[config] %s", problem)
    logger.info("Starting upload tracker API on port %s...", PORT)
    uvicorn.run(build_app(), host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL)
    main()
