"""FastAPI entrypoint for the grading core."""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from codejudge.common.deps import get_current_user
from codejudge.core.config import get_settings
from codejudge.features.compiler.service import compile_gate
from codejudge.features.submissions.endpoints import router as submissions_router

_settings = get_settings()
logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title=_settings.app_name, debug=_settings.debug)
_START_TIME = datetime.now(timezone.utc)


def _split_env_csv(name: str, default: str = ""):
    raw = os.getenv(name, default)
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_split_env_csv("ALLOW_ORIGINS", "http://localhost:5173,http://localhost:3000"),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    logger = logging.getLogger("request")
    t0 = perf_counter()
    logger.info("request.start", extra={"request_id": req_id, "path": request.url.path, "method": request.method})
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info(
        "request.end",
        extra={
            "request_id": req_id,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": int((perf_counter() - t0) * 1000),
        },
    )
    return response


protected_deps = [Depends(get_current_user)]
app.include_router(submissions_router, dependencies=protected_deps)


@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["meta"], summary="Liveness / readiness probe")
async def healthz() -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    judge0_ready = _settings.judge0_configured
    store_ready = bool(_settings.supabase_url and _settings.supabase_key)
    return {
        "status": "ok" if judge0_ready and store_ready else "degraded",
        "time_utc": now.isoformat(),
        "uptime_seconds": round((now - _START_TIME).total_seconds(), 2),
        "version": os.getenv("APP_VERSION", "dev"),
        "environment": "debug" if _settings.debug else "prod",
        "components": {
            "judge0": "configured" if judge0_ready else "missing-config",
            "store": "configured" if store_ready else "missing-config",
            "local_compile": "enabled" if compile_gate.enabled else "disabled",
        },
    }


@app.on_event("startup")
async def _sweep_compile_scratch():
    removed = compile_gate.sweep_stale_scratch()
    logging.getLogger("startup").info("compiler.startup_sweep removed=%d", removed)
