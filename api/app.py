# -*- coding: utf-8 -*-
"""
Busload FastAPI Application
"""
import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from api.rate_limit import bucket_for, create_backend, limits_from_env, rate_key

from api.dependencies import registry
from api.routers import config, crowd, reports

VERSION = "1.0.0"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """IP별 분당 요청 제한 미들웨어 (read / report 버킷 분리)"""
    def __init__(self, app, limits=None):
        super().__init__(app)
        self.limits = limits or limits_from_env()
        self.backend = create_backend()

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket = bucket_for(request.method, request.url.path)

        if await self.backend.is_rate_limited(
            rate_key(client_ip, bucket), self.limits[bucket], window=60
        ):
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Please retry in a minute."}
            )

        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry.load()
    cfg = registry.get_config()
    logging.info(
        "Busload estimator loaded (store=%s, capacity=%d, tau=%.1f min)",
        type(registry.get_store()).__name__, cfg.capacity, cfg.tau_min,
    )
    yield


app = FastAPI(title="Busload", version=VERSION, lifespan=lifespan)


allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(RateLimitMiddleware)

app.include_router(crowd.router, prefix="/api", tags=["crowd"])
app.include_router(reports.router, prefix="/api", tags=["reports"])
app.include_router(config.router, prefix="/api", tags=["config"])


@app.get(
    "/health",
    summary="서비스 상태 확인",
    description="Whether the estimator is loaded and the report store answers.",
    response_description="status(healthy/degraded/unavailable), version, store",
)
async def health():
    try:
        store = registry.get_store()
    except RuntimeError:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "detail": "Estimator not loaded"},
        )
    ping = getattr(store, "ping", None)
    reachable = bool(ping()) if ping is not None else True
    return {
        "status": "healthy" if reachable else "degraded",
        "version": VERSION,
        "store": type(store).__name__,
    }
