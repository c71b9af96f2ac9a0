"""Metrics Core: per-service health aggregation over request telemetry."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings
from src.database import close_db, init_db
from src.middleware.api_key_auth import ApiKeyAuthMiddleware
from src.routes import metrics


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await close_db()


app = FastAPI(
    title="Metrics Core",
    description="Ingests per-request service telemetry and ranks per-service health summaries",
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(ApiKeyAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(metrics.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "metrics-core", "version": settings.api_version}
