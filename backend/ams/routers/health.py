"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from ams.core.config import settings

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "app": settings.APP_NAME}
