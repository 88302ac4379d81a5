"""Health check route."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from card_recommender import __version__

router = APIRouter()


@router.get("/api/health")
def health_check() -> dict[str, Any]:
    return {"status": "ok", "version": __version__}
