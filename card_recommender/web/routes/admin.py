"""Administrative maintenance routes."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from card_recommender.database.engine import get_db
from card_recommender.engine import service
from card_recommender.web.schemas import AdminResult

router = APIRouter()


@router.post("/api/admin/themes/reset", response_model=AdminResult)
def reset_themes(card_id: Optional[str] = Query(None)) -> AdminResult:
    """Delete stored theme assignments so cards are classified again."""
    with get_db() as db:
        return AdminResult(removed=service.reset_themes(db, card_id))


@router.post("/api/admin/cache/cleanup", response_model=AdminResult)
def cleanup_cache() -> AdminResult:
    with get_db() as db:
        return AdminResult(removed=service.cleanup_cache(db))
