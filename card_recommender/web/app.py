"""FastAPI app for the card recommendation API."""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from card_recommender import __version__
from card_recommender.config import settings
from card_recommender.web.routes import admin, cards, health, themes, votes

app = FastAPI(title="Card Recommender API", version=__version__)
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=settings.cors_allows_credentials(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(cards.router)
app.include_router(themes.router)
app.include_router(votes.router)
app.include_router(admin.router)
