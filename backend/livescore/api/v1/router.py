"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from livescore.api.v1.routes import athletes, events, live, search

api_router = APIRouter()

api_router.include_router(live.router, prefix="/live", tags=["Live"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(search.router, prefix="/search", tags=["Search"])
api_router.include_router(athletes.router, prefix="/athlete", tags=["Athletes"])
