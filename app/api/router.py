"""
Sprintpair — Main API Router

Aggregates all sub-routers under a single prefix so that ``app.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from app.api import matching, participants

router = APIRouter()

router.include_router(participants.router, prefix="/participants", tags=["Participants"])
router.include_router(matching.router, prefix="/matches", tags=["Matching"])
