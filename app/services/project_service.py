"""
Sprintpair — Project assignment.

Binds one project template to a freshly created match.  Which template is
chosen is deliberately simple (uniform random over the catalog); when the
catalog is empty a built-in freestyle template is created on first use so that
matching never fails for lack of seed data.
"""

from __future__ import annotations

from datetime import date, timedelta

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.match import Match
from app.models.project import MatchProject, ProjectTemplate

logger = structlog.get_logger("sprintpair.project_service")

FREESTYLE_TITLE = "Freestyle Sprint"
FREESTYLE_DESCRIPTION = (
    "Agree on a small product idea together, split it into a frontend and a "
    "backend slice, and ship a working end-to-end demo with a README that "
    "explains how to run it."
)


class ProjectService:
    """Chooses and persists the project a match will work on."""

    def __init__(self, duration_days: int | None = None) -> None:
        settings = get_settings()
        self.duration_days = duration_days or settings.PROJECT_DURATION_DAYS

    async def assign_project(self, db: AsyncSession, match: Match) -> MatchProject:
        template = await self._pick_template(db)
        today = date.today()

        match_project = MatchProject(
            match_id=match.id,
            project_template_id=template.id,
            start_date=today,
            end_date=today + timedelta(days=self.duration_days),
        )
        match_project.template = template
        db.add(match_project)
        await db.flush()

        logger.info(
            "project_assigned",
            match_id=str(match.id),
            template=template.title,
            end_date=match_project.end_date.isoformat(),
        )
        return match_project

    async def _pick_template(self, db: AsyncSession) -> ProjectTemplate:
        stmt = select(ProjectTemplate).order_by(func.random()).limit(1)
        template = (await db.execute(stmt)).scalars().first()
        if template is not None:
            return template

        existing = await db.execute(
            select(ProjectTemplate).where(ProjectTemplate.title == FREESTYLE_TITLE)
        )
        template = existing.scalars().first()
        if template is None:
            template = ProjectTemplate(
                title=FREESTYLE_TITLE,
                description=FREESTYLE_DESCRIPTION,
            )
            db.add(template)
            await db.flush()
            logger.warning("project_catalog_empty", fallback=FREESTYLE_TITLE)
        return template
