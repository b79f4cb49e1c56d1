"""
Sprintpair — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from app.models.participant import Participant, Role
from app.models.match import Match, MatchParticipation, MatchStatus
from app.models.project import MatchProject, ProjectPromptContext, ProjectTemplate
from app.models.review import Review

__all__ = [
    "Participant",
    "Role",
    "Match",
    "MatchParticipation",
    "MatchStatus",
    "MatchProject",
    "ProjectPromptContext",
    "ProjectTemplate",
    "Review",
]
