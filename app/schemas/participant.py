from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ParticipantCreate(BaseModel):
    external_id: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=100)
    surname: Optional[str] = Field(default=None, max_length=100)


class RoleUpdate(BaseModel):
    role: str  # FRONTEND / BACKEND, case-insensitive


class ParticipantResponse(BaseModel):
    id: UUID
    external_id: str
    display_name: str
    surname: Optional[str] = None
    role: Optional[str] = None
    waiting_since: Optional[datetime] = None


class ActiveMatchInfo(BaseModel):
    match_id: UUID
    communication_link: Optional[str] = None
    partner_name: Optional[str] = None
    partner_role: Optional[str] = None
    project_title: Optional[str] = None
    project_description: Optional[str] = None


class ParticipantStatus(BaseModel):
    id: UUID
    external_id: str
    display_name: str
    surname: Optional[str] = None
    role: Optional[str] = None
    waiting_since: Optional[datetime] = None
    has_active_match: bool
    active_match: Optional[ActiveMatchInfo] = None
