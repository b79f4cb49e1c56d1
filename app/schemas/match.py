from datetime import date, datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


class MatchedResult(BaseModel):
    status: Literal["MATCHED"] = "MATCHED"
    match_id: UUID
    communication_link: str
    partner_id: UUID
    partner_name: str
    partner_role: str
    project_title: Optional[str] = None
    project_description: Optional[str] = None
    project_start_date: Optional[date] = None
    project_end_date: Optional[date] = None


class WaitingResult(BaseModel):
    status: Literal["WAITING"] = "WAITING"
    waiting_since: datetime
    queue_position: int  # advisory, not a reservation


FindMatchResult = Annotated[
    Union[MatchedResult, WaitingResult], Field(discriminator="status")
]


class MatchCompleteRequest(BaseModel):
    artifact_ref: Optional[str] = Field(
        default=None,
        max_length=500,
        description="GitHub repository URL of the finished project",
    )


class ReviewSummary(BaseModel):
    score: int
    feedback: str
    strengths: list[str] = []
    missing_elements: list[str] = []
    outcome: str


class CompletionSummary(BaseModel):
    match_id: UUID
    status: str
    completed_at: datetime
    artifact_ref: Optional[str] = None
    review: Optional[ReviewSummary] = None
