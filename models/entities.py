"""
Domain records exchanged between the stores, the services and the API layer.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PRStatus(str, Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"


class TeamMember(BaseModel):
    user_id: str
    username: str
    is_active: bool = True


class Team(BaseModel):
    team_name: str
    members: List[TeamMember] = Field(default_factory=list)


class User(BaseModel):
    user_id: str
    username: str
    team_name: str
    is_active: bool


class PullRequest(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus = PRStatus.OPEN
    assigned_reviewers: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None


class PullRequestShort(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus


class ReviewerStat(BaseModel):
    reviewer_id: str
    review_count: int


class Reassignment(BaseModel):
    """One repaired reviewer edge; ``new_reviewer_id`` is None when the reviewer was removed"""
    pr_id: str
    old_reviewer_id: str
    new_reviewer_id: Optional[str] = None


class DeactivationReport(BaseModel):
    team_name: Optional[str] = None
    deactivated_users: List[str] = Field(default_factory=list)
    reassignments: List[Reassignment] = Field(default_factory=list)
