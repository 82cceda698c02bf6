from pydantic import BaseModel, Field
from typing import Annotated, List, Optional
from datetime import datetime

from models.entities import PullRequest, PullRequestShort, Reassignment, ReviewerStat, TeamMember


USER_ID_PATTERN = r"^u[0-9]+$"
PULL_REQUEST_ID_PATTERN = r"^pr-[0-9]+$"

UserId = Annotated[str, Field(pattern=USER_ID_PATTERN)]
PullRequestId = Annotated[str, Field(pattern=PULL_REQUEST_ID_PATTERN)]


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class TeamMemberRequest(BaseModel):
    user_id: UserId
    username: str = Field(min_length=1)
    is_active: bool


class TeamRequest(BaseModel):
    team_name: str = Field(min_length=1)
    members: List[TeamMemberRequest] = Field(min_length=1)


class TeamResponse(BaseModel):
    team_name: str
    members: List[TeamMember]


class TeamCreateResponse(BaseModel):
    team: TeamResponse


class UserResponse(BaseModel):
    user_id: str
    username: str
    team_name: str
    is_active: bool


class UserUpdateResponse(BaseModel):
    user: UserResponse


class SetIsActiveRequest(BaseModel):
    user_id: UserId
    is_active: bool


class PullRequestResponse(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: str
    assigned_reviewers: List[str]
    createdAt: Optional[datetime] = None
    mergedAt: Optional[datetime] = None

    @classmethod
    def from_entity(cls, pr: PullRequest) -> "PullRequestResponse":
        return cls(
            pull_request_id=pr.pull_request_id,
            pull_request_name=pr.pull_request_name,
            author_id=pr.author_id,
            status=pr.status.value,
            assigned_reviewers=sorted(pr.assigned_reviewers),
            createdAt=pr.created_at,
            mergedAt=pr.merged_at,
        )


class PullRequestCreateRequest(BaseModel):
    pull_request_id: PullRequestId
    pull_request_name: str = Field(min_length=1)
    author_id: UserId


class PullRequestCreateResponse(BaseModel):
    pr: PullRequestResponse


class PullRequestMergeRequest(BaseModel):
    pull_request_id: PullRequestId


class PullRequestMergeResponse(BaseModel):
    pr: PullRequestResponse


class PullRequestReassignRequest(BaseModel):
    pull_request_id: PullRequestId
    old_user_id: UserId


class PullRequestReassignResponse(BaseModel):
    pr: PullRequestResponse
    replaced_by: str


class GetReviewResponse(BaseModel):
    user_id: str
    pull_requests: List[PullRequestShort]


class MassDeactivateRequest(BaseModel):
    user_ids: List[UserId] = Field(min_length=1)


class BulkDeactivateRequest(BaseModel):
    team_name: str = Field(min_length=1)


class BulkDeactivateResponse(BaseModel):
    team_name: Optional[str] = None
    deactivated_users: List[str]
    reassignments: List[Reassignment]


class HealthResponse(BaseModel):
    status: str


StatsResponse = List[ReviewerStat]
