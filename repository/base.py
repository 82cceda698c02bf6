"""
Store contract consumed by the services.

Every method picks up the executor bound by ``UnitOfWork`` from
``current_executor`` when one is present; otherwise the call commits on its own.
"""
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from models.entities import PullRequest, PullRequestShort, ReviewerStat, Team, User


# Executor of the transaction running in the current task, if any
current_executor: ContextVar[Optional[Any]] = ContextVar("current_executor", default=None)


class Executor(Protocol):
    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    async def close(self) -> None: ...


class Store(Protocol):
    async def begin(self) -> Executor: ...

    async def create_team_with_members(self, team: Team) -> Team: ...

    async def get_team_by_name(self, team_name: str) -> Team: ...

    async def get_user(self, user_id: str) -> User: ...

    async def set_user_active(self, user_id: str, is_active: bool) -> User: ...

    async def list_active_team_members_except(self, team_name: str, exclude: Iterable[str]) -> List[User]: ...

    async def deactivate_users(self, user_ids: Iterable[str]) -> None: ...

    async def create_pr_with_reviewers(self, pr: PullRequest, reviewer_ids: List[str]) -> PullRequest: ...

    async def get_pr(self, pr_id: str) -> PullRequest: ...

    async def mark_merged(self, pr_id: str, merged_at: datetime) -> PullRequest: ...

    async def reassign_reviewer(self, pr_id: str, old_user_id: str, new_user_id: str) -> PullRequest: ...

    async def remove_reviewer(self, pr_id: str, user_id: str) -> None: ...

    async def get_open_prs_by_reviewers(self, user_ids: Iterable[str]) -> Dict[str, List[str]]: ...

    async def list_assigned_to_user(self, user_id: str) -> List[PullRequestShort]: ...

    async def get_reviewer_stats(self) -> List[ReviewerStat]: ...
