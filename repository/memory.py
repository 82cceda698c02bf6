"""
In-memory store.

Reference implementation of the store contract used by tests and local runs.
A transaction works on a deep copy of the state and swaps it in on commit;
an ``asyncio.Lock`` held for the life of the transaction serialises writers.
"""
import asyncio
import copy
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from models.entities import (
    PRStatus, PullRequest, PullRequestShort, ReviewerStat, Team, TeamMember, User,
)
from repository.base import current_executor
from repository.errors import PRExists, PRNotFound, TeamExists, TeamNotFound, UserNotFound


@dataclass
class _UserRow:
    user_id: str
    username: str
    team_name: str
    is_active: bool


@dataclass
class _PRRow:
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus
    created_at: datetime
    merged_at: Optional[datetime] = None
    reviewers: Set[str] = field(default_factory=set)


@dataclass
class _State:
    teams: List[str] = field(default_factory=list)
    users: Dict[str, _UserRow] = field(default_factory=dict)
    prs: Dict[str, _PRRow] = field(default_factory=dict)


class _MemoryExecutor:
    def __init__(self, store: "InMemoryStore", state: _State):
        self.store = store
        self.state = state
        self._closed = False

    async def commit(self) -> None:
        self.store._state = self.state

    async def rollback(self) -> None:
        self.state = None

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.store._lock.release()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    def __init__(self):
        self._state = _State()
        self._lock = asyncio.Lock()

    async def begin(self) -> _MemoryExecutor:
        await self._lock.acquire()
        return _MemoryExecutor(self, copy.deepcopy(self._state))

    @asynccontextmanager
    async def _scope(self):
        """Yield the state to work on: the bound transaction's copy, or a private auto-committed one"""
        executor = current_executor.get()
        if isinstance(executor, _MemoryExecutor) and executor.store is self:
            yield executor.state
            return
        async with self._lock:
            state = copy.deepcopy(self._state)
            yield state
            self._state = state

    @staticmethod
    def _to_user(row: _UserRow) -> User:
        return User(user_id=row.user_id, username=row.username,
                    team_name=row.team_name, is_active=row.is_active)

    @staticmethod
    def _to_pr(row: _PRRow) -> PullRequest:
        return PullRequest(
            pull_request_id=row.pull_request_id,
            pull_request_name=row.pull_request_name,
            author_id=row.author_id,
            status=row.status,
            assigned_reviewers=sorted(row.reviewers),
            created_at=row.created_at,
            merged_at=row.merged_at,
        )

    @staticmethod
    def _get_pr_row(state: _State, pr_id: str) -> _PRRow:
        row = state.prs.get(pr_id)
        if row is None:
            raise PRNotFound(pr_id)
        return row

    # Teams

    async def create_team_with_members(self, team: Team) -> Team:
        async with self._scope() as state:
            if team.team_name in state.teams:
                raise TeamExists(team.team_name)
            state.teams.append(team.team_name)
            for member in team.members:
                state.users[member.user_id] = _UserRow(
                    user_id=member.user_id,
                    username=member.username,
                    team_name=team.team_name,
                    is_active=member.is_active,
                )
            return self._team_of(state, team.team_name)

    async def get_team_by_name(self, team_name: str) -> Team:
        async with self._scope() as state:
            if team_name not in state.teams:
                raise TeamNotFound(team_name)
            return self._team_of(state, team_name)

    @staticmethod
    def _team_of(state: _State, team_name: str) -> Team:
        members = sorted(
            (u for u in state.users.values() if u.team_name == team_name),
            key=lambda u: u.user_id,
        )
        return Team(
            team_name=team_name,
            members=[TeamMember(user_id=u.user_id, username=u.username, is_active=u.is_active) for u in members],
        )

    # Users

    async def get_user(self, user_id: str) -> User:
        async with self._scope() as state:
            row = state.users.get(user_id)
            if row is None:
                raise UserNotFound(user_id)
            return self._to_user(row)

    async def set_user_active(self, user_id: str, is_active: bool) -> User:
        async with self._scope() as state:
            row = state.users.get(user_id)
            if row is None:
                raise UserNotFound(user_id)
            row.is_active = is_active
            return self._to_user(row)

    async def list_active_team_members_except(self, team_name: str, exclude: Iterable[str]) -> List[User]:
        excluded = set(exclude)
        async with self._scope() as state:
            return [
                self._to_user(row)
                for row in sorted(state.users.values(), key=lambda u: u.user_id)
                if row.team_name == team_name and row.is_active and row.user_id not in excluded
            ]

    async def deactivate_users(self, user_ids: Iterable[str]) -> None:
        async with self._scope() as state:
            for user_id in user_ids:
                row = state.users.get(user_id)
                if row is not None:
                    row.is_active = False

    # Pull requests

    async def create_pr_with_reviewers(self, pr: PullRequest, reviewer_ids: List[str]) -> PullRequest:
        async with self._scope() as state:
            if pr.pull_request_id in state.prs:
                raise PRExists(pr.pull_request_id)
            row = _PRRow(
                pull_request_id=pr.pull_request_id,
                pull_request_name=pr.pull_request_name,
                author_id=pr.author_id,
                status=pr.status,
                created_at=_utcnow(),
                reviewers=set(reviewer_ids),
            )
            state.prs[row.pull_request_id] = row
            return self._to_pr(row)

    async def get_pr(self, pr_id: str) -> PullRequest:
        async with self._scope() as state:
            return self._to_pr(self._get_pr_row(state, pr_id))

    async def mark_merged(self, pr_id: str, merged_at: datetime) -> PullRequest:
        async with self._scope() as state:
            row = self._get_pr_row(state, pr_id)
            row.status = PRStatus.MERGED
            if row.merged_at is None:
                row.merged_at = merged_at
            return self._to_pr(row)

    async def reassign_reviewer(self, pr_id: str, old_user_id: str, new_user_id: str) -> PullRequest:
        async with self._scope() as state:
            row = state.prs.get(pr_id)
            if row is None or old_user_id not in row.reviewers:
                raise PRNotFound(pr_id)
            row.reviewers.discard(old_user_id)
            row.reviewers.add(new_user_id)
            return self._to_pr(row)

    async def remove_reviewer(self, pr_id: str, user_id: str) -> None:
        async with self._scope() as state:
            row = state.prs.get(pr_id)
            if row is not None:
                row.reviewers.discard(user_id)

    async def get_open_prs_by_reviewers(self, user_ids: Iterable[str]) -> Dict[str, List[str]]:
        async with self._scope() as state:
            result = {}
            for user_id in dict.fromkeys(user_ids):
                pr_ids = sorted(
                    row.pull_request_id for row in state.prs.values()
                    if row.status == PRStatus.OPEN and user_id in row.reviewers
                )
                if pr_ids:
                    result[user_id] = pr_ids
            return result

    async def list_assigned_to_user(self, user_id: str) -> List[PullRequestShort]:
        async with self._scope() as state:
            rows = [row for row in state.prs.values() if user_id in row.reviewers]
            rows.sort(key=lambda r: (r.created_at, r.pull_request_id), reverse=True)
            return [
                PullRequestShort(
                    pull_request_id=row.pull_request_id,
                    pull_request_name=row.pull_request_name,
                    author_id=row.author_id,
                    status=row.status,
                )
                for row in rows
            ]

    async def get_reviewer_stats(self) -> List[ReviewerStat]:
        async with self._scope() as state:
            counts = Counter(r for row in state.prs.values() for r in row.reviewers)
            ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
            return [ReviewerStat(reviewer_id=rid, review_count=count) for rid, count in ordered]
