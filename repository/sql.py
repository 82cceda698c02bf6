"""
SQLAlchemy store.

Runs every query on the session bound by ``UnitOfWork`` when there is one,
otherwise opens a short session that commits on exit.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, desc, func, insert, select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models import entities
from models.models import PullRequest, Reviewers, Team, User
from repository.base import current_executor
from repository.errors import PRExists, PRNotFound, TeamExists, TeamNotFound, UserNotFound


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands timestamps back without tzinfo; they are stored as UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlStore:
    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    async def begin(self) -> AsyncSession:
        return self._session_maker()

    @asynccontextmanager
    async def _session(self):
        bound = current_executor.get()
        if isinstance(bound, AsyncSession):
            yield bound
            return
        async with self._session_maker() as session:
            async with session.begin():
                yield session

    # Teams

    async def create_team_with_members(self, team: entities.Team) -> entities.Team:
        async with self._session() as session:
            exists = await session.execute(select(Team.id).where(Team.team_name == team.team_name))
            if exists.first():
                raise TeamExists(team.team_name)
            new_team = Team(team_name=team.team_name)
            session.add(new_team)
            try:
                await session.flush()
            except IntegrityError as err:
                raise TeamExists(team.team_name) from err

            for member in team.members:
                await self._upsert_member(session, new_team.id, member)

            return await self._load_team(session, team.team_name)

    @staticmethod
    async def _upsert_member(session: AsyncSession, team_id: int, member: entities.TeamMember) -> None:
        result = await session.execute(
            update(User)
            .where(User.user_id == member.user_id)
            .values(username=member.username, team_id=team_id, is_active=member.is_active)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await session.execute(
                insert(User).values(
                    user_id=member.user_id,
                    username=member.username,
                    team_id=team_id,
                    is_active=member.is_active,
                )
            )

    async def get_team_by_name(self, team_name: str) -> entities.Team:
        async with self._session() as session:
            exists = await session.execute(select(Team.id).where(Team.team_name == team_name))
            if not exists.first():
                raise TeamNotFound(team_name)
            return await self._load_team(session, team_name)

    @staticmethod
    async def _load_team(session: AsyncSession, team_name: str) -> entities.Team:
        result = await session.execute(
            select(User.user_id, User.username, User.is_active)
            .join(Team, User.team_id == Team.id)
            .where(Team.team_name == team_name)
            .order_by(User.user_id)
        )
        members = [
            entities.TeamMember(user_id=user_id, username=username, is_active=is_active)
            for user_id, username, is_active in result.all()
        ]
        return entities.Team(team_name=team_name, members=members)

    # Users

    @staticmethod
    def _user_query():
        return (
            select(User.user_id, User.username, Team.team_name, User.is_active)
            .join(Team, User.team_id == Team.id)
        )

    @staticmethod
    def _to_user(row) -> entities.User:
        user_id, username, team_name, is_active = row
        return entities.User(user_id=user_id, username=username, team_name=team_name, is_active=is_active)

    async def _fetch_user(self, session: AsyncSession, user_id: str) -> entities.User:
        result = await session.execute(self._user_query().where(User.user_id == user_id))
        row = result.first()
        if row is None:
            raise UserNotFound(user_id)
        return self._to_user(row)

    async def get_user(self, user_id: str) -> entities.User:
        async with self._session() as session:
            return await self._fetch_user(session, user_id)

    async def set_user_active(self, user_id: str, is_active: bool) -> entities.User:
        async with self._session() as session:
            result = await session.execute(
                update(User)
                .where(User.user_id == user_id)
                .values(is_active=is_active)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise UserNotFound(user_id)
            return await self._fetch_user(session, user_id)

    async def list_active_team_members_except(self, team_name: str, exclude: Iterable[str]) -> List[entities.User]:
        excluded = list(set(exclude))
        query = self._user_query().where(and_(Team.team_name == team_name, User.is_active.is_(True)))
        if excluded:
            query = query.where(User.user_id.notin_(excluded))
        async with self._session() as session:
            result = await session.execute(query.order_by(User.user_id))
            return [self._to_user(row) for row in result.all()]

    async def deactivate_users(self, user_ids: Iterable[str]) -> None:
        ids = list(user_ids)
        if not ids:
            return
        async with self._session() as session:
            await session.execute(
                update(User)
                .where(User.user_id.in_(ids))
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )

    # Pull requests

    @staticmethod
    async def _load_pr(session: AsyncSession, pr_id: str) -> entities.PullRequest:
        result = await session.execute(
            select(
                PullRequest.pull_request_id,
                PullRequest.pull_request_name,
                PullRequest.author_id,
                PullRequest.status,
                PullRequest.created_at,
                PullRequest.merged_at,
            ).where(PullRequest.pull_request_id == pr_id)
        )
        row = result.first()
        if row is None:
            raise PRNotFound(pr_id)

        reviewers = await session.execute(
            select(Reviewers.reviewer_id)
            .where(Reviewers.pull_request_id == pr_id)
            .order_by(Reviewers.reviewer_id)
        )
        return entities.PullRequest(
            pull_request_id=row.pull_request_id,
            pull_request_name=row.pull_request_name,
            author_id=row.author_id,
            status=entities.PRStatus(row.status),
            assigned_reviewers=list(reviewers.scalars().all()),
            created_at=_aware(row.created_at),
            merged_at=_aware(row.merged_at),
        )

    async def create_pr_with_reviewers(self, pr: entities.PullRequest, reviewer_ids: List[str]) -> entities.PullRequest:
        async with self._session() as session:
            exists = await session.execute(
                select(PullRequest.pull_request_id).where(PullRequest.pull_request_id == pr.pull_request_id)
            )
            if exists.first():
                raise PRExists(pr.pull_request_id)
            try:
                await session.execute(
                    insert(PullRequest).values(
                        pull_request_id=pr.pull_request_id,
                        pull_request_name=pr.pull_request_name,
                        author_id=pr.author_id,
                        status=pr.status.value,
                        created_at=datetime.now(timezone.utc),
                    )
                )
            except IntegrityError as err:
                raise PRExists(pr.pull_request_id) from err

            unique_ids = list(dict.fromkeys(reviewer_ids))
            if unique_ids:
                await session.execute(
                    insert(Reviewers),
                    [{"pull_request_id": pr.pull_request_id, "reviewer_id": rid} for rid in unique_ids],
                )
            return await self._load_pr(session, pr.pull_request_id)

    async def get_pr(self, pr_id: str) -> entities.PullRequest:
        async with self._session() as session:
            return await self._load_pr(session, pr_id)

    async def mark_merged(self, pr_id: str, merged_at: datetime) -> entities.PullRequest:
        async with self._session() as session:
            result = await session.execute(
                update(PullRequest)
                .where(PullRequest.pull_request_id == pr_id)
                .values(
                    status=entities.PRStatus.MERGED.value,
                    merged_at=func.coalesce(PullRequest.merged_at, merged_at),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise PRNotFound(pr_id)
            return await self._load_pr(session, pr_id)

    async def reassign_reviewer(self, pr_id: str, old_user_id: str, new_user_id: str) -> entities.PullRequest:
        async with self._session() as session:
            result = await session.execute(
                update(Reviewers)
                .where(and_(Reviewers.pull_request_id == pr_id, Reviewers.reviewer_id == old_user_id))
                .values(reviewer_id=new_user_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise PRNotFound(pr_id)
            return await self._load_pr(session, pr_id)

    async def remove_reviewer(self, pr_id: str, user_id: str) -> None:
        async with self._session() as session:
            await session.execute(
                delete(Reviewers)
                .where(and_(Reviewers.pull_request_id == pr_id, Reviewers.reviewer_id == user_id))
                .execution_options(synchronize_session=False)
            )

    async def get_open_prs_by_reviewers(self, user_ids: Iterable[str]) -> Dict[str, List[str]]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        async with self._session() as session:
            result = await session.execute(
                select(Reviewers.reviewer_id, Reviewers.pull_request_id)
                .join(PullRequest, PullRequest.pull_request_id == Reviewers.pull_request_id)
                .where(and_(
                    Reviewers.reviewer_id.in_(ids),
                    PullRequest.status == entities.PRStatus.OPEN.value,
                ))
                .order_by(Reviewers.pull_request_id)
            )
            found: Dict[str, List[str]] = {}
            for reviewer_id, pr_id in result.all():
                found.setdefault(reviewer_id, []).append(pr_id)
        return {user_id: found[user_id] for user_id in ids if user_id in found}

    async def list_assigned_to_user(self, user_id: str) -> List[entities.PullRequestShort]:
        async with self._session() as session:
            result = await session.execute(
                select(
                    PullRequest.pull_request_id,
                    PullRequest.pull_request_name,
                    PullRequest.author_id,
                    PullRequest.status,
                )
                .join(Reviewers, PullRequest.pull_request_id == Reviewers.pull_request_id)
                .where(Reviewers.reviewer_id == user_id)
                .order_by(desc(PullRequest.created_at), desc(PullRequest.pull_request_id))
            )
            return [
                entities.PullRequestShort(
                    pull_request_id=pr_id,
                    pull_request_name=name,
                    author_id=author_id,
                    status=entities.PRStatus(status),
                )
                for pr_id, name, author_id, status in result.all()
            ]

    async def get_reviewer_stats(self) -> List[entities.ReviewerStat]:
        review_count = func.count().label("review_count")
        async with self._session() as session:
            result = await session.execute(
                select(Reviewers.reviewer_id, review_count)
                .group_by(Reviewers.reviewer_id)
                .order_by(desc(review_count), Reviewers.reviewer_id)
            )
            return [
                entities.ReviewerStat(reviewer_id=reviewer_id, review_count=count)
                for reviewer_id, count in result.all()
            ]
