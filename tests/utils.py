"""Helpers shared by the test modules."""
from typing import Iterable, Sequence

from models.entities import Team, TeamMember, User


def first_candidate(candidates: Sequence[User]) -> User:
    """Deterministic stand-in for the random selector"""
    return candidates[0]


def last_candidate(candidates: Sequence[User]) -> User:
    return candidates[-1]


async def seed_team(store, team_name: str, user_ids: Iterable[str], inactive: Iterable[str] = ()) -> Team:
    inactive = set(inactive)
    return await store.create_team_with_members(Team(
        team_name=team_name,
        members=[
            TeamMember(user_id=uid, username=f"User {uid}", is_active=uid not in inactive)
            for uid in user_ids
        ],
    ))
