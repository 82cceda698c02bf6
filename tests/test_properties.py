"""Randomised runs over the in-memory store checking the assignment invariants."""
import random

import pytest

from models.entities import PRStatus
from repository.memory import InMemoryStore
from repository.unit_of_work import UnitOfWork
from services.errors import AppError
from services.pull_request import PullRequestService
from services.teams import TeamService
from services.users import UserService
from utils import seed_team


TEAMS = {
    "alpha": ["u1", "u2", "u3", "u4", "u5"],
    "beta": ["u10", "u11", "u12"],
    "gamma": ["u20"],
}
ALL_USERS = [uid for members in TEAMS.values() for uid in members]


async def check_invariants(store, pr_ids):
    for pr_id in pr_ids:
        pr = await store.get_pr(pr_id)
        assert pr.author_id not in pr.assigned_reviewers
        assert len(pr.assigned_reviewers) <= 2
        assert pr.assigned_reviewers == sorted(set(pr.assigned_reviewers))


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", range(20))
async def test_random_operations_keep_invariants(seed):
    rng = random.Random(seed)
    store = InMemoryStore()
    uow = UnitOfWork(store)
    pr_service = PullRequestService(store, uow, selector=rng.choice)
    team_service = TeamService(store, uow, selector=rng.choice)
    user_service = UserService(store)
    for team_name, members in TEAMS.items():
        await seed_team(store, team_name, members)

    pr_ids = []
    merged_at = {}
    for step in range(60):
        op = rng.choice(["create", "create", "reassign", "merge", "toggle", "deactivate"])

        if op == "create":
            pr_id = f"pr-{step}"
            pr = await pr_service.create_pull_request(pr_id, f"change {step}", rng.choice(ALL_USERS))
            stored = await store.get_pr(pr_id)
            assert stored.assigned_reviewers == pr.assigned_reviewers
            assert stored.author_id == pr.author_id
            pr_ids.append(pr_id)

        elif op == "reassign" and pr_ids:
            pr = await store.get_pr(rng.choice(pr_ids))
            if pr.status != PRStatus.OPEN or not pr.assigned_reviewers:
                continue
            old = rng.choice(pr.assigned_reviewers)
            others = set(pr.assigned_reviewers) - {old}
            try:
                updated, new_id = await pr_service.reassign_reviewer(pr.pull_request_id, old)
            except AppError as err:
                assert err.code == "NO_CANDIDATE"
                assert (await store.get_pr(pr.pull_request_id)).assigned_reviewers == pr.assigned_reviewers
                continue
            assert new_id not in others | {old, pr.author_id}
            assert (await store.get_user(new_id)).is_active
            assert len(updated.assigned_reviewers) == len(pr.assigned_reviewers)

        elif op == "merge" and pr_ids:
            pr_id = rng.choice(pr_ids)
            merged = await pr_service.merge_pull_request(pr_id)
            merged_at.setdefault(pr_id, merged.merged_at)
            assert merged.merged_at == merged_at[pr_id]

        elif op == "toggle":
            await user_service.set_is_active(rng.choice(ALL_USERS), rng.random() < 0.7)

        elif op == "deactivate":
            targets = rng.sample(ALL_USERS, k=rng.randint(1, 3))
            await team_service.mass_deactivate(targets)
            for pr_id in pr_ids:
                pr = await store.get_pr(pr_id)
                if pr.status == PRStatus.OPEN:
                    assert not set(pr.assigned_reviewers) & set(targets)

        await check_invariants(store, pr_ids)


@pytest.mark.asyncio
@pytest.mark.parametrize("team, expected", [
    (["u1"], []),
    (["u1", "u2"], ["u2"]),
    (["u1", "u9", "u3", "u2"], ["u2", "u3"]),
    (["u5", "u1", "u4", "u3", "u2"], ["u2", "u3"]),
])
async def test_creation_boundaries(store, pr_service, team, expected):
    await seed_team(store, "t", team)

    pr = await pr_service.create_pull_request("pr-1", "name", "u1")

    assert pr.assigned_reviewers == expected


@pytest.mark.asyncio
async def test_merge_twice_is_merge_once(store, pr_service):
    await seed_team(store, "t", ["u1", "u2", "u3"])
    await pr_service.create_pull_request("pr-1", "name", "u1")

    once = await pr_service.merge_pull_request("pr-1")
    twice = await pr_service.merge_pull_request("pr-1")

    assert once == twice


@pytest.mark.asyncio
async def test_reassign_unassigned_reviewer_is_rejected(store, pr_service):
    await seed_team(store, "t", ["u1", "u2", "u3"])
    await pr_service.create_pull_request("pr-1", "name", "u1")

    with pytest.raises(AppError) as exc_info:
        await pr_service.reassign_reviewer("pr-1", "u1")

    assert exc_info.value.code == "NOT_ASSIGNED"


@pytest.mark.asyncio
async def test_seeded_selector_is_reproducible():
    picks = []
    for _ in range(2):
        store = InMemoryStore()
        rng = random.Random(42)
        service = PullRequestService(store, UnitOfWork(store), selector=rng.choice)
        await seed_team(store, "t", ["u1", "u2", "u3", "u4", "u5", "u6"])
        await service.create_pull_request("pr-1", "name", "u1")
        _, first = await service.reassign_reviewer("pr-1", "u2")
        picks.append(first)

    assert picks[0] == picks[1]
    assert picks[0] in {"u4", "u5", "u6"}