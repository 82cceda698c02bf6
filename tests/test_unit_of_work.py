import asyncio

import pytest

from models.entities import Team, TeamMember
from repository.base import current_executor
from repository.errors import TeamNotFound
from utils import seed_team


@pytest.mark.asyncio
async def test_commit_publishes_writes(store, uow):
    await seed_team(store, "t", ["u1", "u2"])

    async def op():
        await store.deactivate_users(["u1"])
        return "done"

    assert await uow.run(op) == "done"
    assert (await store.get_user("u1")).is_active is False
    assert current_executor.get() is None


@pytest.mark.asyncio
async def test_reads_inside_scope_see_own_writes(store, uow):
    await seed_team(store, "t", ["u1", "u2"])

    async def op():
        await store.deactivate_users(["u1", "u2"])
        return await store.list_active_team_members_except("t", set())

    assert await uow.run(op) == []


@pytest.mark.asyncio
async def test_exception_rolls_back(store, uow):
    await seed_team(store, "t", ["u1"])

    async def op():
        await store.deactivate_users(["u1"])
        await store.create_team_with_members(Team(team_name="t2", members=[TeamMember(user_id="u5", username="x")]))
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await uow.run(op)

    assert (await store.get_user("u1")).is_active is True
    with pytest.raises(TeamNotFound):
        await store.get_team_by_name("t2")
    assert current_executor.get() is None


@pytest.mark.asyncio
async def test_cancellation_rolls_back(store, uow):
    await seed_team(store, "t", ["u1"])
    started = asyncio.Event()

    async def op():
        await store.deactivate_users(["u1"])
        started.set()
        await asyncio.sleep(10)

    task = asyncio.create_task(uow.run(op))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert (await store.get_user("u1")).is_active is True


@pytest.mark.asyncio
async def test_nested_scope_is_rejected(store, uow):
    async def inner():
        return None

    async def outer():
        await uow.run(inner)

    with pytest.raises(RuntimeError):
        await uow.run(outer)


@pytest.mark.asyncio
async def test_concurrent_reader_sees_state_before_or_after(store, uow):
    await seed_team(store, "t", ["u1", "u2"])
    in_scope = asyncio.Event()
    release = asyncio.Event()

    async def op():
        await store.deactivate_users(["u1", "u2"])
        in_scope.set()
        await release.wait()

    writer = asyncio.create_task(uow.run(op))
    await in_scope.wait()
    reader = asyncio.create_task(store.list_active_team_members_except("t", set()))
    await asyncio.sleep(0)
    release.set()
    await writer

    # the reader waits for the writer and never observes half of it
    assert await reader == []
