from typing import Optional

from fastapi import FastAPI, Request

from repository.base import Store
from repository.unit_of_work import UnitOfWork
from services.pull_request import PullRequestService
from services.selection import Selector
from services.teams import TeamService
from services.users import UserService


def install_services(app: FastAPI, store: Store, selector: Optional[Selector] = None) -> None:
    """Wire the services over ``store`` into ``app.state``"""
    uow = UnitOfWork(store)
    app.state.store = store
    app.state.pr_service = PullRequestService(store, uow, selector=selector)
    app.state.team_service = TeamService(store, uow, selector=selector)
    app.state.user_service = UserService(store)


def get_pr_service(request: Request) -> PullRequestService:
    return request.app.state.pr_service


def get_team_service(request: Request) -> TeamService:
    return request.app.state.team_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service
