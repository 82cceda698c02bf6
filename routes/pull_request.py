from fastapi import APIRouter, Depends, status
from schemas import (
    PullRequestCreateRequest, PullRequestCreateResponse,
    PullRequestMergeRequest, PullRequestMergeResponse,
    PullRequestReassignRequest, PullRequestReassignResponse,
    PullRequestResponse, ErrorResponse
)
from routes.deps import get_pr_service
from services.pull_request import PullRequestService


router = APIRouter(prefix="/pullRequest")


@router.post("/create", status_code=status.HTTP_201_CREATED,
                summary="Создать PR и автоматически назначить до 2 ревьюверов из команды автора",
                response_model=PullRequestCreateResponse,
                response_model_exclude_none=True,
                responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse},
                           409: {"model": ErrorResponse}})
async def create(request: PullRequestCreateRequest,
                 pr_service: PullRequestService = Depends(get_pr_service)):
    pr = await pr_service.create_pull_request(
        request.pull_request_id,
        request.pull_request_name,
        request.author_id
    )
    return PullRequestCreateResponse(pr=PullRequestResponse.from_entity(pr))


@router.post("/merge", status_code=status.HTTP_200_OK,
                summary="Пометить PR как MERGED (идемпотентная операция)",
                response_model=PullRequestMergeResponse,
                response_model_exclude_none=True,
                responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def merge(request: PullRequestMergeRequest,
                pr_service: PullRequestService = Depends(get_pr_service)):
    pr = await pr_service.merge_pull_request(request.pull_request_id)
    return PullRequestMergeResponse(pr=PullRequestResponse.from_entity(pr))


@router.post("/reassign", status_code=status.HTTP_200_OK,
                summary="Переназначить конкретного ревьювера на другого из его команды",
                response_model=PullRequestReassignResponse,
                response_model_exclude_none=True,
                responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse},
                           409: {"model": ErrorResponse}})
async def reassign(request: PullRequestReassignRequest,
                   pr_service: PullRequestService = Depends(get_pr_service)):
    pr, replaced_by = await pr_service.reassign_reviewer(
        request.pull_request_id,
        request.old_user_id
    )
    return PullRequestReassignResponse(
        pr=PullRequestResponse.from_entity(pr),
        replaced_by=replaced_by
    )
