from fastapi import APIRouter, Depends, status, Query
from schemas import (
    SetIsActiveRequest, UserResponse, UserUpdateResponse, GetReviewResponse,
    ErrorResponse, USER_ID_PATTERN
)
from routes.deps import get_pr_service, get_user_service
from services.pull_request import PullRequestService
from services.users import UserService


router = APIRouter(prefix="/users")


@router.post("/setIsActive", status_code=status.HTTP_200_OK,
                   summary="Установить флаг активности пользователя",
                   response_model=UserUpdateResponse,
                   responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def setIsActive(request: SetIsActiveRequest,
                      user_service: UserService = Depends(get_user_service)):
    user = await user_service.set_is_active(request.user_id, request.is_active)
    return UserUpdateResponse(user=UserResponse(**user.model_dump()))


@router.get("/getReview", status_code=status.HTTP_200_OK,
                  summary="Получить PR'ы, где пользователь назначен ревьювером",
                  response_model=GetReviewResponse,
                  responses={400: {"model": ErrorResponse}})
async def getReview(user_id: str = Query(..., pattern=USER_ID_PATTERN, description="Идентификатор пользователя"),
                    pr_service: PullRequestService = Depends(get_pr_service)):
    pull_requests = await pr_service.list_assigned_to_user(user_id)
    return GetReviewResponse(
        user_id=user_id,
        pull_requests=pull_requests
    )
