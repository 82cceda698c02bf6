from fastapi import APIRouter, Depends, status
from schemas import StatsResponse
from routes.deps import get_pr_service
from services.pull_request import PullRequestService


router = APIRouter()


@router.get("/stats", status_code=status.HTTP_200_OK,
               summary="Количество назначений на ревью по пользователям",
               response_model=StatsResponse)
async def stats(pr_service: PullRequestService = Depends(get_pr_service)):
    return await pr_service.get_stats()
