from fastapi import APIRouter, Depends, status, Query
from schemas import (
    TeamRequest, TeamCreateResponse, TeamResponse,
    MassDeactivateRequest, BulkDeactivateRequest, BulkDeactivateResponse,
    ErrorResponse
)
from models.entities import Team, TeamMember
from routes.deps import get_team_service
from services.teams import TeamService


router = APIRouter(prefix="/team")


@router.post("/add", status_code=status.HTTP_201_CREATED,
                  summary="Создать команду с участниками (создаёт/обновляет пользователей)",
                  response_model=TeamCreateResponse,
                  responses={400: {"model": ErrorResponse}})
async def add(request: TeamRequest, team_service: TeamService = Depends(get_team_service)):
    team = await team_service.add_team(Team(
        team_name=request.team_name,
        members=[TeamMember(**member.model_dump()) for member in request.members]
    ))
    return TeamCreateResponse(team=TeamResponse(**team.model_dump()))


@router.get("/get", status_code=status.HTTP_200_OK,
                 summary="Получить команду с участниками",
                 response_model=TeamResponse,
                 responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get(team_name: str = Query(..., min_length=1, description="Уникальное имя команды"),
              team_service: TeamService = Depends(get_team_service)):
    team = await team_service.get_team(team_name)
    return TeamResponse(**team.model_dump())


@router.post("/deactivate", status_code=status.HTTP_200_OK,
                  summary="Массовая деактивация пользователей с переназначением ревьюверов открытых PR",
                  response_model=BulkDeactivateResponse,
                  responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def deactivate(request: MassDeactivateRequest,
                     team_service: TeamService = Depends(get_team_service)):
    report = await team_service.mass_deactivate(request.user_ids)
    return BulkDeactivateResponse(**report.model_dump())


@router.post("/bulkDeactivate", status_code=status.HTTP_200_OK,
                  summary="Массовая деактивация пользователей команды с безопасным переназначением ревьюверов",
                  response_model=BulkDeactivateResponse,
                  responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def bulk_deactivate(request: BulkDeactivateRequest,
                          team_service: TeamService = Depends(get_team_service)):
    report = await team_service.bulk_deactivate_team(request.team_name)
    return BulkDeactivateResponse(**report.model_dump())
