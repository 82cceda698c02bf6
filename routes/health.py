from fastapi import APIRouter, status
from schemas import HealthResponse


router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK,
               summary="Проверка доступности сервиса",
               response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")
