import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from config import get_settings
from models.database import build_engine, build_session_maker, init_db
from repository.sql import SqlStore
from routes import health, users, teams, pull_request, stats
from routes.deps import install_services
from services.errors import AppError


settings = get_settings()

LOG_LEVEL = getattr(logging, settings.log_level, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = build_engine(settings.require_database_url(), echo=settings.db_echo)
    await init_db(engine)
    install_services(app, SqlStore(build_session_maker(engine)))
    logger.info("app_startup: log_level=%s", settings.log_level)

    yield

    await engine.dispose()
    logger.info("app_shutdown")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Accept", "Authorization", "Content-Type", "X-CSRF-Token"],
    expose_headers=["Link"],
    allow_credentials=False,
    max_age=300,
)

app.include_router(users.router)
app.include_router(teams.router)
app.include_router(pull_request.router)
app.include_router(stats.router)
app.include_router(health.router)


def _handler_name(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "name", request.url.path)


def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    log = logger.error if exc.status >= 500 else logger.warning
    log("handler_error: handler=%s code=%s message=%s err=%r",
        _handler_name(request), exc.code, exc.message, exc.cause)
    return JSONResponse(status_code=exc.status, content=_error_body(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    message = "; ".join(problems) or "invalid request"
    logger.warning("handler_error: handler=%s code=BAD_REQUEST message=%s", _handler_name(request), message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body("BAD_REQUEST", message))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("handler_error: handler=%s code=INTERNAL err=%r", _handler_name(request), exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content=_error_body("INTERNAL", "internal error"))


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
