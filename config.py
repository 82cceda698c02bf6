"""
Runtime configuration read from the environment.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str]
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:7002"])
    db_echo: bool = False

    def require_database_url(self) -> str:
        if not self.database_url:
            raise RuntimeError("DATABASE_URL environment variable is required")
        return self.database_url


def get_settings() -> Settings:
    origins = os.getenv("CORS_ORIGINS", "http://localhost:7002")
    return Settings(
        database_url=os.getenv("DATABASE_URL"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        db_echo=os.getenv("DB_ECHO", "false").lower() == "true",
    )
