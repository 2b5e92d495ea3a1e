from pathlib import Path
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root

ENV_FILE = os.getenv("ENV_FILE", str(BASE_DIR / ".env"))


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, extra="ignore")

    APP_ENV: str = "local"
    DATABASE_URL: str
    CORS_ORIGINS: str = "*"  # Comma-separated list of allowed origins, or "*" for all
    LOG_LEVEL: str = "INFO"

    # Roles allowed to create/update/delete through /entities
    OPERATIONAL_ROLES: str = "ADMIN,MANAGER,SENIOR MANAGER,MANAGING DIRECTOR"
    # Role that may read restricted entities and the audit trail
    ELEVATED_ROLE: str = "ADMIN"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list, handling '*' for development"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return _split_csv(self.CORS_ORIGINS)

    @property
    def operational_roles(self) -> frozenset[str]:
        return frozenset(_split_csv(self.OPERATIONAL_ROLES))


settings = Settings()
