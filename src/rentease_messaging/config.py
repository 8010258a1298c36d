from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:5000/api"
    API_TIMEOUT_SECONDS: float = 15.0
    API_ACCESS_TOKEN: str = ""
    API_REFRESH_PATH: str = "/auth/refresh"

    AUTO_PROVISION_TENANT_CONVERSATIONS: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
