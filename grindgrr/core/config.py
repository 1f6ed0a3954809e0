from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = os.environ.get(
    "ENV_FILE",
    str(Path(__file__).resolve().parent.parent / ".env"),
)


class Settings(BaseSettings):
    app_name: str = "Grindgrr"
    api_v1_str: str = "/api/v1"
    log_level: str = "info"
    cors_allow_origins: list[str] = ["*"]

    # ---- Auth ----
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # ---- Storage ----
    database_url: str = "sqlite:///./dev.db"

    # ---- Chat ----
    message_max_length: int = 2000

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: Any) -> list[str]:
        """Accept a list, a JSON array string or a comma-separated string.

        Empty input and ``*`` both mean "allow any origin".
        """
        if isinstance(value, str):
            raw = value.strip()
            if not raw or raw == "*":
                return ["*"]
            items: Any = None
            if raw.startswith("["):
                try:
                    items = json.loads(raw)
                except ValueError:
                    items = None
            if not isinstance(items, list):
                items = raw.split(",")
        elif isinstance(value, list):
            items = value
        else:
            return ["*"]
        origins = [str(item).strip() for item in items]
        return [origin for origin in origins if origin]


settings = Settings()
