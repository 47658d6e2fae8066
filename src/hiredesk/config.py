from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

PACKAGED_MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Hiredesk"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 5000
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/hiredesk.db"
    db_pool_timeout_sec: int = 15
    db_statement_timeout_ms: int = 15000
    migrations_dir: Path = PACKAGED_MIGRATIONS_DIR

    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_min: int = 60 * 24 * 7
    bcrypt_rounds: int = 10
    min_password_length: int = 8

    approval_token_ttl_min: int = 60
    reset_token_ttl_min: int = 60

    public_api_url: str = "http://localhost:5000"
    frontend_url: str = "http://localhost:5173"
    cors_origins: str = "http://localhost:5173"

    super_admin_email: str = ""
    super_admin_password: str = ""
    super_admin_company: str = "Hiredesk"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_rounds(cls, value: int) -> int:
        if value < 4 or value > 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
