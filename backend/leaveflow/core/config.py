# backend/leaveflow/core/config.py

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./leaveflow.db"

    # Put this on the host as JWT_SECRET_KEY
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # local fallback auth (demo accounts, no password checks)
    fallback_store_path: str = "./.leaveflow/credentials.json"
    fallback_session_ttl_hours: int = 24

    # Comma-separated allowlist, e.g. "https://leaveflow.example.com,http://localhost:5173"
    cors_origins: str = ""
    frontend_url: str = "http://localhost:5173"

    seed_demo_data: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False

    def allowed_origins(self) -> list[str]:
        cors_env = self.cors_origins.strip()
        if cors_env:
            return [o.strip() for o in cors_env.split(",") if o.strip()]
        return list({self.frontend_url.strip(), "http://localhost:5173"})


@lru_cache
def get_settings() -> Settings:
    return Settings()
