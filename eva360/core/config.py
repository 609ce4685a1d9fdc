# eva360/core/config.py
from __future__ import annotations
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_DIR = Path(__file__).resolve().parents[2]  # raíz del proyecto
ENV_FILE = PROJECT_DIR / ".env"
SQLITE_FALLBACK = "sqlite:///./eva360.db"
SSL_REQUIRED_HOSTS = ("supabase.co", "supabase.com")

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = "Eva360 API"
    ENV: str = "dev"

    # JWT (tokens de administrador, 8h)
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 480

    # Admin de arranque: solo se acepta si no existe un usuario con ese username
    BOOTSTRAP_ADMIN_USERNAME: str = ""
    BOOTSTRAP_ADMIN_PASSWORD: str = ""
    BCRYPT_ROUNDS: int = 10

    # Códigos
    CODE_GENERATION_ATTEMPTS: int = 10
    DEFAULT_SURVEY_ID: int = 1

    # CORS (ej: CORS_ORIGINS=https://eva360.example.com,https://admin.example.com)
    CORS_ORIGINS: str = ""

    # Logs
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""

    # DB URLs (acepta cualquiera de las dos)
    DATABASE_URL: str | None = None
    SQLALCHEMY_DATABASE_URI: str | None = None

    @property
    def cors_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def db_url(self) -> str:
        """
        URL para SQLAlchemy: DATABASE_URL, luego SQLALCHEMY_DATABASE_URI, luego SQLite local.
        Los hosts de Supabase exigen sslmode=require.
        """
        url = (self.DATABASE_URL or self.SQLALCHEMY_DATABASE_URI or "").strip() or SQLITE_FALLBACK
        needs_ssl = any(host in url for host in SSL_REQUIRED_HOSTS)
        if needs_ssl and "sslmode=" not in url:
            url += ("&" if "?" in url else "?") + "sslmode=require"
        return url

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
