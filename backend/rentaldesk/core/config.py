# rentaldesk/core/config.py

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def find_dotenv_path(filename: str = ".env", usecwd: bool = False) -> str | None:
    """Walks up from this package (or the CWD) looking for an env file."""
    start_dir = Path.cwd() if usecwd else Path(__file__).resolve().parent
    current_dir = start_dir
    for _ in range(10):
        env_path = current_dir / filename
        if env_path.is_file():
            logger.debug(f"Found {filename} file at: {env_path}")
            return str(env_path)
        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            break
        current_dir = parent_dir
    if not usecwd:
        env_path_cwd = Path.cwd() / filename
        if env_path_cwd.is_file():
            logger.debug(f"Found {filename} file at CWD: {env_path_cwd}")
            return str(env_path_cwd)
    logger.debug(f"{filename} not found in parent directories of {start_dir} or CWD.")
    return None


class Settings(BaseSettings):
    PROJECT_NAME: str = "Rental Desk"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"
    FRONTEND_ORIGIN: str = "http://localhost:5173"

    # External store & broker
    MONGODB_URI: str = "mongodb://localhost:27017/rentaldesk"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    # Backups
    BACKUP_PATH: str = Field(default="/app/backups", description="Root directory for all backup artifacts")
    BACKUP_TIMEZONE: str = "America/New_York"
    BACKUP_MAX_ATTEMPTS: int = 3
    BACKUP_RETRY_DELAY_SECONDS: float = 1.0
    VEHICLE_EXPORT_HOUR: int = Field(default=0, ge=0, le=23)
    DATABASE_BACKUP_HOUR: int = Field(default=2, ge=0, le=23)

    # Letterhead printed on every agreement
    BUSINESS_NAME: str = "TRI-STATE AUTO RENTAL"
    BUSINESS_ADDRESS: str = "718 COTTAGE STREET, PAWTUCKET, RI 02861"
    BUSINESS_PHONE: str = "508-761-9700"

    # Agreement defaults when the form leaves them blank
    DEFAULT_SALES_TAX: str = "8.00"
    DEFAULT_STATE_SALES_TAX: str = "7.00"
    DEFAULT_FUEL_CHARGES: str = "5.99"

    # Gunicorn
    GUNICORN_BIND: str = "0.0.0.0:8000"
    GUNICORN_WORKERS: int | None = None
    GUNICORN_WORKER_CLASS: str = "uvicorn.workers.UvicornWorker"

    model_config = SettingsConfigDict(
        # .env first, .env.local may override
        env_file=tuple(p for p in (find_dotenv_path(".env"), find_dotenv_path(".env.local")) if p) or None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.BACKUP_TIMEZONE)


@lru_cache()
def get_settings() -> Settings:
    """Loads and validates the application settings."""
    logger.info("Loading application settings...")
    env_files_found = [p for p in [find_dotenv_path(".env"), find_dotenv_path(".env.local")] if p]
    if env_files_found:
        logger.info(f"Loading environment variables from: {', '.join(env_files_found)}")
    else:
        logger.debug("No .env file found. Loading settings from system environment variables only.")

    try:
        settings_instance = Settings()

        missing = [k for k in ("MONGODB_URI", "BACKUP_PATH") if not getattr(settings_instance, k, None)]
        if missing:
            raise ValueError(f"Missing critical environment variables: {', '.join(missing)}")
        if settings_instance.BACKUP_MAX_ATTEMPTS < 1:
            raise ValueError("BACKUP_MAX_ATTEMPTS must be at least 1")
        try:
            settings_instance.timezone
        except (ZoneInfoNotFoundError, ValueError) as tz_err:
            raise ValueError(f"Unknown BACKUP_TIMEZONE '{settings_instance.BACKUP_TIMEZONE}'") from tz_err

        logger.info("Settings loaded and validated successfully.")
        return settings_instance
    except ValueError as val_err:
        logger.critical(f"CRITICAL ERROR in settings validation: {val_err}")
        raise SystemExit(f"Settings validation failed: {val_err}")


settings = get_settings()
