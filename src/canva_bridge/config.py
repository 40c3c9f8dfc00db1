import logging

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "*"

    backend_url: str = "http://127.0.0.1:4000"
    mcp_api_token: str = ""
    generate_timeout_sec: float = 15
    placeholder_design_url: str = "https://www.canva.com/placeholder/DAF-demo123"

    initial_credits: int = 10
    credits_in_bundle: int = 10
    job_delay_sec: float = 5
    ledger_history: int = 100

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()


def configure_logging(settings: Settings) -> None:
    """Configure structlog: JSON lines in production, console output elsewhere."""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.app_env == "production"
        else structlog.dev.ConsoleRenderer()
    )
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
