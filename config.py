"""Runtime configuration and logging setup.

Settings come from the environment, after .env has been loaded with
python-dotenv. Every value has a default so the dashboard runs with no
configuration at all against the in-process store.

Environment variables:
    OPSBOARD_API_URL       API server root. Unset -> use the local store.
    OPSBOARD_LOG_FILE      Rotating log file path (default opsboard.log).
    OPSBOARD_LOG_LEVEL     Root log level (default INFO).
    ALLOWED_ORIGINS        Comma-separated CORS origins for the API server.
    OPSBOARD_METRICS_SEED  Seed for the simulated metrics (default 42).
    OPSBOARD_HTTP_RETRIES  Connection retries for HTTP actions (default 2).
    OPSBOARD_HTTP_TIMEOUT  Per-request timeout in seconds (default 10).
"""

import logging
import logging.handlers
import os
import pathlib

from dotenv import load_dotenv
from pydantic import BaseModel, Field

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Settings(BaseModel):
    """Validated settings for the server and the CLI."""

    api_url: str | None = None
    log_file: pathlib.Path = pathlib.Path("opsboard.log")
    log_level: str = "INFO"
    allowed_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    metrics_seed: int = 42
    http_retries: int = Field(default=2, ge=0)
    http_timeout: float = Field(default=10.0, gt=0)


def load_settings() -> Settings:
    """Load .env (if present) and build Settings from the environment.

    Raises:
        pydantic.ValidationError: If a variable is set to an invalid value
            (e.g. OPSBOARD_HTTP_RETRIES=-1). Fails at startup rather than at
            the first request.
    """
    load_dotenv()
    env = os.environ
    values: dict = {}

    if env.get("OPSBOARD_API_URL"):
        values["api_url"] = env["OPSBOARD_API_URL"]
    if env.get("OPSBOARD_LOG_FILE"):
        values["log_file"] = env["OPSBOARD_LOG_FILE"]
    if env.get("OPSBOARD_LOG_LEVEL"):
        values["log_level"] = env["OPSBOARD_LOG_LEVEL"].upper()
    if env.get("ALLOWED_ORIGINS"):
        values["allowed_origins"] = [o.strip() for o in env["ALLOWED_ORIGINS"].split(",") if o.strip()]
    if env.get("OPSBOARD_METRICS_SEED"):
        values["metrics_seed"] = env["OPSBOARD_METRICS_SEED"]
    if env.get("OPSBOARD_HTTP_RETRIES"):
        values["http_retries"] = env["OPSBOARD_HTTP_RETRIES"]
    if env.get("OPSBOARD_HTTP_TIMEOUT"):
        values["http_timeout"] = env["OPSBOARD_HTTP_TIMEOUT"]

    return Settings(**values)


def configure_logging(settings: Settings) -> None:
    """Attach a rotating file handler to the root logger.

    Safe to call more than once — a handler for the same file is only added
    the first time.
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level)

    target = str(settings.log_file.resolve())
    for handler in root.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler) and handler.baseFilename == target:
            return

    file_handler = logging.handlers.RotatingFileHandler(
        settings.log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(file_handler)
