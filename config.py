from __future__ import annotations
import logging
import os
from dataclasses import dataclass

import structlog
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    database_name: str = os.getenv("DATABASE_NAME", "tours")
    mongo_timeout_ms: int = int(os.getenv("MONGO_TIMEOUT_MS", 5000))

    port: int = int(os.getenv("PORT", 8000))
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json: bool = os.getenv("LOG_JSON", "false").lower() in {"1", "true", "yes"}


CFG = Settings()


def configure_logging(level: str = CFG.log_level, json_logs: bool = CFG.log_json) -> None:
    """Set up structlog once for the whole process.

    Events are key/value pairs; JSON rendering is meant for production log
    shipping, the console renderer for local development.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        cache_logger_on_first_use=True,
    )
