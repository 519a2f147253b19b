"""Centralized logging configuration.

Each ``log_level_*`` setting controls a group of loggers, so SQL echo or
outbound HTTP chatter can be turned up or down without touching the
ingestion and retrieval logs.

Usage:
    from lexbase.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once, from the FastAPI lifespan
"""

import logging
import sys

from lexbase.config import Settings, get_settings

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Settings field -> logger names it governs.
LOGGER_GROUPS: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "asyncpg"),
    "log_level_http": ("httpx", "httpcore"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_pipeline": ("IngestionPipeline", "lexbase.application.services"),
    "log_level_embeddings": ("lexbase.infrastructure.embeddings",),
}


def parse_level(raw: str) -> int:
    """Level name to ``logging`` constant; unknown names fall back to INFO."""
    numeric = logging.getLevelName(raw.strip().upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def setup_logging(settings: Settings | None = None) -> dict[str, int]:
    """Apply root and per-group levels from *settings*.

    Returns the level assigned to every configured logger name, root included
    under ``"root"``.
    """
    settings = settings or get_settings()
    applied: dict[str, int] = {}

    root = logging.getLogger()
    root.setLevel(parse_level(settings.log_level))
    applied["root"] = root.level

    # uvicorn installs its own handlers; scripts and tests may not have any.
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    for field, logger_names in LOGGER_GROUPS.items():
        level = parse_level(getattr(settings, field))
        for name in logger_names:
            logging.getLogger(name).setLevel(level)
            applied[name] = level

    logging.getLogger(__name__).debug(
        "Logging configured: %s",
        ", ".join(f"{field}={getattr(settings, field)}" for field in ("log_level", *LOGGER_GROUPS)),
    )
    return applied
