"""
Logging configuration.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from structlog.stdlib import LoggerFactory

from .settings import get_settings


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Logging for the Product Page Optimizer.
    log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_file: Path to log file
    log_format: Log format ('json' or 'text')

    This function sets up:
    Structured logging with JSON output
    **Log rotation and retention
    **Console and file handlers
    """
    settings = get_settings()

    log_level = log_level or settings.log_level
    log_file = log_file or settings.log_file
    log_format = log_format or settings.log_format

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = create_rotating_file_handler(
            log_file, settings.log_rotation, settings.log_retention
        )
        root_logger.addHandler(file_handler)

    configure_third_party_loggers(log_level)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging configured",
        log_level=log_level,
        log_file=log_file,
        log_format=log_format,
        environment=settings.environment,
    )


def create_rotating_file_handler(
    log_file: str, rotation: str, retention: int
) -> logging.handlers.RotatingFileHandler:
    """
    Create a rotating file handler for log files.
    log_file: Path to the log file
    rotation: Rotation policy ('daily', 'weekly', 'monthly')
    retention: Number of backup files to keep
    """
    if rotation == "weekly":
        max_bytes = 50 * 1024 * 1024
    elif rotation == "monthly":
        max_bytes = 100 * 1024 * 1024
    else:
        max_bytes = 10 * 1024 * 1024

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=retention or 30,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_third_party_loggers(log_level: str) -> None:
    """Quiet noisy libraries."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)

    if get_settings().is_development:
        logging.getLogger("service").setLevel(logging.DEBUG)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_extractor_run(
    logger: structlog.stdlib.BoundLogger,
    extractor_name: str,
    status: str,
    fields: Optional[List[str]] = None,
    confidence: Optional[float] = None,
    duration_ms: Optional[float] = None,
    platform: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """
    Log a standardized extractor run for telemetry.
    status: 'success', 'skipped', 'filtered', 'timeout' or 'failure'
    """
    log_data: Dict[str, Any] = {
        "extractor": extractor_name,
        "status": status,
        "timestamp": _utc_now(),
    }

    if platform:
        log_data["platform"] = platform
    if fields is not None:
        log_data["fields"] = fields
        log_data["field_count"] = len(fields)
    if confidence is not None:
        log_data["confidence"] = confidence
    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)
    if error:
        log_data["error"] = error

    if status in ("failure", "timeout"):
        logger.warning("Extractor failed", **log_data)
    elif status == "success":
        logger.info("Extractor completed", **log_data)
    else:
        logger.debug("Extractor not used", **log_data)


def log_task_run(
    logger: structlog.stdlib.BoundLogger,
    task: str,
    success: bool,
    duration_ms: float,
    cache_hit: bool = False,
    fallback_used: bool = False,
    error: Optional[str] = None,
) -> None:
    """Log a generation task outcome with its provenance flags."""
    log_data: Dict[str, Any] = {
        "task": task,
        "success": success,
        "cache_hit": cache_hit,
        "fallback_used": fallback_used,
        "duration_ms": round(duration_ms, 2),
        "timestamp": _utc_now(),
    }
    if error:
        log_data["error"] = error

    if success:
        logger.info("Task completed", **log_data)
    else:
        logger.error("Task failed", **log_data)


def get_service_logger(service_name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger for a service module.
    service_name: Name of the service (e.g., 'TaskRunner')
    """
    return structlog.get_logger(f"service.{service_name}")


def get_api_logger(api_name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger for a api module.
    api_name: Name of the api (e.g., 'api')
    """
    return structlog.get_logger(f"api.{api_name}")
