"""Configuration module for the Product Page Optimizer."""
from .settings import Settings, settings, get_settings
from .logging_config import (
    setup_logging,
    get_service_logger,
    get_api_logger,
    log_extractor_run,
    log_task_run,
)

__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "setup_logging",
    "get_service_logger",
    "get_api_logger",
    "log_extractor_run",
    "log_task_run",
]
