"""Processing module for the Product Page Optimizer."""
from .gap_detector import classify_gap_score, detect_gaps, get_expected_attributes
from .heuristics import (
    heuristic_bullets,
    heuristic_gaps,
    heuristic_long_tail,
    heuristic_meta,
)
from .task_handlers import TASK_HANDLERS, TaskHandler, get_task_handler
from .task_runner import TaskRunner, parse_completion
from .product_scraper import ProductScraper

__all__ = [
    "classify_gap_score",
    "detect_gaps",
    "get_expected_attributes",
    "heuristic_bullets",
    "heuristic_gaps",
    "heuristic_long_tail",
    "heuristic_meta",
    "TASK_HANDLERS",
    "TaskHandler",
    "get_task_handler",
    "TaskRunner",
    "parse_completion",
    "ProductScraper",
]
