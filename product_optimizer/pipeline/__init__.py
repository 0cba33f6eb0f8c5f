"""Pipeline module for the Product Page Optimizer."""
from .extraction_pipeline import ExtractionPipeline
from .task_orchestrator import TaskOrchestrator, TASK_ORDER

__all__ = ["ExtractionPipeline", "TaskOrchestrator", "TASK_ORDER"]
