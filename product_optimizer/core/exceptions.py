"""
Exceptions for the Product Page Optimizer.

Defines the error taxonomy shared by the extraction pipeline, the task runner,
the cache and the provider adapter. Everything inherits from
OptimizerException and can carry a message and optional context.

Usage: from product_optimizer.core.exceptions import OptimizerException, ProviderException
"""

from typing import Any, Optional


class OptimizerException(Exception):
    """
    Base exception for all Product Page Optimizer errors.
    """

    def __init__(self, message: str, context: Optional[Any] = None):
        super().__init__(message)
        self.context = context


class ExtractorException(OptimizerException):
    """
    A single extractor raised or timed out. Contained by the pipeline.
    """

    pass


class NotAProductPageError(OptimizerException):
    """
    Extraction finished without a title. Never retried.
    """

    pass


class ProviderException(OptimizerException):
    """
    The generation provider raised, timed out or returned unusable content.
    """

    pass


class ValidationException(OptimizerException):
    """Provider output failed structural validation."""

    pass


class UnknownTaskException(OptimizerException):
    """Raised for a task kind with no registered handler."""

    pass


class CacheStoreException(OptimizerException):
    """Durable cache tier read or write failure."""

    pass


class ConfigurationException(OptimizerException):
    """Exception raised for configuration-related errors."""

    pass
