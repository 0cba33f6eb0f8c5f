"""Core module for the Product Page Optimizer."""
from .exceptions import (
    OptimizerException,
    ExtractorException,
    NotAProductPageError,
    ProviderException,
    ValidationException,
    UnknownTaskException,
    CacheStoreException,
    ConfigurationException,
)

__all__ = [
    "OptimizerException",
    "ExtractorException",
    "NotAProductPageError",
    "ProviderException",
    "ValidationException",
    "UnknownTaskException",
    "CacheStoreException",
    "ConfigurationException",
]
