"""Services module for the Product Page Optimizer."""
from .cache_store import CacheStore, SqliteCacheStore
from .task_cache import TaskCache
from .completion_provider import CompletionProvider, HttpCompletionProvider

__all__ = [
    "CacheStore",
    "SqliteCacheStore",
    "TaskCache",
    "CompletionProvider",
    "HttpCompletionProvider",
]
