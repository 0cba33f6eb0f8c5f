"""
Task runner for the Product Page Optimizer.

Runs one generation task against a product record:
cache check -> provider call -> validation -> heuristic fallback.
The response has the same shape whichever path produced the data.
"""

import asyncio
import json
import time
from typing import Any, Optional, Tuple

from product_optimizer.config import get_service_logger, get_settings, log_task_run
from product_optimizer.core.exceptions import (
    OptimizerException,
    ProviderException,
    UnknownTaskException,
    ValidationException,
)
from product_optimizer.models import ProductRecord, TaskRequest, TaskResponse
from product_optimizer.services import CompletionProvider, TaskCache
from product_optimizer.utils import task_fingerprint
from .task_handlers import TaskHandler, get_task_handler
from .validators import to_wire


logger = get_service_logger(__name__)
settings = get_settings()


def parse_completion(raw: str) -> Any:
    """
    Parse a provider completion as JSON, stripping Markdown code fences.

    Raises:
        ProviderException: If the text is not valid JSON
    """
    text = (raw or "").strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError) as e:
        raise ProviderException(f"Provider output is not valid JSON: {e}")


class TaskRunner:
    """
    Executes tasks with caching and deterministic fallback.

    The runner holds no state across calls apart from its injected cache.
    """

    def __init__(
        self,
        cache: Optional[TaskCache] = None,
        provider: Optional[CompletionProvider] = None,
        provider_timeout: Optional[float] = None,
    ):
        self.cache = cache if cache is not None else TaskCache()
        self.provider = provider
        self.provider_timeout = (
            settings.provider_timeout if provider_timeout is None else provider_timeout
        )

    async def run_task(self, request: TaskRequest, record: ProductRecord) -> TaskResponse:
        """
        Run a single task.

        Args:
            request: Task kind, input payload and offline flag
            record: Product the task is about

        Returns:
            TaskResponse. Only an unknown task kind yields success=False.
        """
        start_time = time.perf_counter()
        task = getattr(request.task, "value", request.task)

        handler = get_task_handler(task)
        if handler is None:
            failure = UnknownTaskException(f"Unknown task: {task}", task)
            response = TaskResponse(
                task=task,
                success=False,
                data=None,
                elapsed_ms=self._elapsed(start_time),
                error=str(failure),
            )
            log_task_run(logger, task, False, response.elapsed_ms, error=response.error)
            return response

        # Record fields the handler reads key the entry even when the caller omits them
        key_input = {**handler.cache_input(record), **request.input}
        key = task_fingerprint(
            handler.kind.value, key_input, record.url, record.platform.value
        )

        cached = await self._from_cache(handler, key)
        if cached is not None:
            data, source = cached
            response = TaskResponse(
                task=task,
                success=True,
                data=data,
                elapsed_ms=self._elapsed(start_time),
                fallback_used=source == "heuristic",
                cache_hit=True,
            )
            log_task_run(
                logger,
                task,
                True,
                response.elapsed_ms,
                cache_hit=True,
                fallback_used=response.fallback_used,
            )
            return response

        error: Optional[str] = None
        data = None
        if self._should_call_provider(handler, request):
            try:
                data = await self._from_provider(handler, request, record)
            except Exception as e:
                error = str(e) or e.__class__.__name__
                logger.warning(
                    "Provider path failed, using heuristic",
                    task=task,
                    error_type=e.__class__.__name__,
                    error=error,
                )

        fallback_used = data is None
        if fallback_used:
            data = handler.validate(handler.heuristic(record))

        self.cache.set(key, to_wire(data), "heuristic" if fallback_used else "provider")

        response = TaskResponse(
            task=task,
            success=True,
            data=data,
            elapsed_ms=self._elapsed(start_time),
            fallback_used=fallback_used,
            error=error,
        )
        log_task_run(
            logger,
            task,
            True,
            response.elapsed_ms,
            fallback_used=fallback_used,
            error=error,
        )
        return response

    def _should_call_provider(self, handler: TaskHandler, request: TaskRequest) -> bool:
        return not (handler.heuristic_only or request.offline or self.provider is None)

    async def _from_cache(
        self, handler: TaskHandler, key: str
    ) -> Optional[Tuple[Any, str]]:
        entry = await self.cache.get(key, handler.ttl_seconds)
        if entry is None:
            return None
        try:
            return handler.validate(entry.value), entry.source
        except ValidationException as e:
            logger.warning("Discarding invalid cache entry", key=key, error=str(e))
            return None

    async def _from_provider(
        self, handler: TaskHandler, request: TaskRequest, record: ProductRecord
    ) -> Any:
        prompt = handler.build_prompt(record, request.input)
        try:
            raw = await asyncio.wait_for(
                self.provider.complete(prompt), timeout=self.provider_timeout
            )
        except asyncio.TimeoutError:
            raise ProviderException(
                f"Provider timed out after {self.provider_timeout}s"
            )
        except OptimizerException:
            raise
        except Exception as e:
            raise ProviderException(f"Provider call failed: {e}")

        parsed = parse_completion(raw)
        return handler.validate(handler.normalize(parsed, record))

    @staticmethod
    def _elapsed(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000
