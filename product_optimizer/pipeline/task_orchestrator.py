"""
Task orchestrator for the Product Page Optimizer.

Runs the fixed set of generation tasks against one product record and
aggregates the responses. Tasks run concurrently by default; with a progress
callback they can run one at a time and report start/done/error events.
"""

import asyncio
import inspect
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Union

from product_optimizer.config import get_service_logger
from product_optimizer.models import (
    OptimizationResult,
    ProductRecord,
    ProgressEvent,
    TaskKind,
    TaskRequest,
    TaskResponse,
)
from product_optimizer.processing.task_handlers import TASK_HANDLERS
from product_optimizer.processing.task_runner import TaskRunner


logger = get_service_logger(__name__)

ProgressCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]

TASK_ORDER = [TaskKind.LONG_TAIL, TaskKind.META, TaskKind.BULLETS, TaskKind.GAPS]


class TaskOrchestrator:
    """
    Fan-out of the four generation tasks.

    Both execution modes produce identical responses for identical inputs;
    they differ only in scheduling and progress reporting.
    """

    def __init__(self, runner: Optional[TaskRunner] = None):
        self.runner = runner or TaskRunner()

    @staticmethod
    def build_requests(record: ProductRecord, offline: bool = False) -> List[TaskRequest]:
        """Task requests in the fixed order, with the inputs that key the cache."""
        return [
            TaskRequest(
                task=kind.value,
                input=TASK_HANDLERS[kind].cache_input(record),
                offline=offline,
            )
            for kind in TASK_ORDER
        ]

    async def optimize(
        self,
        record: ProductRecord,
        offline: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        sequential: Optional[bool] = None,
    ) -> List[TaskResponse]:
        """
        Run every task for ``record``.

        Args:
            record: Product to optimize
            offline: Skip the provider for every task
            on_progress: Optional sync or async callback for ProgressEvents
            sequential: Run tasks one by one; defaults to True when a
                callback is given

        Returns:
            One TaskResponse per task kind, in the fixed task order.
        """
        requests = self.build_requests(record, offline)
        if sequential is None:
            sequential = on_progress is not None

        logger.info(
            "Optimizing product",
            title=record.title,
            offline=offline,
            mode="sequential" if sequential else "concurrent",
        )

        if sequential:
            responses = []
            for request in requests:
                responses.append(await self._run_one(request, record, on_progress))
            return responses

        return list(
            await asyncio.gather(
                *(self._run_one(request, record, on_progress) for request in requests)
            )
        )

    async def optimize_product(
        self,
        record: ProductRecord,
        offline: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        sequential: Optional[bool] = None,
    ) -> OptimizationResult:
        responses = await self.optimize(record, offline, on_progress, sequential)
        return self.aggregate(record, responses)

    async def refresh(
        self, result: OptimizationResult, offline: bool = False
    ) -> OptimizationResult:
        """Re-run the tasks for an existing result's product without re-extracting."""
        responses = await self.optimize(result.product, offline)
        return self.aggregate(result.product, responses)

    @staticmethod
    def aggregate(
        record: ProductRecord, responses: List[TaskResponse]
    ) -> OptimizationResult:
        by_task = {r.task: r.data for r in responses if r.success}
        return OptimizationResult(
            product=record,
            long_tail=by_task.get(TaskKind.LONG_TAIL.value),
            meta=by_task.get(TaskKind.META.value),
            rewritten_bullets=by_task.get(TaskKind.BULLETS.value),
            gaps=by_task.get(TaskKind.GAPS.value),
            responses=responses,
            timestamp=datetime.now(timezone.utc),
        )

    async def _run_one(
        self,
        request: TaskRequest,
        record: ProductRecord,
        on_progress: Optional[ProgressCallback],
    ) -> TaskResponse:
        await self._emit(on_progress, ProgressEvent(task=request.task, status="start"))
        try:
            response = await self.runner.run_task(request, record)
        except Exception as e:
            await self._emit(
                on_progress,
                ProgressEvent(task=request.task, status="error", error=str(e)),
            )
            raise

        status = "done" if response.success else "error"
        await self._emit(
            on_progress,
            ProgressEvent(
                task=request.task, status=status, response=response, error=response.error
            ),
        )
        return response

    @staticmethod
    async def _emit(callback: Optional[ProgressCallback], event: ProgressEvent) -> None:
        if callback is None:
            return
        try:
            result: Any = callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(
                "Progress callback failed", task=event.task, status=event.status, error=str(e)
            )
