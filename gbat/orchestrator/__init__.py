"""
Task Orchestrator — Bounded parallel execution of per-file analyses

Files are independent, so their replays run side by side, at most
`workers` at a time. Results come back in submission order; a file whose
task fails yields a FAILED TaskResult and never disturbs the others.

Usage:
    from gbat.orchestrator import TaskOrchestrator, file_task

    with TaskOrchestrator(config) as orchestrator:
        results = orchestrator.run([file_task(analyze_file, (job,), name=path)
                                    for job, path in jobs])

Configuration via environment variables:
    GBAT_PARALLEL_ENABLED=true    # Enable/disable parallelization
    GBAT_ANALYZER_WORKERS=3       # Files analyzed concurrently
    GBAT_USE_PROCESSES=true       # Process pool (true) or thread pool (false)
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .config import OrchestratorConfig
from .pools import PoolStats, WorkerPool
from .task import Task, TaskResult, TaskStatus, execute_task, file_task


logger = logging.getLogger(__name__)


class TaskOrchestrator:
    """
    Central coordinator for parallel file analysis.

    Falls back to sequential execution in the calling thread when
    parallelization is disabled.

    Thread Safety:
    - Pool creation is guarded by a lock
    - Results are gathered by the caller only (single writer)
    """

    def __init__(self, config: Optional[OrchestratorConfig] = None):
        self._config = config or OrchestratorConfig.from_env()
        self._config.validate()

        self._lock = threading.Lock()
        self._pool: Optional[WorkerPool] = None
        self._shutdown = False

    def __enter__(self) -> 'TaskOrchestrator':
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    def _ensure_pool(self) -> WorkerPool:
        with self._lock:
            if self._pool is None:
                self._pool = WorkerPool(self._config)
            return self._pool

    def run(
        self,
        tasks: List[Task],
        on_result: Optional[Callable[[TaskResult], None]] = None,
    ) -> List[TaskResult]:
        """
        Execute tasks, returning results in submission order.

        Args:
            tasks: Tasks to run
            on_result: Called in the calling thread for each result, in order

        Raises:
            RuntimeError: If the orchestrator is shut down
        """
        if self._shutdown:
            raise RuntimeError("Orchestrator is shut down")

        if not tasks:
            return []

        if not self._config.enabled:
            results = []
            for task in tasks:
                result = execute_task(task)
                if on_result:
                    on_result(result)
                results.append(result)
            return results

        pool = self._ensure_pool()
        futures = [pool.submit(task) for task in tasks]

        results = []
        for task, future in zip(tasks, futures):
            try:
                result = future.result()
            except Exception as e:
                # Worker crashed or the result could not be sent back
                logger.warning("Task %s crashed: %s", task.name or task.id, e)
                result = TaskResult(
                    task_id=task.id,
                    status=TaskStatus.FAILED,
                    name=task.name,
                    error=str(e),
                    error_type=type(e).__name__,
                    completed_at=datetime.now(timezone.utc).isoformat(),
                )
            if on_result:
                on_result(result)
            results.append(result)

        return results

    def stats(self) -> PoolStats:
        if self._pool is None:
            return PoolStats()
        return self._pool.stats()

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the worker pool."""
        self._shutdown = True
        if self._pool is not None:
            self._pool.shutdown(wait=wait)
            self._pool = None


__all__ = [
    'TaskOrchestrator', 'OrchestratorConfig', 'WorkerPool', 'PoolStats',
    'Task', 'TaskResult', 'TaskStatus', 'execute_task', 'file_task',
]
