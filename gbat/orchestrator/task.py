"""
Task — Unit of parallelizable work

One task per analyzed file:
- Task: function plus arguments, with a name for observability
- TaskResult: outcome of execution, success or captured failure

Design principles:
- Tasks are immutable after creation
- Tasks carry all context needed for execution (picklable for processes)
- A failing task yields a FAILED result; it never affects other tasks
"""

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

import xxhash


_sequence = itertools.count()


class TaskStatus(Enum):
    """Outcome of a finished task."""
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Task:
    """
    Unit of parallelizable work.

    Immutable after creation. `fn` must be a module-level function when
    the task runs in a process pool.
    """
    fn: Callable = field(default=None)
    args: tuple = field(default_factory=tuple)
    kwargs: Dict[str, Any] = field(default_factory=dict)

    # Metadata (for observability)
    name: str = ""
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    id: str = ""

    def __post_init__(self):
        if not self.id:
            object.__setattr__(self, "id", _generate_task_id(self.name, self.created_at))

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Task):
            return self.id == other.id
        return False


@dataclass
class TaskResult:
    """
    Outcome of task execution.

    Picklable for cross-process communication.
    """
    task_id: str
    status: TaskStatus
    name: str = ""
    result: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    # Timing
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_ms: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def failed(self) -> bool:
        return self.status == TaskStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "name": self.name,
            "status": self.status.value,
            "error": self.error,
            "error_type": self.error_type,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_ms": self.duration_ms,
        }


def _generate_task_id(name: str, timestamp: str) -> str:
    """Generate a task ID using xxhash; the sequence keeps same-instant tasks apart."""
    seed = f"{name}|{timestamp}|{next(_sequence)}"
    return xxhash.xxh64(seed.encode()).hexdigest()[:12]


def file_task(fn: Callable, args: tuple = (), kwargs: Dict[str, Any] = None, name: str = "") -> Task:
    """
    Create a per-file analysis task.

    Example:
        task = file_task(fn=analyze_file, args=(job,), name="src/app.py")
    """
    return Task(fn=fn, args=args, kwargs=kwargs or {}, name=name)


def execute_task(task: Task) -> TaskResult:
    """
    Run a task, capturing any failure in its result.

    Module-level so process pools can pickle it.
    """
    started_at = datetime.now(timezone.utc)

    try:
        result = task.fn(*task.args, **task.kwargs)
        status, error, error_type = TaskStatus.COMPLETED, None, None
    except Exception as e:
        result = None
        status, error, error_type = TaskStatus.FAILED, str(e), type(e).__name__

    completed_at = datetime.now(timezone.utc)
    return TaskResult(
        task_id=task.id,
        status=status,
        name=task.name,
        result=result,
        error=error,
        error_type=error_type,
        started_at=started_at.isoformat(),
        completed_at=completed_at.isoformat(),
        duration_ms=(completed_at - started_at).total_seconds() * 1000,
    )
