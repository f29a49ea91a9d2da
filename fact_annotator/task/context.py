"""Per-context TaskService lookup.

Components that are not handed a TaskService explicitly use the one bound to
the current context, so tests can scope all background tasks of an agent to
a single service.
"""

import contextlib
import contextvars
from collections.abc import Generator

from .service import TaskService, TaskServiceImpl

__all__: list[str] = []

_current_service: contextvars.ContextVar[TaskService | None] = contextvars.ContextVar(
    "task_service", default=None
)


def get_task_service() -> TaskService:
    """Return the TaskService bound to the current context.

    A new TaskServiceImpl is bound on first use.
    """
    if (service := _current_service.get()) is None:
        service = TaskServiceImpl()
        _current_service.set(service)
    return service


@contextlib.contextmanager
def task_service_context(
    service: TaskService | None = None,
) -> Generator[TaskService, None, None]:
    """Bind a TaskService for the duration of the block.

    The previously bound service is restored on exit.
    """
    bound = service or TaskServiceImpl()
    token = _current_service.set(bound)
    try:
        yield bound
    finally:
        _current_service.reset(token)
