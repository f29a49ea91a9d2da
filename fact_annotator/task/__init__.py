"""Task tracking module for fact-annotator.

This module provides a task tracking service that runs the long lived
reconciliation loops and restarts the ones that crash.
"""

from .context import task_service_context, get_task_service
from .service import TaskService

__all__ = ["get_task_service", "task_service_context", "TaskService"]
