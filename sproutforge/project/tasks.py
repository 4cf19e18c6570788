"""
Task registry.

The registry is the only way the manifest pipeline reaches build logic:
it asks whether a named task exists and invokes it with a context.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from sproutforge.core.errors import BuildTaskError

TaskFn = Callable[..., Any]


class TaskInvoker(Protocol):
    """What manifests and targets need from a task registry."""

    def task_defined(self, name: str) -> bool:
        ...

    def invoke(self, name: str, /, **context: Any) -> Any:
        ...


class TaskRegistry:
    """
    Named build tasks.

    Tasks are plain callables taking keyword context
    (``manifest``, ``target``, ``config``, ``project`` and task-specific keys).
    Unused context keys must be accepted through ``**kwargs``.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, TaskFn] = {}

    def register(self, name: str, fn: TaskFn) -> TaskFn:
        """Register or replace a task."""
        self._tasks[name] = fn
        return fn

    def task(self, name: str) -> Callable[[TaskFn], TaskFn]:
        """
        Decorator form of ``register``.

        Example:
            >>> registry = TaskRegistry()
            >>> @registry.task("manifest:build")
            ... def build(manifest, **kwargs):
            ...     manifest.add_entry("core.js")
        """

        def decorator(fn: TaskFn) -> TaskFn:
            return self.register(name, fn)

        return decorator

    def task_defined(self, name: str) -> bool:
        return name in self._tasks

    def invoke(self, name: str, /, **context: Any) -> Any:
        """
        Run a task.

        Raises:
            BuildTaskError: If no task has that name.
        """
        fn = self._tasks.get(name)
        if fn is None:
            raise BuildTaskError(name)
        return fn(**context)

    @property
    def task_names(self) -> list[str]:
        return sorted(self._tasks)
