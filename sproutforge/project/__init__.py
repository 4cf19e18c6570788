"""Projects, targets and the task registry."""

from sproutforge.project.project import Project
from sproutforge.project.target import Target
from sproutforge.project.tasks import TaskInvoker, TaskRegistry

__all__ = ["Project", "Target", "TaskInvoker", "TaskRegistry"]
