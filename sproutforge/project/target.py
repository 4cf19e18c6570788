"""
Build targets.

A target is an application or framework with its own configuration and a
list of required targets. It owns one manifest per language.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from sproutforge.core.config import TargetConfig
from sproutforge.core.errors import TargetNotFoundError
from sproutforge.manifest.manifest import Manifest
from sproutforge.project.tasks import TaskInvoker, TaskRegistry

if TYPE_CHECKING:
    from sproutforge.project.project import Project


class Target:
    """A buildable unit within a project."""

    def __init__(
        self,
        target_name: str,
        config: TargetConfig | None = None,
        project: Project | None = None,
        buildfile: TaskInvoker | None = None,
    ):
        self.target_name = target_name
        self.config = config or TargetConfig()
        self.project = project
        self.buildfile = buildfile if buildfile is not None else TaskRegistry()

        self._manifests: dict[str, Manifest] = {}
        self._manifests_lock = threading.Lock()
        self._is_prepared = False
        self._is_preparing = False
        self._prepare_lock = threading.RLock()

    def __repr__(self) -> str:
        return f"Target({self.target_name!r})"

    def prepare(self) -> Target:
        """Run the optional ``target:prepare`` task once. Concurrent callers wait for it."""
        with self._prepare_lock:
            if self._is_prepared or self._is_preparing:
                return self
            self._is_preparing = True
            try:
                if self.buildfile.task_defined("target:prepare"):
                    self.buildfile.invoke(
                        "target:prepare", target=self, config=self.config, project=self.project
                    )
                self._is_prepared = True
            finally:
                self._is_preparing = False
        return self

    def required_targets(self) -> list[Target]:
        """
        Targets named in ``config.required``, in declaration order.

        Raises:
            TargetNotFoundError: If a name is not defined in the project.
        """
        if not self.config.required:
            return []
        if self.project is None:
            raise TargetNotFoundError(self.config.required[0], required_by=self.target_name)

        required = []
        for name in self.config.required:
            target = self.project.target_for(name)
            if target is None:
                raise TargetNotFoundError(name, required_by=self.target_name)
            required.append(target)
        return required

    def expand_required_targets(self) -> list[Target]:
        """All transitively required targets, depth first, each listed once."""
        expanded: list[Target] = []
        seen = {self.target_name}
        stack = list(reversed(self.required_targets()))

        while stack:
            target = stack.pop()
            if target.target_name in seen:
                continue
            seen.add(target.target_name)
            expanded.append(target)
            stack.extend(reversed(target.required_targets()))

        return expanded

    def manifest_for(self, language: str = "en") -> Manifest:
        """Return this target's manifest for a language, creating it on first use."""
        with self._manifests_lock:
            manifest = self._manifests.get(language)
            if manifest is None:
                manifest = Manifest(self, language=language)
                self._manifests[language] = manifest
            return manifest

    @property
    def manifests(self) -> list[Manifest]:
        return list(self._manifests.values())
