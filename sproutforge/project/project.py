"""
Projects: a named collection of targets sharing one task registry.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sproutforge.core.config import ProjectConfig, TargetConfig
from sproutforge.core.logger import get_logger
from sproutforge.project.target import Target
from sproutforge.project.tasks import TaskInvoker, TaskRegistry

if TYPE_CHECKING:
    from sproutforge.manifest.manifest import Manifest

logger = get_logger(__name__)


class Project:
    """Holds every target and resolves target names."""

    def __init__(
        self,
        name: str = "project",
        project_root: str | Path = ".",
        buildfile: TaskInvoker | None = None,
    ):
        self.name = name
        self.project_root = Path(project_root)
        self.buildfile = buildfile if buildfile is not None else TaskRegistry()
        self.targets: dict[str, Target] = {}

    def __repr__(self) -> str:
        return f"Project({self.name!r}, targets={sorted(self.targets)})"

    def add_target(
        self,
        target_name: str,
        config: TargetConfig | None = None,
        buildfile: TaskInvoker | None = None,
    ) -> Target:
        """
        Add a target.

        Raises:
            ValueError: If a target with that name already exists.
        """
        if target_name in self.targets:
            raise ValueError(f"Target '{target_name}' already exists")

        target = Target(
            target_name,
            config=config,
            project=self,
            buildfile=buildfile if buildfile is not None else self.buildfile,
        )
        self.targets[target_name] = target
        return target

    def target_for(self, target_name: str) -> Target | None:
        """Look up a target by name. Leading slashes are ignored."""
        target = self.targets.get(target_name)
        if target is None and target_name.startswith("/"):
            target = self.targets.get(target_name.lstrip("/"))
        return target

    def build_manifests(self, language: str | None = None) -> list[Manifest]:
        """
        Build every target's manifests.

        Args:
            language: Only build this language. Defaults to each target's
                configured languages.

        Returns:
            The built manifests.
        """
        built = []
        for target in self.targets.values():
            languages = [language] if language else target.config.languages
            for lang in languages:
                built.append(target.manifest_for(lang).build())
        logger.info("Built %d manifests for project %s", len(built), self.name)
        return built

    @classmethod
    def from_config(cls, config: ProjectConfig, buildfile: TaskInvoker | None = None) -> Project:
        """Create a project and its targets from a config."""
        project = cls(name=config.name, project_root=config.project_root, buildfile=buildfile)
        for target_name, target_config in config.targets.items():
            project.add_target(target_name, config=target_config)
        return project

    @classmethod
    def load(cls, path: str | Path, buildfile: TaskInvoker | None = None) -> Project:
        """Load a project from a YAML config file."""
        return cls.from_config(ProjectConfig.from_yaml(path), buildfile=buildfile)
