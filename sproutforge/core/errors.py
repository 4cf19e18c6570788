"""Exception hierarchy."""


class SproutForgeError(Exception):
    """Base class for all build errors."""


class ConfigError(SproutForgeError):
    """A project or target configuration could not be loaded."""


class TargetNotFoundError(SproutForgeError):
    """A target references a required target the project does not define."""

    def __init__(self, target_name: str, required_by: str | None = None):
        self.target_name = target_name
        self.required_by = required_by
        if required_by:
            message = f"Target '{required_by}' requires unknown target '{target_name}'"
        else:
            message = f"Unknown target '{target_name}'"
        super().__init__(message)


class SpriteError(SproutForgeError):
    """The spriting pass cannot continue."""


class BuildTaskError(SproutForgeError):
    """A named build task is not defined in the task registry."""

    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"Build task '{task_name}' is not defined")
