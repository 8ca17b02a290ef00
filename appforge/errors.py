"""Exception hierarchy for the scaffolding engine.

Every failure raised by appforge derives from :class:`ScaffoldError`.  Only
:class:`TargetExistsError` is an expected outcome (the pre-flight abort);
everything else ends the run.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""


class ConfigurationError(ScaffoldError):
    """Raised when the requested options cannot be combined.

    Detected while resolving options, before anything touches the disk.
    """


class TargetExistsError(ScaffoldError):
    """Raised when the target project directory already exists."""

    def __init__(self, target: Path) -> None:
        self.target = Path(target)
        super().__init__(f'Directory "{self.target}" already exists')


class RegistryLoadError(ScaffoldError):
    """Raised when an add-on catalog entry is missing or malformed."""

    def __init__(self, entry: str, message: str) -> None:
        self.entry = entry
        super().__init__(f"Add-on '{entry}': {message}")


class RenderError(ScaffoldError):
    """Raised when a template fails to render or its output fails to format."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = str(path)
        super().__init__(f"Failed to render {self.path}: {message}")


class MissingAppendTargetError(ScaffoldError):
    """Raised when an ``.append`` file has no previously written target."""

    def __init__(self, source: Path, target: Path) -> None:
        self.source = Path(source)
        self.target = Path(target)
        super().__init__(
            f"Cannot append {self.source.name}: target {self.target} does not exist yet"
        )


class ManifestParseError(ScaffoldError):
    """Raised when a manifest fragment is not valid JSON or has the wrong shape."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = str(path)
        super().__init__(f"Malformed manifest {self.path}: {message}")


class CommandError(ScaffoldError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(
        self, message: str, command: str = "", returncode: int = 1, stderr: str = ""
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)
