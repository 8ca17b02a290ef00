"""appforge configuration.

Centralised, typed configuration for a scaffolding run.  Settings use Pydantic
v2 models so they are validated at construction time and can be loaded from
environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

_TRUTHY = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global appforge configuration.

    Instances are created once by the CLI entry point (or by tests) and then
    passed to :class:`~appforge.scaffolder.generator.ProjectGenerator`.
    """

    templates_dir: Path = Field(default=DEFAULT_TEMPLATES_DIR)
    output_dir: Path = Field(default=Path("."))
    install: bool = Field(default=True, description="Install dependencies when done")
    run_commands: bool = Field(
        default=True, description="Run add-on post-commands and shadcn installs"
    )
    formatter: Literal["prettier", "none"] = Field(default="prettier")
    command_timeout: int = Field(
        default=600, ge=1, description="Per-command timeout in seconds"
    )

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def base_dir(self) -> Path:
        """Template tree shared by every generated project."""
        return self.templates_dir / "base"

    def router_dir(self, mode: str) -> Path:
        """Template tree for a routing mode (``code-router`` or ``file-router``)."""
        return self.templates_dir / mode

    @property
    def add_ons_dir(self) -> Path:
        """Catalog of add-on packages."""
        return self.templates_dir / "add-ons"

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            APPFORGE_TEMPLATES_DIR, APPFORGE_OUTPUT_DIR, APPFORGE_INSTALL,
            APPFORGE_RUN_COMMANDS, APPFORGE_FORMATTER, APPFORGE_COMMAND_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("APPFORGE_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["APPFORGE_TEMPLATES_DIR"])
        if os.environ.get("APPFORGE_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["APPFORGE_OUTPUT_DIR"])
        if os.environ.get("APPFORGE_INSTALL"):
            kwargs["install"] = os.environ["APPFORGE_INSTALL"].lower() in _TRUTHY
        if os.environ.get("APPFORGE_RUN_COMMANDS"):
            kwargs["run_commands"] = os.environ["APPFORGE_RUN_COMMANDS"].lower() in _TRUTHY
        if os.environ.get("APPFORGE_FORMATTER"):
            kwargs["formatter"] = os.environ["APPFORGE_FORMATTER"]
        if os.environ.get("APPFORGE_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["APPFORGE_COMMAND_TIMEOUT"])
        return cls(**kwargs)
