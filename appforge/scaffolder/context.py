"""Scaffold options and the resolved generation context.

``ScaffoldOptions`` is what the caller asks for; ``GenerationContext`` is the
validated, immutable configuration that every component reads during a run.
"""

from __future__ import annotations

from functools import cached_property
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..registry.models import AddOn

CODE_ROUTER = "code-router"
FILE_ROUTER = "file-router"

RouterMode = Literal["code-router", "file-router"]
PackageManager = Literal["npm", "yarn", "pnpm", "bun"]


class ScaffoldOptions(BaseModel):
    """Unresolved options for one scaffold run."""

    project_name: str = Field(..., min_length=1)
    typescript: bool = True
    mode: RouterMode = CODE_ROUTER
    tailwind: bool = False
    package_manager: PackageManager = "npm"
    add_ons: list[str] = Field(
        default_factory=list, description="Selected add-on ids, in selection order"
    )

    @field_validator("project_name")
    @classmethod
    def _plain_directory_name(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError("project name must be a plain directory name")
        return value


class GenerationContext(BaseModel):
    """Read-only configuration for a single generation run."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    typescript: bool
    mode: RouterMode
    tailwind: bool
    package_manager: PackageManager
    add_ons: tuple[AddOn, ...] = ()

    @model_validator(mode="after")
    def _add_ons_need_file_router(self) -> "GenerationContext":
        if self.add_ons and self.mode != FILE_ROUTER:
            raise ValueError("add-ons are only available in file-router mode")
        return self

    @cached_property
    def capabilities(self) -> frozenset[str]:
        """Ids of the enabled add-ons, computed once per context."""
        return frozenset(add_on.id for add_on in self.add_ons)

    @property
    def file_router(self) -> bool:
        return self.mode == FILE_ROUTER

    @property
    def code_router(self) -> bool:
        return self.mode == CODE_ROUTER

    def has(self, add_on_id: str) -> bool:
        """Whether the add-on with *add_on_id* is part of this run."""
        return add_on_id in self.capabilities

    def template_values(self) -> dict[str, Any]:
        """Build the Jinja2 context exposed to templates."""
        return {
            "project_name": self.project_name,
            "package_manager": self.package_manager,
            "typescript": self.typescript,
            "tailwind": self.tailwind,
            "file_router": self.file_router,
            "code_router": self.code_router,
            "js": "ts" if self.typescript else "js",
            "jsx": "tsx" if self.typescript else "jsx",
            "add_on_enabled": {add_on_id: True for add_on_id in sorted(self.capabilities)},
            "add_ons": list(self.add_ons),
        }
