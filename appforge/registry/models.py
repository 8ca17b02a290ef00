"""Pydantic models for add-on descriptors.

An add-on is described on disk by an ``info.json`` document (camelCase keys)
that sits beside an optional ``package.json`` contribution, an optional
``README.md`` fragment and an optional ``assets/`` tree.  The descriptor is a
closed union discriminated on ``phase``; unknown keys are rejected.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from ..manifest import ManifestFragment

SETUP_PHASE = "setup"
FEATURE_PHASE = "add-on"
PHASES: tuple[str, ...] = (SETUP_PHASE, FEATURE_PHASE)


class _DescriptorModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class Provider(_DescriptorModel):
    """A JSX wrapper inserted around the router in ``main.tsx``."""

    open: str
    close: str


class MainContribution(_DescriptorModel):
    """Code an add-on contributes to the application entry point."""

    imports: list[str] = Field(default_factory=list)
    initialize: list[str] = Field(default_factory=list)
    providers: list[Provider] = Field(default_factory=list)


class LayoutContribution(_DescriptorModel):
    """Code an add-on contributes to the root layout."""

    imports: list[str] = Field(default_factory=list)
    jsx: str = ""


class UserUi(_DescriptorModel):
    """A component rendered in the header (e.g. a sign-in button)."""

    import_: str = Field(alias="import")
    jsx: str


class Route(_DescriptorModel):
    """A demo route added to the header navigation."""

    url: str
    name: str


class PostCommand(_DescriptorModel):
    """A command executed in the project root after the add-on's assets land."""

    command: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)

    def argv(self) -> list[str]:
        return [self.command, *self.args]


class _AddOnBase(_DescriptorModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    link: str = ""
    directory: Path
    manifest: ManifestFragment = Field(default_factory=ManifestFragment)
    readme: str | None = None
    main: list[MainContribution] = Field(default_factory=list)
    layout: LayoutContribution | None = None
    user_ui: UserUi | None = None
    routes: list[Route]
    shadcn_components: list[str] = Field(default_factory=list)
    warning: str | None = None
    command: PostCommand | None = None
    depends_on: list[str] = Field(default_factory=list)

    @property
    def assets_dir(self) -> Path:
        return self.directory / "assets"


class SetupAddOn(_AddOnBase):
    """Infrastructure add-on, composed before any feature add-on."""

    phase: Literal["setup"]


class FeatureAddOn(_AddOnBase):
    """Feature add-on; may build on files created by setup add-ons."""

    phase: Literal["add-on"]


AddOn = Annotated[Union[SetupAddOn, FeatureAddOn], Field(discriminator="phase")]

add_on_adapter: TypeAdapter[SetupAddOn | FeatureAddOn] = TypeAdapter(AddOn)
