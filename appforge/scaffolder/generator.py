"""Main scaffolding orchestrator.

Takes ``ScaffoldOptions`` and generates a complete TanStack Router project
directory: base template, routing-mode variant, merged ``package.json``,
add-on assets (setup phase first, then feature add-ons), and the finishing
touches (``.gitignore``, README, shadcn components, dependency install).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from ..config import Config
from ..errors import ConfigurationError, TargetExistsError
from ..manifest import ManifestFragment, dump_manifest, load_fragment, load_manifest, merge_manifests
from ..registry import FEATURE_PHASE, SETUP_PHASE, AddOn, AddOnRegistry, add_ons_in_phase
from ..utils import (
    console,
    create_progress,
    format_command,
    print_success,
    print_summary_table,
    print_warning,
    run_checked,
    write_text,
)
from .composer import TemplateUnit, TreeComposer
from .context import FILE_ROUTER, GenerationContext, ScaffoldOptions
from .package_manager import install_command, start_script
from .templates import CodeFormatter, TemplateRenderer, create_formatter

START_ADD_ON = "start"
SHADCN_ADD_ON = "shadcn"
SHADCN_COMMAND: tuple[str, ...] = ("npx", "shadcn@canary", "add")


# ---------------------------------------------------------------------------
# Run state
# ---------------------------------------------------------------------------


class ScaffoldState(str, Enum):
    """Stages of a scaffold run, in order."""

    RESOLVING_OPTIONS = "resolving-options"
    CHECKING_TARGET = "checking-target"
    COMPOSING_BASE = "composing-base"
    COMPOSING_ROUTER_VARIANT = "composing-router-variant"
    WRITING_MANIFEST = "writing-manifest"
    COMPOSING_SETUP_ADD_ONS = "composing-setup-add-ons"
    COMPOSING_FEATURE_ADD_ONS = "composing-feature-add-ons"
    POST_PROCESSING = "post-processing"
    DONE = "done"
    ABORTED = "aborted"


_TRANSITIONS: dict[ScaffoldState, tuple[ScaffoldState, ...]] = {
    ScaffoldState.RESOLVING_OPTIONS: (ScaffoldState.CHECKING_TARGET,),
    ScaffoldState.CHECKING_TARGET: (ScaffoldState.COMPOSING_BASE, ScaffoldState.ABORTED),
    ScaffoldState.COMPOSING_BASE: (ScaffoldState.COMPOSING_ROUTER_VARIANT,),
    ScaffoldState.COMPOSING_ROUTER_VARIANT: (ScaffoldState.WRITING_MANIFEST,),
    ScaffoldState.WRITING_MANIFEST: (ScaffoldState.COMPOSING_SETUP_ADD_ONS,),
    ScaffoldState.COMPOSING_SETUP_ADD_ONS: (ScaffoldState.COMPOSING_FEATURE_ADD_ONS,),
    ScaffoldState.COMPOSING_FEATURE_ADD_ONS: (ScaffoldState.POST_PROCESSING,),
    ScaffoldState.POST_PROCESSING: (ScaffoldState.DONE,),
    ScaffoldState.DONE: (),
    ScaffoldState.ABORTED: (),
}

_PHASE_STATES: dict[str, ScaffoldState] = {
    SETUP_PHASE: ScaffoldState.COMPOSING_SETUP_ADD_ONS,
    FEATURE_PHASE: ScaffoldState.COMPOSING_FEATURE_ADD_ONS,
}


@dataclass
class ScaffoldResult:
    """Outcome of a successful run."""

    project_root: Path
    context: GenerationContext
    files: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    states: list[ScaffoldState] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Main scaffolding orchestrator.

    Runs the stages of :class:`ScaffoldState` strictly in sequence.  Every
    step is awaited before the next begins because later steps (append
    targets, add-on commands) depend on files written earlier.
    """

    def __init__(
        self,
        config: Config | None = None,
        registry: AddOnRegistry | None = None,
        formatter: CodeFormatter | None = None,
    ) -> None:
        self.config = config or Config()
        self.registry = registry or AddOnRegistry(self.config.add_ons_dir)
        self.renderer = TemplateRenderer(
            formatter or create_formatter(self.config.formatter, self.config.command_timeout)
        )
        self.composer = TreeComposer(self.renderer)
        self.state = ScaffoldState.RESOLVING_OPTIONS
        self.history: list[ScaffoldState] = [self.state]

    # -- Public API --------------------------------------------------------

    def resolve_options(self, options: ScaffoldOptions) -> GenerationContext:
        """Validate *options* and build the run's ``GenerationContext``.

        Raises:
            ConfigurationError: If add-ons are requested outside file-router
                mode, or the add-on selection cannot be resolved.
        """
        if options.add_ons and options.mode != FILE_ROUTER:
            raise ConfigurationError("Add-ons are only available for the file-router template")

        add_ons = self.registry.resolve(options.add_ons) if options.add_ons else []
        return GenerationContext(
            project_name=options.project_name,
            typescript=options.typescript,
            mode=options.mode,
            # Every add-on template assumes Tailwind.
            tailwind=options.tailwind or bool(add_ons),
            package_manager=options.package_manager,
            add_ons=tuple(add_ons),
        )

    async def generate(
        self, options: ScaffoldOptions, output_dir: str | Path | None = None
    ) -> ScaffoldResult:
        """Generate the project for *options*.

        Args:
            options: The requested configuration.
            output_dir: Parent directory for the project folder.  Defaults to
                ``config.output_dir``.

        Returns:
            A :class:`ScaffoldResult` describing what was written.

        Raises:
            ConfigurationError: Invalid options (nothing is written).
            TargetExistsError: The project directory already exists.
        """
        self.state = ScaffoldState.RESOLVING_OPTIONS
        self.history = [self.state]
        self.registry.reload()
        context = self.resolve_options(options)

        self._advance(ScaffoldState.CHECKING_TARGET)
        parent = Path(output_dir) if output_dir is not None else self.config.output_dir
        target = (parent / context.project_name).resolve()
        if target.exists():
            self._advance(ScaffoldState.ABORTED)
            raise TargetExistsError(target)

        result = ScaffoldResult(project_root=target, context=context)
        console.print(f"Creating a new TanStack app in [bold]{target}[/bold]...")

        self._advance(ScaffoldState.COMPOSING_BASE)
        await asyncio.to_thread(target.mkdir, parents=True)
        result.files.extend(await self._compose_base(target, context))

        self._advance(ScaffoldState.COMPOSING_ROUTER_VARIANT)
        result.files.extend(await self._compose_router_variant(target, context))

        self._advance(ScaffoldState.WRITING_MANIFEST)
        result.files.append(await self._write_manifest(target, context))

        for phase in (SETUP_PHASE, FEATURE_PHASE):
            self._advance(_PHASE_STATES[phase])
            for add_on in add_ons_in_phase(list(context.add_ons), phase):
                result.files.extend(await self._compose_add_on(add_on, target, context))

        self._advance(ScaffoldState.POST_PROCESSING)
        result.files.extend(await self._post_process(target, context))
        result.warnings = [a.warning for a in context.add_ons if a.warning]

        self._advance(ScaffoldState.DONE)
        result.states = list(self.history)
        self._report(result)
        return result

    # -- State machine -----------------------------------------------------

    def _advance(self, new_state: ScaffoldState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    # -- Base and router templates ------------------------------------------

    async def _compose_base(self, target: Path, context: GenerationContext) -> list[Path]:
        base = self.config.base_dir
        written: list[Path] = []

        written.extend(await self.composer.compose_tree(base / ".vscode", target / ".vscode", context))
        written.extend(await self.composer.compose_tree(base / "public", target / "public", context))

        units = [
            TemplateUnit.from_source(base / "vite.config.js.j2", target / "vite.config.js"),
            TemplateUnit.from_source(base / "src" / "styles.css.j2", target / "src" / "styles.css"),
            TemplateUnit.from_source(base / "src" / "logo.svg", target / "src" / "logo.svg"),
        ]
        if not context.tailwind:
            units.append(TemplateUnit.from_source(base / "src" / "App.css", target / "src" / "App.css"))
        if not context.has(START_ADD_ON):
            js = "ts" if context.typescript else "js"
            units.append(
                TemplateUnit.from_source(
                    base / "src" / "reportWebVitals.ts.j2",
                    target / "src" / f"reportWebVitals.{js}",
                )
            )
            units.append(TemplateUnit.from_source(base / "index.html.j2", target / "index.html"))
        if context.typescript:
            units.append(TemplateUnit.from_source(base / "tsconfig.json.j2", target / "tsconfig.json"))

        for unit in units:
            written.append(await self.composer.compose_unit(unit, context))
        return written

    async def _compose_router_variant(
        self, target: Path, context: GenerationContext
    ) -> list[Path]:
        base = self.config.base_dir
        router = self.config.router_dir(context.mode)
        jsx = "tsx" if context.typescript else "jsx"
        src = target / "src"

        if context.file_router:
            await asyncio.to_thread((src / "routes").mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread((src / "components").mkdir, parents=True, exist_ok=True)
            units = [
                TemplateUnit.from_source(
                    router / "src" / "components" / "Header.tsx.j2",
                    src / "components" / f"Header.{jsx}",
                ),
                TemplateUnit.from_source(
                    router / "src" / "routes" / "__root.tsx.j2", src / "routes" / f"__root.{jsx}"
                ),
                TemplateUnit.from_source(base / "src" / "App.tsx.j2", src / "routes" / f"index.{jsx}"),
            ]
        else:
            units = [
                TemplateUnit.from_source(base / "src" / "App.tsx.j2", src / f"App.{jsx}"),
                TemplateUnit.from_source(base / "src" / "App.test.tsx.j2", src / f"App.test.{jsx}"),
            ]

        if not context.has(START_ADD_ON):
            units.append(TemplateUnit.from_source(router / "src" / "main.tsx.j2", src / f"main.{jsx}"))

        written: list[Path] = []
        for unit in units:
            written.append(await self.composer.compose_unit(unit, context))
        return written

    # -- Manifest ----------------------------------------------------------

    def build_manifest(self, context: GenerationContext) -> dict[str, Any]:
        """Merge the base manifest with its variants and add-on contributions."""
        base_dir = self.config.base_dir
        router_dir = self.config.router_dir(context.mode)

        fragments: list[ManifestFragment] = []
        if context.typescript:
            fragments.append(load_fragment(base_dir / "package.ts.json"))
        if context.tailwind:
            fragments.append(load_fragment(base_dir / "package.tw.json"))
        if context.file_router:
            fragments.append(load_fragment(router_dir / "package.fr.json"))
        fragments.extend(
            add_on.manifest for add_on in context.add_ons if not add_on.manifest.is_empty()
        )

        return merge_manifests(
            load_manifest(base_dir / "package.json"),
            *fragments,
            name=context.project_name,
        )

    async def _write_manifest(self, target: Path, context: GenerationContext) -> Path:
        manifest = self.build_manifest(context)
        path = target / "package.json"
        await asyncio.to_thread(write_text, path, dump_manifest(manifest))
        return path

    # -- Add-ons -----------------------------------------------------------

    async def _compose_add_on(
        self, add_on: AddOn, target: Path, context: GenerationContext
    ) -> list[Path]:
        written: list[Path] = []
        with create_progress() as progress:
            progress.add_task(f"Setting up {add_on.name}...", total=None)
            if add_on.assets_dir.is_dir():
                written = await self.composer.compose_tree(add_on.assets_dir, target, context)
            if add_on.command is not None:
                await self._run(add_on.command.argv(), target)
        print_success(f"{add_on.name} setup complete")
        return written

    async def _run(self, cmd: list[str], cwd: Path) -> None:
        if not self.config.run_commands:
            console.print(f"[dim]Skipping command: {format_command(cmd)}[/dim]")
            return
        await run_checked(cmd, cwd=cwd, timeout=self.config.command_timeout)

    # -- Post-processing ---------------------------------------------------

    async def _post_process(self, target: Path, context: GenerationContext) -> list[Path]:
        base = self.config.base_dir
        written: list[Path] = []

        components = shadcn_components(context)
        if components:
            with create_progress() as progress:
                progress.add_task(
                    f"Installing shadcn components ({', '.join(components)})...", total=None
                )
                await self._run([*SHADCN_COMMAND, *components], target)
            print_success("Installed shadcn components")

        written.append(
            await self.composer.compose_unit(
                TemplateUnit.from_source(base / "gitignore", target / ".gitignore"), context
            )
        )
        written.append(
            await self.composer.compose_unit(
                TemplateUnit.from_source(base / "README.md.j2", target / "README.md"), context
            )
        )

        if self.config.install:
            with create_progress() as progress:
                progress.add_task(
                    f"Installing dependencies via {context.package_manager}...", total=None
                )
                await run_checked(
                    install_command(context.package_manager),
                    cwd=target,
                    timeout=self.config.command_timeout,
                )
            print_success("Installed dependencies")
        return written

    def _report(self, result: ScaffoldResult) -> None:
        context = result.context
        print_summary_table(
            {
                "Project": context.project_name,
                "Language": "TypeScript" if context.typescript else "JavaScript",
                "Router": context.mode,
                "Tailwind": "yes" if context.tailwind else "no",
                "Add-ons": ", ".join(a.id for a in context.add_ons) or "(none)",
                "Files written": str(len(set(result.files))),
            },
            title="Scaffold summary",
        )
        if result.warnings:
            print_warning("\n".join(result.warnings))

        print_success(f"Created your new TanStack app in {result.project_root}.")
        console.print(
            "\nUse the following commands to start your app:\n\n"
            f"% cd {context.project_name}\n"
            f"% {start_script(context.package_manager, context.has(START_ADD_ON))}\n\n"
            "Please read README.md for more information on testing, styling, "
            "adding routes, react-query, etc.\n",
            markup=False,
            highlight=False,
        )


def shadcn_components(context: GenerationContext) -> list[str]:
    """Union of the shadcn components requested by the selected add-ons.

    Empty unless the ``shadcn`` add-on itself is selected.  Order follows
    the first request of each component.
    """
    if not context.has(SHADCN_ADD_ON):
        return []
    components: list[str] = []
    for add_on in context.add_ons:
        for component in add_on.shadcn_components:
            if component not in components:
                components.append(component)
    return components
