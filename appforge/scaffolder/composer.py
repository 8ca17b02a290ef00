"""File tree composition.

Mirrors a template source tree into the target project, deciding per file
what happens to it from the qualifiers in its name:

* ``*.append``  -- appended to a file an earlier pass already wrote
* ``*.j2``      -- rendered with Jinja2, suffix dropped
* ``*.tw.*``    -- styling variant: used (qualifier dropped) only when
  Tailwind is enabled, in which case it replaces its plain sibling
* anything else -- copied byte for byte

Qualifiers combine, e.g. ``styles.tw.css.j2`` is a rendered styling variant.
"""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import MissingAppendTargetError
from ..utils import append_text, write_text
from .context import GenerationContext
from .templates import TemplateRenderer

APPEND_SUFFIX = ".append"
RENDER_SUFFIX = ".j2"
STYLE_QUALIFIER = ".tw"


class FileRule(str, Enum):
    """How a template source file becomes a target file."""

    COPY = "copy"
    RENDER = "render"
    STRIP_VARIANT = "strip-variant"
    APPEND = "append"


@dataclass(frozen=True)
class TemplateUnit:
    """One source file and where (and how) it lands in the project."""

    source: Path
    target: Path
    rule: FileRule

    @classmethod
    def from_source(cls, source: Path, target: Path | None = None) -> "TemplateUnit":
        """Classify *source*; *target* defaults to the source with qualifiers stripped.

        An explicit *target* is used verbatim, which lets callers rename
        files (``App.tsx.j2`` -> ``routes/index.tsx``).
        """
        name = source.name
        if name.endswith(APPEND_SUFFIX):
            rule = FileRule.APPEND
        elif name.endswith(RENDER_SUFFIX):
            rule = FileRule.RENDER
        elif is_style_variant(name):
            rule = FileRule.STRIP_VARIANT
        else:
            rule = FileRule.COPY
        return cls(source=source, target=target or source.with_name(target_name(name)), rule=rule)


def is_style_variant(name: str) -> bool:
    return f"{STYLE_QUALIFIER}." in name or name.endswith(STYLE_QUALIFIER)


def target_name(name: str) -> str:
    """Strip every recognised qualifier from a source file name.

    >>> target_name("styles.tw.css.j2")
    'styles.css'
    """
    if name.endswith(APPEND_SUFFIX):
        name = name[: -len(APPEND_SUFFIX)]
    elif name.endswith(RENDER_SUFFIX):
        name = name[: -len(RENDER_SUFFIX)]
    if name.endswith(STYLE_QUALIFIER):
        name = name[: -len(STYLE_QUALIFIER)]
    else:
        name = name.replace(f"{STYLE_QUALIFIER}.", ".", 1)
    return name


class TreeComposer:
    """Writes template units and whole template trees into a project."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    # -- Trees -----------------------------------------------------------------

    async def compose_tree(
        self,
        source_root: str | Path,
        target_root: str | Path,
        context: GenerationContext,
    ) -> list[Path]:
        """Recursively mirror *source_root* into *target_root*.

        Entries are processed in sorted order so the result does not depend
        on filesystem enumeration order.

        Returns:
            List of written (or appended-to) target paths.
        """
        source_root = Path(source_root)
        target_root = Path(target_root)
        await asyncio.to_thread(target_root.mkdir, parents=True, exist_ok=True)

        written: list[Path] = []
        entries = sorted(source_root.iterdir(), key=lambda p: p.name)
        replaced = _replaced_by_variants(entries, context.tailwind)

        for entry in entries:
            if entry.is_dir():
                written.extend(
                    await self.compose_tree(entry, target_root / entry.name, context)
                )
                continue
            if is_style_variant(entry.name) and not context.tailwind:
                continue
            if entry.name in replaced:
                continue

            unit = TemplateUnit.from_source(
                entry, target_root / target_name(entry.name)
            )
            written.append(await self.compose_unit(unit, context))

        return written

    # -- Single units ------------------------------------------------------------

    async def compose_unit(self, unit: TemplateUnit, context: GenerationContext) -> Path:
        """Materialise a single unit and return the target path."""
        if unit.rule is FileRule.APPEND:
            return await self._append(unit)
        if unit.rule is FileRule.RENDER:
            text = await asyncio.to_thread(unit.source.read_text, encoding="utf-8")
            content = await self.renderer.render_unit(
                text, unit.target, context, name=str(unit.source)
            )
            await asyncio.to_thread(write_text, unit.target, content)
            return unit.target

        await asyncio.to_thread(_copy_file, unit.source, unit.target)
        return unit.target

    async def _append(self, unit: TemplateUnit) -> Path:
        if not unit.target.is_file():
            raise MissingAppendTargetError(unit.source, unit.target)
        text = await asyncio.to_thread(unit.source.read_text, encoding="utf-8")
        await asyncio.to_thread(append_text, unit.target, text)
        return unit.target


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _replaced_by_variants(entries: list[Path], tailwind: bool) -> set[str]:
    """Names of plain files that a styling variant supersedes."""
    if not tailwind:
        return set()
    replaced: set[str] = set()
    for entry in entries:
        if entry.is_file() and is_style_variant(entry.name):
            plain = entry.name.replace(f"{STYLE_QUALIFIER}.", ".", 1)
            if entry.name.endswith(STYLE_QUALIFIER):
                plain = entry.name[: -len(STYLE_QUALIFIER)]
            replaced.add(plain)
    return replaced


def _copy_file(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
