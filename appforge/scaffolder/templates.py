"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which renders template text against the
run's :class:`~appforge.scaffolder.context.GenerationContext`, and the code
formatters applied to TypeScript output before it is written.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Protocol

from jinja2 import Environment, StrictUndefined, TemplateError

from ..errors import RenderError
from ..utils import run_command
from .context import GenerationContext

# Targets with these suffixes are passed through the code formatter.
FORMATTED_SUFFIXES: tuple[str, ...] = (".ts", ".tsx")

PRETTIER_OPTIONS: tuple[str, ...] = (
    "--no-semi",
    "--single-quote",
    "--trailing-comma",
    "all",
    "--parser",
    "typescript",
)


# ---------------------------------------------------------------------------
# Code formatters
# ---------------------------------------------------------------------------


class CodeFormatter(Protocol):
    async def format(self, source: str, filename: str) -> str: ...


class NullFormatter:
    """Returns source unchanged."""

    async def format(self, source: str, filename: str) -> str:
        return source


class PrettierFormatter:
    """Formats TypeScript through ``prettier`` read from stdin.

    The style is fixed: no semicolons, single quotes, trailing commas
    everywhere.
    """

    def __init__(
        self,
        command: tuple[str, ...] = ("npx", "--yes", "prettier"),
        timeout: int = 120,
    ) -> None:
        self.command = command
        self.timeout = timeout

    async def format(self, source: str, filename: str) -> str:
        cmd = [*self.command, "--stdin-filepath", filename, *PRETTIER_OPTIONS]
        try:
            returncode, stdout, stderr = await run_command(
                cmd, timeout=self.timeout, input_text=source
            )
        except FileNotFoundError as exc:
            raise RenderError(filename, f"formatter not found: {self.command[0]}") from exc
        if returncode != 0:
            raise RenderError(filename, f"formatting failed: {stderr or 'unknown error'}")
        return stdout


def create_formatter(name: str, timeout: int = 120) -> CodeFormatter:
    """Return the formatter registered under *name* (``prettier`` or ``none``)."""
    if name == "none":
        return NullFormatter()
    if name == "prettier":
        return PrettierFormatter(timeout=timeout)
    raise ValueError(f"Unknown formatter: {name}")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 template text for project scaffolding.

    Rendering is pure: the same text and context always give the same
    output.  Undefined names are errors rather than silently empty strings.
    """

    def __init__(self, formatter: CodeFormatter | None = None) -> None:
        self.formatter: CodeFormatter = formatter or NullFormatter()
        self.env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    # -- Rendering -----------------------------------------------------------

    def render(
        self,
        template_text: str,
        context: GenerationContext | Mapping[str, Any],
        name: str = "<template>",
    ) -> str:
        """Render *template_text* with the given context.

        Raises:
            RenderError: On template syntax errors, undefined names, or
                errors raised while evaluating an expression.
        """
        values = (
            context.template_values()
            if isinstance(context, GenerationContext)
            else dict(context)
        )
        try:
            template = self.env.from_string(template_text)
            return template.render(**values)
        except TemplateError as exc:
            raise RenderError(name, str(exc)) from exc
        except (TypeError, ValueError, ArithmeticError, AttributeError, LookupError) as exc:
            raise RenderError(name, f"{type(exc).__name__}: {exc}") from exc

    async def render_unit(
        self,
        template_text: str,
        target: str | Path,
        context: GenerationContext | Mapping[str, Any],
        name: str | None = None,
    ) -> str:
        """Render a template destined for *target*, formatting code targets."""
        target_name = str(target)
        content = self.render(template_text, context, name or target_name)
        if needs_formatting(target_name):
            content = await self.formatter.format(content, Path(target_name).name)
        return content


def needs_formatting(target: str | Path) -> bool:
    """Whether *target* is a source file the formatter should process."""
    return str(target).endswith(FORMATTED_SUFFIXES)
