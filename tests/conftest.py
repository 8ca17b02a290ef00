"""Shared pytest fixtures for the appforge test suite.

Provides reusable fixtures for:
- A private copy of the bundled template catalog (with an empty add-on dir)
- A factory that writes add-on catalog entries
- Generation contexts and configs that never spawn processes
- A recording code formatter
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Callable

import pytest

from appforge.config import DEFAULT_TEMPLATES_DIR, Config
from appforge.errors import RenderError
from appforge.registry import AddOnRegistry
from appforge.scaffolder.context import GenerationContext


# ---------------------------------------------------------------------------
# Template catalog
# ---------------------------------------------------------------------------

@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Copy of the bundled base/router templates with an empty add-on catalog."""
    root = tmp_path / "templates"
    for name in ("base", "code-router", "file-router"):
        shutil.copytree(DEFAULT_TEMPLATES_DIR / name, root / name)
    (root / "add-ons").mkdir()
    yield root


@pytest.fixture
def catalog_dir(templates_dir: Path) -> Path:
    """The add-on catalog inside ``templates_dir``."""
    return templates_dir / "add-ons"


def write_add_on(
    catalog: Path,
    add_on_id: str,
    info: dict[str, Any] | str | None = None,
    *,
    manifest: dict[str, Any] | str | None = None,
    readme: str | None = None,
    assets: dict[str, str] | None = None,
) -> Path:
    """Write one add-on entry into *catalog* and return its directory.

    *info* defaults to a minimal valid ``add-on`` phase descriptor.  Dict
    descriptors get an empty ``routes`` list unless they set one.  Strings
    are written verbatim so tests can produce malformed JSON.
    """
    entry = catalog / add_on_id
    entry.mkdir(parents=True)
    if info is None:
        info = {
            "name": add_on_id.title(),
            "description": f"The {add_on_id} add-on",
            "phase": "add-on",
            "routes": [],
        }
    elif isinstance(info, dict):
        info = {"routes": [], **info}
    (entry / "info.json").write_text(
        info if isinstance(info, str) else json.dumps(info), encoding="utf-8"
    )
    if manifest is not None:
        (entry / "package.json").write_text(
            manifest if isinstance(manifest, str) else json.dumps(manifest),
            encoding="utf-8",
        )
    if readme is not None:
        (entry / "README.md").write_text(readme, encoding="utf-8")
    for rel, content in (assets or {}).items():
        path = entry / "assets" / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return entry


@pytest.fixture
def make_add_on(catalog_dir: Path) -> Callable[..., Path]:
    """Factory writing add-on entries into the test catalog."""

    def factory(add_on_id: str, info: dict[str, Any] | str | None = None, **kwargs: Any) -> Path:
        return write_add_on(catalog_dir, add_on_id, info, **kwargs)

    return factory


@pytest.fixture
def registry(catalog_dir: Path) -> AddOnRegistry:
    return AddOnRegistry(catalog_dir)


# ---------------------------------------------------------------------------
# Config & context
# ---------------------------------------------------------------------------

@pytest.fixture
def config(templates_dir: Path, tmp_path: Path) -> Config:
    """Config that writes under tmp_path and never runs external commands."""
    return Config(
        templates_dir=templates_dir,
        output_dir=tmp_path / "out",
        install=False,
        run_commands=False,
        formatter="none",
    )


@pytest.fixture
def make_context() -> Callable[..., GenerationContext]:
    """Factory for ``GenerationContext`` with sensible defaults."""

    def factory(**overrides: Any) -> GenerationContext:
        values: dict[str, Any] = {
            "project_name": "demo",
            "typescript": True,
            "mode": "code-router",
            "tailwind": False,
            "package_manager": "npm",
            "add_ons": (),
        }
        values.update(overrides)
        return GenerationContext(**values)

    return factory


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

class RecordingFormatter:
    """Formatter double that tags its output and records each call."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[str] = []
        self.fail_on = fail_on

    async def format(self, source: str, filename: str) -> str:
        self.calls.append(filename)
        if self.fail_on is not None and filename == self.fail_on:
            raise RenderError(filename, "formatting failed: SyntaxError")
        return source.rstrip("\n") + "\n// formatted\n"


@pytest.fixture
def recording_formatter() -> RecordingFormatter:
    return RecordingFormatter()


@pytest.fixture
def failing_formatter() -> Callable[[str], RecordingFormatter]:
    """Factory for a formatter that rejects one file name."""

    def factory(filename: str) -> RecordingFormatter:
        return RecordingFormatter(fail_on=filename)

    return factory
