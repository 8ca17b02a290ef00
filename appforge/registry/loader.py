"""Add-on catalog discovery, validation and selection ordering.

The catalog is a directory with one sub-directory per add-on::

    add-ons/
      tanstack-query/
        info.json        (required descriptor)
        package.json     (optional manifest contribution)
        README.md        (optional documentation fragment)
        assets/          (optional file tree composed into the project)

Loading is all-or-nothing: one malformed entry fails the whole catalog.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from ..errors import ConfigurationError, ManifestParseError, RegistryLoadError
from ..manifest import ManifestFragment, load_fragment
from .models import FEATURE_PHASE, PHASES, SETUP_PHASE, AddOn, add_on_adapter

INFO_FILE = "info.json"
MANIFEST_FILE = "package.json"
README_FILE = "README.md"

# Keys filled in by the loader; an info.json may not set them itself.
_RESERVED_KEYS = ("id", "directory", "manifest", "readme")


class AddOnRegistry:
    """Loads add-on descriptors from a catalog directory.

    The catalog is read on first use and kept until :meth:`reload`.  Every
    read validates each entry plus the ``dependsOn`` graph.
    """

    def __init__(self, catalog_dir: str | Path) -> None:
        self.catalog_dir = Path(catalog_dir)
        self._add_ons: list[AddOn] | None = None

    # -- Public API --------------------------------------------------------

    def list_add_ons(self) -> list[AddOn]:
        """Return every add-on in catalog (sorted directory) order."""
        if self._add_ons is None:
            self._add_ons = self._load()
        return list(self._add_ons)

    def reload(self) -> None:
        """Drop the loaded catalog so the next lookup re-reads the directory."""
        self._add_ons = None

    def get(self, add_on_id: str) -> AddOn:
        """Return a single add-on by id.

        Raises:
            ConfigurationError: If no add-on has that id.
        """
        for add_on in self.list_add_ons():
            if add_on.id == add_on_id:
                return add_on
        raise ConfigurationError(
            f"Unknown add-on '{add_on_id}'. Available: {', '.join(self.ids()) or '(none)'}"
        )

    def ids(self) -> list[str]:
        return [add_on.id for add_on in self.list_add_ons()]

    def resolve(self, add_on_ids: Iterable[str]) -> list[AddOn]:
        """Turn an ordered selection of ids into descriptors.

        The selection order is preserved.

        Raises:
            ConfigurationError: For unknown or duplicate ids, or when a
                selected add-on depends on one that was not selected.
        """
        selected: list[AddOn] = []
        seen: set[str] = set()
        for add_on_id in add_on_ids:
            if add_on_id in seen:
                raise ConfigurationError(f"Add-on '{add_on_id}' was selected more than once")
            seen.add(add_on_id)
            selected.append(self.get(add_on_id))

        for add_on in selected:
            missing = [dep for dep in add_on.depends_on if dep not in seen]
            if missing:
                raise ConfigurationError(
                    f"Add-on '{add_on.id}' requires {', '.join(repr(m) for m in missing)}; "
                    "add it to the selection"
                )
        return selected

    # -- Loading -------------------------------------------------------------

    def _load(self) -> list[AddOn]:
        if not self.catalog_dir.is_dir():
            return []

        add_ons = [
            self._load_entry(entry)
            for entry in sorted(self.catalog_dir.iterdir(), key=lambda p: p.name)
            if entry.is_dir()
        ]
        _validate_dependencies(add_ons)
        return add_ons

    def _load_entry(self, entry: Path) -> AddOn:
        name = entry.name
        info_path = entry / INFO_FILE
        if not info_path.is_file():
            raise RegistryLoadError(name, f"missing {INFO_FILE}")

        try:
            info: Any = json.loads(info_path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as exc:
            raise RegistryLoadError(name, f"{INFO_FILE} is not valid UTF-8 ({exc.reason})") from exc
        except json.JSONDecodeError as exc:
            raise RegistryLoadError(name, f"{INFO_FILE} is not valid JSON ({exc.msg})") from exc
        if not isinstance(info, dict):
            raise RegistryLoadError(name, f"{INFO_FILE} must contain an object")

        reserved = [key for key in _RESERVED_KEYS if key in info]
        if reserved:
            raise RegistryLoadError(
                name, f"{INFO_FILE} may not set {', '.join(reserved)}"
            )

        manifest = ManifestFragment()
        if (entry / MANIFEST_FILE).is_file():
            try:
                manifest = load_fragment(entry / MANIFEST_FILE)
            except ManifestParseError as exc:
                raise RegistryLoadError(name, str(exc)) from exc

        readme = None
        if (entry / README_FILE).is_file():
            try:
                readme = (entry / README_FILE).read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise RegistryLoadError(name, f"{README_FILE} is not valid UTF-8 ({exc.reason})") from exc

        try:
            return add_on_adapter.validate_python(
                {
                    **info,
                    "id": name,
                    "directory": entry.resolve(),
                    "manifest": manifest,
                    "readme": readme,
                }
            )
        except ValidationError as exc:
            raise RegistryLoadError(name, _describe(exc)) from exc


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def composition_order(selected: list[AddOn]) -> list[AddOn]:
    """Order selected add-ons for composition.

    Setup add-ons come before feature add-ons.  Within a phase the selection
    order is kept, except that an add-on is moved after any selected add-on
    it declares in ``dependsOn``.
    """
    ordered: list[AddOn] = []
    for phase in PHASES:
        ordered.extend(_stable_topological([a for a in selected if a.phase == phase]))
    return ordered


def add_ons_in_phase(selected: list[AddOn], phase: str) -> list[AddOn]:
    """Return the composition-ordered add-ons belonging to *phase*."""
    return [add_on for add_on in composition_order(selected) if add_on.phase == phase]


def _stable_topological(add_ons: list[AddOn]) -> list[AddOn]:
    ids = {add_on.id for add_on in add_ons}
    remaining = list(add_ons)
    placed: set[str] = set()
    ordered: list[AddOn] = []
    while remaining:
        for index, add_on in enumerate(remaining):
            if all(dep in placed or dep not in ids for dep in add_on.depends_on):
                ordered.append(remaining.pop(index))
                placed.add(add_on.id)
                break
        else:
            # Cycles are rejected at load time.
            raise ConfigurationError(
                "Cannot order add-ons: " + ", ".join(a.id for a in remaining)
            )
    return ordered


def _validate_dependencies(add_ons: list[AddOn]) -> None:
    by_id = {add_on.id: add_on for add_on in add_ons}

    for add_on in add_ons:
        for dep in add_on.depends_on:
            if dep == add_on.id:
                raise RegistryLoadError(add_on.id, "an add-on cannot depend on itself")
            if dep not in by_id:
                raise RegistryLoadError(add_on.id, f"dependsOn names unknown add-on '{dep}'")
            if add_on.phase == SETUP_PHASE and by_id[dep].phase == FEATURE_PHASE:
                raise RegistryLoadError(
                    add_on.id,
                    f"setup add-on cannot depend on '{dep}', which runs in the add-on phase",
                )

    # Depth-first search for cycles; colours: 0 unvisited, 1 on stack, 2 done.
    state: dict[str, int] = {add_on.id: 0 for add_on in add_ons}

    def visit(node: str, path: list[str]) -> None:
        state[node] = 1
        for dep in by_id[node].depends_on:
            if state[dep] == 1:
                cycle = path[path.index(dep):] + [dep] if dep in path else [node, dep]
                raise RegistryLoadError(node, "dependency cycle: " + " -> ".join(cycle))
            if state[dep] == 0:
                visit(dep, path + [dep])
        state[node] = 2

    for add_on in add_ons:
        if state[add_on.id] == 0:
            visit(add_on.id, [add_on.id])


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)
