"""``package.json`` fragment loading and merging.

The generated project's manifest is assembled from a base ``package.json``
plus a fixed sequence of fragments::

    base -> package.ts.json -> package.tw.json -> package.fr.json -> add-ons...

``dependencies``, ``devDependencies`` and ``scripts`` are merged key by key,
later fragments overwriting earlier ones.  Dependency maps are re-emitted in
sorted order so the output is byte-stable for identical inputs.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ManifestParseError
from .utils import dump_json

MERGED_SECTIONS = ("dependencies", "devDependencies", "scripts")
SORTED_SECTIONS = ("dependencies", "devDependencies")


class ManifestFragment(BaseModel):
    """The mergeable subset of a ``package.json`` document."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    scripts: dict[str, str] = Field(default_factory=dict)

    def section(self, name: str) -> dict[str, str]:
        """Return a section by its ``package.json`` key."""
        if name == "devDependencies":
            return self.dev_dependencies
        return getattr(self, name)

    def is_empty(self) -> bool:
        return not (self.dependencies or self.dev_dependencies or self.scripts)


def parse_fragment(data: Any, source: str | Path = "<fragment>") -> ManifestFragment:
    """Validate an already-decoded fragment.

    Raises:
        ManifestParseError: If *data* is not an object of string mappings.
    """
    if not isinstance(data, dict):
        raise ManifestParseError(source, f"expected an object, got {type(data).__name__}")
    try:
        return ManifestFragment.model_validate(data)
    except ValidationError as exc:
        raise ManifestParseError(source, _first_error(exc)) from exc


def load_fragment(path: str | Path) -> ManifestFragment:
    """Read and validate a fragment file."""
    data = load_manifest(path)
    return parse_fragment(data, path)


def load_manifest(path: str | Path) -> dict[str, Any]:
    """Read a full ``package.json`` document, keeping every key.

    Raises:
        ManifestParseError: If the file is not a JSON object.
    """
    file_path = Path(path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise ManifestParseError(file_path, f"not valid UTF-8 ({exc.reason})") from exc
    except json.JSONDecodeError as exc:
        raise ManifestParseError(file_path, f"invalid JSON ({exc.msg}, line {exc.lineno})") from exc
    if not isinstance(data, dict):
        raise ManifestParseError(file_path, f"expected an object, got {type(data).__name__}")
    for section in MERGED_SECTIONS:
        value = data.get(section, {})
        if not isinstance(value, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        ):
            raise ManifestParseError(file_path, f"'{section}' must map strings to strings")
    return data


def merge_manifests(
    base: dict[str, Any],
    *fragments: ManifestFragment,
    name: str | None = None,
) -> dict[str, Any]:
    """Merge *fragments* onto *base* and return the final manifest.

    *base* is never mutated.  Keys outside the merged sections (``version``,
    ``type``, ...) are carried through from *base* unchanged.  When *name* is
    given it replaces whatever ``name`` the base template declared.
    """
    manifest = copy.deepcopy(base)
    for section in MERGED_SECTIONS:
        manifest[section] = dict(manifest.get(section) or {})

    for fragment in fragments:
        for section in MERGED_SECTIONS:
            manifest[section].update(fragment.section(section))

    for section in SORTED_SECTIONS:
        manifest[section] = {key: manifest[section][key] for key in sorted(manifest[section])}

    if name is not None:
        manifest["name"] = name
    return manifest


def dump_manifest(manifest: dict[str, Any]) -> str:
    """Serialise the final manifest (2-space indent, trailing newline)."""
    return dump_json(manifest)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    location = ".".join(str(part) for part in err["loc"])
    return f"{location}: {err['msg']}" if location else err["msg"]
