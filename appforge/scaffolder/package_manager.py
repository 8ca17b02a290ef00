"""Package manager detection and invocation helpers."""

from __future__ import annotations

import os

SUPPORTED_PACKAGE_MANAGERS: tuple[str, ...] = ("npm", "yarn", "pnpm", "bun")
DEFAULT_PACKAGE_MANAGER = "npm"


def detect_package_manager(user_agent: str | None = None) -> str:
    """Guess the package manager that launched us.

    npm, yarn, pnpm and bun all export ``npm_config_user_agent`` (e.g.
    ``"pnpm/9.15.5 npm/? node/v22.13.1 linux x64"``) to the scripts they run.
    Falls back to npm.
    """
    if user_agent is None:
        user_agent = os.environ.get("npm_config_user_agent", "")
    name = user_agent.split("/", 1)[0].strip() if user_agent else ""
    if name in SUPPORTED_PACKAGE_MANAGERS:
        return name
    return DEFAULT_PACKAGE_MANAGER


def install_command(package_manager: str) -> list[str]:
    return [package_manager, "install"]


def start_script(package_manager: str, uses_start: bool) -> str:
    """The command printed in the closing message to launch the dev server."""
    script = "dev" if uses_start else "start"
    return f"{package_manager} {script}"
