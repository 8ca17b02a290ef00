"""Command-line interface for appforge.

Usage::

    appforge my-app
    appforge my-app --template typescript --tailwind
    appforge my-app --template file-router --add-ons shadcn,tanstack-query
    appforge my-app --template file-router --add-ons        # pick interactively
    appforge --list-add-ons
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from pydantic import ValidationError
from rich.prompt import Prompt
from rich.table import Table

from appforge.config import Config
from appforge.errors import ConfigurationError, ScaffoldError, TargetExistsError
from appforge.registry import AddOn, AddOnRegistry
from appforge.scaffolder import ProjectGenerator, ScaffoldOptions
from appforge.scaffolder.context import CODE_ROUTER, FILE_ROUTER
from appforge.scaffolder.package_manager import (
    SUPPORTED_PACKAGE_MANAGERS,
    detect_package_manager,
)
from appforge.utils import console, print_error

TEMPLATES = ("typescript", "javascript", "file-router")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="appforge",
        description="Create a new TanStack application",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  appforge my-app\n"
            "  appforge my-app --template file-router --add-ons shadcn,tanstack-query\n"
            "  appforge --list-add-ons\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", help="Name of the project")
    parser.add_argument(
        "--template",
        choices=TEMPLATES,
        default="javascript",
        help="Project template (default: javascript)",
    )
    parser.add_argument(
        "--package-manager",
        choices=SUPPORTED_PACKAGE_MANAGERS,
        default=None,
        help="Package manager to install with (detected when omitted)",
    )
    parser.add_argument("--tailwind", action="store_true", help="Add Tailwind CSS")
    parser.add_argument(
        "--add-ons",
        nargs="?",
        const="",
        default=None,
        metavar="ID[,ID...]",
        help="Add-ons to include; without ids you pick from the catalog",
    )
    parser.add_argument(
        "--list-add-ons", action="store_true", help="List available add-ons and exit"
    )
    parser.add_argument(
        "--output", "-o", default=None, help="Parent directory for the project (default: .)"
    )
    parser.add_argument(
        "--no-install", action="store_true", help="Skip installing dependencies"
    )
    parser.add_argument(
        "--no-commands",
        action="store_true",
        help="Skip add-on post-commands and shadcn component installs",
    )
    parser.add_argument(
        "--no-format", action="store_true", help="Do not run prettier on generated code"
    )
    return parser


def options_from_args(
    args: argparse.Namespace, add_on_ids: list[str], package_manager: str
) -> ScaffoldOptions:
    """Map parsed arguments onto ``ScaffoldOptions``.

    ``--template file-router`` implies TypeScript.

    Raises:
        ConfigurationError: If add-ons are requested with a non file-router
            template.
    """
    if args.add_ons is not None and args.template != "file-router":
        raise ConfigurationError("Add-ons are only available for the file-router template")
    return ScaffoldOptions(
        project_name=args.project_name,
        typescript=args.template in ("typescript", "file-router"),
        mode=FILE_ROUTER if args.template == "file-router" else CODE_ROUTER,
        tailwind=args.tailwind or args.add_ons is not None,
        package_manager=package_manager,
        add_ons=add_on_ids,
    )


def parse_ids(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def print_add_ons(add_ons: list[AddOn]) -> None:
    table = Table(title="Add-ons", show_header=True, header_style="bold cyan")
    table.add_column("Id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Phase", style="dim")
    table.add_column("Description")
    for add_on in add_ons:
        table.add_row(add_on.id, add_on.name, add_on.phase, add_on.description)
    console.print(table)


def pick_add_ons(registry: AddOnRegistry) -> list[str]:
    """Ask the operator which add-ons to include, in the order typed."""
    print_add_ons(registry.list_add_ons())
    answer = Prompt.ask("Select add-ons (comma separated ids, blank for none)", default="")
    return parse_ids(answer)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``appforge`` / ``python -m appforge``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = Config.from_env()
    overrides: dict[str, object] = {}
    if args.output:
        overrides["output_dir"] = args.output
    if args.no_install:
        overrides["install"] = False
    if args.no_commands:
        overrides["run_commands"] = False
    if args.no_format:
        overrides["formatter"] = "none"
    if overrides:
        config = Config(**{**config.model_dump(), **overrides})

    registry = AddOnRegistry(config.add_ons_dir)

    try:
        if args.list_add_ons:
            print_add_ons(registry.list_add_ons())
            return
        if not args.project_name:
            parser.error("the following arguments are required: project_name")

        add_on_ids: list[str] = []
        if args.add_ons is not None and args.template == "file-router":
            add_on_ids = parse_ids(args.add_ons) if args.add_ons else pick_add_ons(registry)

        options = options_from_args(
            args, add_on_ids, args.package_manager or detect_package_manager()
        )
        generator = ProjectGenerator(config, registry=registry)
        asyncio.run(generator.generate(options))
    except TargetExistsError as exc:
        print_error(str(exc))
        sys.exit(1)
    except ScaffoldError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)
    except ValidationError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
