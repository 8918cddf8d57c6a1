"""Command line interface for go-starter."""

from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from pathlib import Path
from typing import Callable, Mapping, Sequence

from . import __version__
from .config import ProjectContext
from .errors import ScaffoldError
from .resolver import resolve_source
from .scaffold import CommandStep, ProjectScaffolder
from .settings import SourceKind, load_settings

Handler = Callable[[argparse.Namespace], int]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="go-starter",
        description="Scaffold new Go projects from a template",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    new_parser = subparsers.add_parser("new", help="create a new project from the template")
    new_parser.add_argument("name", help="Name of the project and of the directory to create")
    new_parser.add_argument(
        "--source",
        choices=[kind.value for kind in SourceKind],
        help="Where to read the template from (default: embedded)",
    )
    new_parser.add_argument(
        "--template",
        dest="template_dir",
        type=Path,
        help="Local template directory, used with --source local",
    )
    new_parser.add_argument("--url", dest="archive_url", help="Template archive URL, used with --source remote")
    new_parser.add_argument("--repository", help="Repository folder name inside the archive")
    new_parser.add_argument("--timeout", type=float, help="Download timeout in seconds (default: 30)")
    new_parser.add_argument(
        "--no-rename",
        dest="rename_paths",
        action="store_const",
        const=False,
        help="Only substitute file contents, keep file and directory names",
    )
    new_parser.add_argument(
        "--run",
        dest="post_commands",
        metavar="COMMAND",
        action="append",
        help="Command to run inside the new project afterwards (repeatable)",
    )
    new_parser.add_argument("--config", type=Path, help="Settings file (default: ./gostarter.toml if present)")
    new_parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show progress details; repeat for debug output",
    )

    return parser


def _configure_logging(verbosity: int) -> None:
    if verbosity > 1:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _handle_new(args: argparse.Namespace) -> int:
    cwd = Path.cwd()
    context = ProjectContext.from_name(args.name, cwd=cwd)
    settings = load_settings(
        args.config,
        cwd=cwd,
        overrides={
            "source": args.source,
            "template_dir": args.template_dir,
            "archive_url": args.archive_url,
            "repository": args.repository,
            "timeout": args.timeout,
            "rename_paths": args.rename_paths,
            "post_commands": args.post_commands,
        },
    )
    scaffolder = ProjectScaffolder(
        partial(resolve_source, settings, cwd=cwd),
        settings.replacements(context),
        rename_paths=settings.rename_paths,
        post_steps=[CommandStep(command) for command in settings.post_commands],
    )

    print(f"Creating new project '{context.name}' from the {settings.source.value} template...")
    report = scaffolder.create(context)
    print(f"Project created at {report.destination}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(getattr(args, "verbose", 0))

    handlers: Mapping[str, Handler] = {"new": _handle_new}
    handler = handlers.get(args.command)
    if handler is None:
        parser.error(f"unknown command '{args.command}'")

    try:
        return handler(args)
    except ScaffoldError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
