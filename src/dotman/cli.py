"""Command line entry point for dotman.

Subcommands map one-to-one onto engine operations:

    dotman init                   # wipe the store and start a new registry
    dotman add NAME PLACE         # start managing PLACE as NAME
    dotman export [--name NAME]   # copy drifted live dirs into the store
    dotman import [--name NAME]   # copy drifted mirrors back out
    dotman list                   # show registered pairs

Log lines go to stderr; per-pair report lines go to stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import IntEnum

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Settings
from .config_loader import load_hierarchical_config
from .config_schema import build_config, to_settings
from .errors import DotmanError
from .logger import setup_logging
from .sync.engine import SyncEngine
from .sync.hooks import HookInvoker, HookPolicy
from .sync.models import PairResult
from .sync.registry import RegistryStore
from .sync.reporter import (
    format_pair_line,
    format_pair_list,
    format_sync_report,
    report_to_json,
)

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    OPERATION_ERROR = 1
    USAGE_ERROR = 2
    SIGINT = 130


class InvalidAnswerError(Exception):
    """The confirmation prompt got something other than y/n."""


def confirm(msg: str, default: bool = False) -> bool:
    """Ask a yes/no question on stdin.

    An empty answer returns *default*; ``y``/``Y``/``n``/``N`` are accepted.

    Raises:
        InvalidAnswerError: For any other answer.
    """
    prompt = "Sure? [Y/n] " if default else "Sure? [y/N] "
    print(msg)
    answer = input(prompt).strip()
    if answer == "":
        return default
    if answer in ("y", "Y"):
        return True
    if answer in ("n", "N"):
        return False
    raise InvalidAnswerError(f"Invalid input: {answer!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dotman",
        description="Mirror configuration directories into a central store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start a fresh store in ~/dotfiles
  dotman init

  # Manage ~/.config/nvim as "nvim"
  dotman add nvim ~/.config/nvim

  # Copy every changed place into the store
  dotman export

  # Restore one place from the store
  dotman import --name nvim
        """,
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also write log records to this file",
    )
    parser.add_argument(
        "--store-root",
        help="Store root directory (takes precedence over DOTMAN_STORE_ROOT "
        "and config files; default: ~/dotfiles)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dotman version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    init_p = sub.add_parser(
        "init", help="Delete the store and create an empty registry"
    )
    init_p.add_argument(
        "-y", "--yes", action="store_true", help="Do not ask for confirmation"
    )

    add_p = sub.add_parser("add", help="Start managing a directory")
    add_p.add_argument("name", help="Pair name (mirror directory name)")
    add_p.add_argument("place", help="Directory to manage")

    for command, help_text in (
        ("export", "Copy changed places into the store"),
        ("import", "Copy changed mirrors back to their places"),
    ):
        sync_p = sub.add_parser(command, help=help_text)
        sync_p.add_argument("-n", "--name", help="Only process this pair")
        sync_p.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be copied without changing anything",
        )
        sync_p.add_argument(
            "--json", action="store_true", help="Print a JSON report"
        )

    list_p = sub.add_parser("list", help="Show registered pairs")
    list_p.add_argument(
        "--json", action="store_true", help="Print pairs as JSON"
    )

    return parser


def _build_engine(settings: Settings, store: RegistryStore) -> SyncEngine:
    return SyncEngine(
        store,
        store.load(),
        HookInvoker(HookPolicy(settings.hook_policy)),
        ignore_files=settings.ignore_files,
        skip_hidden=settings.skip_hidden,
        ignore_during_replication=settings.ignore_during_replication,
    )


def _cmd_init(args: argparse.Namespace, settings: Settings) -> ExitCode:
    logger.info("initializing store %s...", settings.store_root)
    store = RegistryStore(settings.store_root, settings.registry_file)
    if store.exists():
        logger.warning("%s already holds a registry", settings.store_root)
    if not args.yes and not confirm(
        f"this will delete {settings.store_root} and everything in it",
        default=False,
    ):
        logger.info("aborted")
        return ExitCode.SUCCESS
    store.initialize()
    logger.info("done")
    return ExitCode.SUCCESS


def _cmd_add(args: argparse.Namespace, settings: Settings) -> ExitCode:
    logger.info("adding %s...", args.name)
    store = RegistryStore(settings.store_root, settings.registry_file)
    _build_engine(settings, store).add_pair(args.name, args.place)
    logger.info("done")
    return ExitCode.SUCCESS


def _cmd_sync(args: argparse.Namespace, settings: Settings) -> ExitCode:
    verb = "exporting" if args.command == "export" else "importing"
    logger.info("%s pairs...", verb)
    store = RegistryStore(settings.store_root, settings.registry_file)
    engine = _build_engine(settings, store)

    def _print_result(result: PairResult) -> None:
        print(
            format_pair_line(
                result, settings.applied_glyph, settings.skipped_glyph
            ),
            flush=True,
        )

    on_result = None if args.json else _print_result
    if args.command == "export":
        report = engine.export_pairs(
            args.name, dry_run=args.dry_run, on_result=on_result
        )
    else:
        report = engine.import_pairs(
            args.name, dry_run=args.dry_run, on_result=on_result
        )

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        logger.debug(
            "%s",
            format_sync_report(
                report, settings.applied_glyph, settings.skipped_glyph
            ),
        )
    if not report.changed:
        logger.info("nothing to %s", args.command)
    logger.info("done")
    return ExitCode.SUCCESS


def _cmd_list(args: argparse.Namespace, settings: Settings) -> ExitCode:
    store = RegistryStore(settings.store_root, settings.registry_file)
    pairs = _build_engine(settings, store).list_pairs()
    if args.json:
        print(
            json.dumps(
                [
                    {
                        "name": pair.name,
                        "place": str(pair.place),
                        "mirror": str(mirror),
                    }
                    for pair, mirror in pairs
                ],
                indent=2,
            )
        )
    else:
        print(format_pair_list(pairs))
    return ExitCode.SUCCESS


_COMMANDS = {
    "init": _cmd_init,
    "add": _cmd_add,
    "export": _cmd_sync,
    "import": _cmd_sync,
    "list": _cmd_list,
}


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command, and return an exit code."""
    args = build_parser().parse_args(argv)

    # .env values must be visible before config files are interpolated.
    load_dotenv()

    try:
        unified = build_config(load_hierarchical_config())
    except (OSError, ValueError, yaml.YAMLError) as exc:
        # pydantic's ValidationError is a ValueError.
        setup_logging(debug=args.debug, log_file=args.log_file)
        logger.error("failed to load config: %s", exc)
        return ExitCode.USAGE_ERROR

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=unified.logging.format,
        level=unified.logging.level,
    )

    overrides: dict = {"debug": args.debug}
    if args.store_root:
        overrides["store_root"] = args.store_root
    try:
        settings = to_settings(unified, cli_overrides=overrides)
    except ValueError as exc:
        logger.error("invalid configuration: %s", exc)
        return ExitCode.USAGE_ERROR

    try:
        return _COMMANDS[args.command](args, settings)
    except DotmanError as exc:
        logger.error("failed to %s: %s", args.command, exc)
        logger.debug("details", exc_info=True)
        return ExitCode.OPERATION_ERROR
    except InvalidAnswerError as exc:
        logger.error("%s", exc)
        return ExitCode.USAGE_ERROR


def run() -> None:
    """Entry point that handles interrupts gracefully."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(ExitCode.SIGINT)


if __name__ == "__main__":
    run()
