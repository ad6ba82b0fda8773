"""Command-line entry points for drill runs, bank checks and config."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from physics_drill.core import config_templates
from physics_drill.core import workspace as workspace_mod
from physics_drill.core.config_templates import ConfigTemplateError
from physics_drill.core.logging import configure_logger
from physics_drill.core.workspace import WorkspaceError

from .assets import AssetResolver
from .bank import QuestionBank, QuestionBankError, load_bank, load_sample_bank
from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    DrillConfigError,
    Interface,
    load_config,
)
from .console import run_drill_session
from .models import DualQuantityQuestion
from .view import DrillApp

LOGGER_NAME = "physics_drill.drill"


def _build_run_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drill run",
        description="Start an interactive drill over a question bank.",
        epilog=(
            "Run `drill config init` to scaffold drill.toml with default "
            "bank, asset and logging settings."
        ),
    )
    parser.add_argument(
        "bank",
        nargs="?",
        type=Path,
        help="Question bank (.json or .jsonl). Defaults to paths.bank.",
    )
    parser.add_argument(
        "--sample",
        action="store_true",
        help="Drill the bundled sample bank instead of a file.",
    )
    ui = parser.add_mutually_exclusive_group()
    ui.add_argument(
        "--tui",
        dest="interface",
        action="store_const",
        const=Interface.TUI,
        help="Use the full-screen Textual interface.",
    )
    ui.add_argument(
        "--console",
        dest="interface",
        action="store_const",
        const=Interface.CONSOLE,
        help="Use the Rich prompt loop.",
    )
    parser.add_argument(
        "--assets",
        type=Path,
        help=(
            "Directory question images are resolved against (defaults to "
            "the bank's directory)."
        ),
    )
    parser.add_argument(
        "--show-answers",
        action="store_true",
        default=None,
        help="List every answer as soon as results appear.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config and logs.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    return parser


def run_main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parser = _build_run_parser()
    args = parser.parse_args(args_list)

    if args.sample and args.bank is not None:
        parser.error("Pass a bank path or --sample, not both.")

    overrides = ConfigOverrides(
        bank_path=args.bank,
        asset_dir=args.assets,
        interface=args.interface,
        show_answers=args.show_answers,
        log_level=args.log_level,
    )
    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except DrillConfigError as exc:
        parser.error(str(exc))

    config = load_result.config
    if not args.sample and config.bank_path is None:
        parser.error(
            "No question bank given. Pass a path, set paths.bank in "
            f"{CONFIG_FILENAME}, or use --sample."
        )

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "drill run invoked",
        extra={
            "config_path": load_result.config_path,
            "interface": config.interface,
        },
    )

    try:
        bank = load_sample_bank() if args.sample else load_bank(
            config.bank_path
        )
    except QuestionBankError as exc:
        logger.error("Question bank rejected", extra={"error": str(exc)})
        sys.stderr.write(str(exc) + "\n")
        return 2

    asset_dir = config.asset_dir
    if asset_dir is None and config.bank_path is not None and not args.sample:
        asset_dir = config.bank_path.parent
    resolver = AssetResolver(asset_dir, logger=logger)

    if config.interface is Interface.TUI:
        app = DrillApp(
            bank,
            resolver=resolver,
            show_answers=config.show_answers,
            logger=logger,
        )
        app.run()
        return 0

    console = Console()
    result = run_drill_session(
        bank,
        console,
        lambda: console.input("[bold cyan]drill[/]> "),
        resolver=resolver,
        show_answers=config.show_answers,
        logger=logger,
    )
    logger.info(
        "Drill run finished",
        extra={
            "exit_action": result.exit_action,
            "percentage": result.score.percentage if result.score else None,
        },
    )
    console.print(f"[dim]Log file: {log_path}[/dim]")
    return 0


def _build_bank_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drill bank",
        description="Inspect question bank files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser(
        "validate", help="Check that a bank file loads cleanly."
    )
    validate.add_argument("path", type=Path)

    listing = subparsers.add_parser(
        "list", help="Print the questions in a bank file."
    )
    listing.add_argument("path", type=Path)
    listing.add_argument(
        "--filter", help="Only show questions whose text contains this."
    )
    return parser


def bank_main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parser = _build_bank_parser()
    args = parser.parse_args(args_list)

    try:
        bank = load_bank(args.path)
    except QuestionBankError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 2

    if args.command == "validate":
        dual = sum(
            1 for item in bank if isinstance(item, DualQuantityQuestion)
        )
        sys.stdout.write(
            f"{args.path}: {len(bank)} question(s) OK "
            f"({dual} two-quantity, {len(bank) - dual} selection)\n"
        )
        return 0

    return _print_bank(bank, args.filter)


def _print_bank(bank: QuestionBank, text_filter: Optional[str]) -> int:
    needle = (text_filter or "").strip().lower()
    table = Table(box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Id")
    table.add_column("Kind")
    table.add_column("Question", overflow="fold")
    shown = 0
    for number, question in enumerate(bank, start=1):
        if needle and needle not in question.text.lower():
            continue
        table.add_row(str(number), question.id, question.kind, question.text)
        shown += 1
    if shown == 0:
        sys.stdout.write("No questions match filter.\n")
        return 1
    Console().print(table)
    return 0


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drill config",
        description="Manage drill configuration files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write the default drill.toml template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help=(
            "Workspace root override used when resolving the default config "
            "path."
        ),
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def config_main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parser = _build_config_parser()
    args = parser.parse_args(args_list)

    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    template = config_templates.get_template("drill")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote drill config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME

