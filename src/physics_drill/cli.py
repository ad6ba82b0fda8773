"""Unified `drill` command: run sessions, inspect banks, manage config."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence

CommandHandler = Callable[[Sequence[str]], int]

_HANDLER_MODULE = "physics_drill.drill._main"


@dataclass(frozen=True)
class CommandSpec:
    """A `drill` subcommand and the handler function behind it."""

    name: str
    summary: str
    entry_point: str
    is_tui: bool = False

    def run(self, argv: Sequence[str]) -> int:
        module = import_module(_HANDLER_MODULE)
        handler: CommandHandler = getattr(module, self.entry_point)
        try:
            result = handler(list(argv))
        except SystemExit as exc:
            return _exit_code(exc)
        return result if isinstance(result, int) else 0


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="run",
        summary="Start a drill over a question bank.",
        entry_point="run_main",
        is_tui=True,
    ),
    CommandSpec(
        name="bank",
        summary="Validate or list the questions in a bank file.",
        entry_point="bank_main",
    ),
    CommandSpec(
        name="config",
        summary="Write the default drill.toml template.",
        entry_point="config_main",
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return the command listing used by `list` and `help`."""

    width = max(len(spec.name) for spec in _COMMAND_SPECS)
    lines = ["Available commands:"]
    for spec in _COMMAND_SPECS:
        suffix = " (interactive)" if spec.is_tui else ""
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}{suffix}")
    return "\n".join(lines)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: drill <command> [args...]",
            "Run `drill list` for commands or `drill help <name>` for "
            "details.",
            "",
            format_command_table(),
        ]
    )


def _print(
    text: str, *, stream: Optional[Callable[[str], object]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _handle_version() -> int:
    try:
        version = metadata.version("physics-drill")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def _handle_help(argv: Sequence[str]) -> int:
    if not argv:
        _print(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _unknown_command(argv[0])
    _print(f"{spec.name}: {spec.summary}")
    _print(f"Run `drill {spec.name} --help` for command options.")
    return 0


def _unknown_command(name: str) -> int:
    _print(f"Unknown command '{name}'.", stream=sys.stderr.write)
    _print(format_command_table(), stream=sys.stderr.write)
    return 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])

    if not args:
        _print(format_usage())
        return 2

    head, *tail = args
    if head in ("-h", "--help"):
        _print(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        return _handle_version()
    if head == "list":
        _print(format_command_table())
        return 0
    if head == "help":
        return _handle_help(tail)

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown_command(head)
    return spec.run(tail)


def _exit_code(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _print(str(code), stream=sys.stderr.write)
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
