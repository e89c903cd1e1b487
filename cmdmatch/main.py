#!/usr/bin/env python3
"""
cmdmatch - Command Matching Console
===================================

Loads a YAML command map and shows how input lines match against it.
Nothing is executed; the console only reports matches and match errors.

Usage:
    cmdmatch -m commands.yaml                  # Interactive mode
    cmdmatch -m commands.yaml "!add 1 2"       # Match one line and exit
    cmdmatch -m commands.yaml -c config.yaml   # Use matcher settings from config
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Union

from rich.console import Console
from rich.table import Table

from cmdmatch.core.errors import CommandManagerError, MatchError
from cmdmatch.commands.models import MatchResult
from cmdmatch.commands.registry import CommandRegistry
from cmdmatch.infra.logging import configure_logging, get_logger

EXIT_MATCHED = 0
EXIT_MATCH_ERROR = 1
EXIT_NO_MATCH = 2

console = Console()


def print_result(text: str, result: Union[MatchResult, MatchError, None]) -> None:
    """Render one match outcome."""
    if result is None:
        console.print(f"[dim]No command matches:[/dim] {text}")
        return

    if isinstance(result, MatchError):
        where = f" (command {result.definition.id})" if result.definition else ""
        console.print(f"[bold red]Match error{where}:[/bold red] {result.message}")
        return

    definition = result.definition
    console.print(
        f"[bold green]Matched command {definition.id}[/bold green] "
        f"[dim]{', '.join(str(t) for t in definition.original_triggers)}[/dim]"
    )

    if not result.values:
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Value")
    table.add_column("Default", justify="center")

    for name, matched in result.values.items():
        table.add_row(
            name,
            matched.source.kind,
            repr(matched.value),
            "✓" if matched.used_default else "",
        )

    console.print(table)


def exit_code_for(result: Union[MatchResult, MatchError, None]) -> int:
    if result is None:
        return EXIT_NO_MATCH
    if isinstance(result, MatchError):
        return EXIT_MATCH_ERROR
    return EXIT_MATCHED


async def match_once(registry: CommandRegistry, text: str) -> int:
    result = await registry.find_matching_command(text)
    print_result(text, result)
    return exit_code_for(result)


async def run_interactive(registry: CommandRegistry) -> None:
    """Read lines until quit or EOF and report each match."""
    console.print(
        f"[bold cyan]cmdmatch[/bold cyan] [dim]{len(registry)} commands loaded. "
        f"Type 'quit' to exit.[/dim]"
    )

    while True:
        try:
            text = console.input("[bold blue]> [/bold blue]")
        except (KeyboardInterrupt, EOFError):
            break

        if text.strip().lower() in ("quit", "exit"):
            break
        if not text.strip():
            continue

        result = await registry.find_matching_command(text)
        print_result(text, result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="cmdmatch - match text against a command map"
    )
    parser.add_argument(
        "text",
        nargs="?",
        help="Line to match; omit for interactive mode"
    )
    parser.add_argument(
        "--commands", "-m",
        required=True,
        help="Path to the YAML command map"
    )
    parser.add_argument(
        "--config", "-c",
        default="config.yaml",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--log-level", "-l",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    configure_logging(level=getattr(logging, args.log_level))
    logger = get_logger("main")

    try:
        registry = CommandRegistry.from_config(args.config)
        registry.load(args.commands)
    except (CommandManagerError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    try:
        if args.text is not None:
            return asyncio.run(match_once(registry, args.text))

        asyncio.run(run_interactive(registry))
        return 0

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except Exception as e:
        logger.exception("Fatal error")
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
