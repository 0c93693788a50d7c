#!/usr/bin/env python3
"""shipit CLI - Main entry point"""

import functools
import os
import sys

import rich_click as click
from rich.console import Console

click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.MAX_WIDTH = 100

# COMMANDS / OPTIONS
click.rich_click.STYLE_COMMAND = "bold cyan"
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"
click.rich_click.STYLE_METAVAR = "bold yellow"
click.rich_click.STYLE_OPTION_DEFAULT = "dim cyan"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.ERRORS_EPILOGUE = ""

from shipit.commands.deploy import shipit  # noqa: E402
from shipit.constants import EXIT_INTERRUPTED  # noqa: E402

err_console = Console(stderr=True)

CARGO_SUBCOMMAND = "shipit"


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""
    from click.exceptions import ClickException

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            err_console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(EXIT_INTERRUPTED)
        except Exception as e:
            err_console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}\n")
            err_console.print("[dim]If this persists, please report this issue.[/dim]\n")

            if os.environ.get("DEBUG") or os.environ.get("VERBOSE"):
                import traceback

                err_console.print("[dim]Traceback:[/dim]")
                traceback.print_exc()
            sys.exit(1)

    return wrapper


def strip_cargo_subcommand(args: list) -> list:
    """Drop the 'shipit' argument cargo inserts when run as `cargo shipit`."""
    if args and args[0] == CARGO_SUBCOMMAND:
        return args[1:]
    return args


@handle_cli_errors
def main(argv=None):
    """Main entry point with error handling."""
    args = strip_cargo_subcommand(list(sys.argv[1:] if argv is None else argv))
    shipit.main(args=args, prog_name="cargo shipit")


if __name__ == "__main__":
    main()
