"""barberbook command line entry point."""

import sys
from pathlib import Path

import click

from ..config.settings import generate_example_env
from .barber_reports import (
    boundaries_command,
    cashiers_command,
    dashboard_command,
    expense_check_command,
    pocket_command,
    range_command,
    week_command,
)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  barberbook boundaries --now 2025-01-08T10:00:00Z      # Current business periods
  barberbook dashboard --snapshot shop.yaml             # Store totals per window
  barberbook range --snapshot shop.yaml --preset month  # Totals over a date range
  barberbook range --snapshot shop.yaml --from 2025-01-01 --to 2025-01-15
  barberbook cashiers --snapshot shop.yaml              # Gross/net per cashier
  barberbook week --snapshot shop.yaml --actor u-1      # One cashier's week
  barberbook pocket --snapshot shop.yaml                # Pocket balances
  barberbook expense-check --snapshot shop.yaml --actor u-1 --amount 50
  barberbook init-env                                   # Write an example .env
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="barberbook - business calendar and profit reports for the shop",
    epilog=EPILOG,
)
def cli() -> None:
    """Root CLI command."""


@cli.command("init-env")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(".env.example"),
    show_default=True,
    help="Where to write the example configuration",
)
def init_env_command(output: Path) -> int:
    """Write an example .env with every setting."""
    generate_example_env(output)
    click.echo(f"✅ Example configuration written to {output}")
    return 0


cli.add_command(boundaries_command, "boundaries")
cli.add_command(dashboard_command, "dashboard")
cli.add_command(range_command, "range")
cli.add_command(cashiers_command, "cashiers")
cli.add_command(week_command, "week")
cli.add_command(pocket_command, "pocket")
cli.add_command(expense_check_command, "expense-check")


def main(args: list[str] | None = None) -> int:
    """Main CLI function."""

    try:
        normalized_args = list(args) if args is not None else None
        return cli.main(args=normalized_args, standalone_mode=False) or 0
    except SystemExit as exc:  # pragma: no cover - click normalizes the exit code
        return int(exc.code) if exc.code is not None else 0
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code


if __name__ == "__main__":  # pragma: no cover - executable module
    sys.exit(main())
