from __future__ import annotations

import click
import rich_click

from filterchain import __version__

from .context import CLIContext
from .logging import configure_logging, restore_logging


@click.group(
    name="filterchain",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=rich_click.RichGroup,
)
@click.option("--json", "json_flag", is_flag=True, help="Emit results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential stderr output.")
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.version_option(version=__version__, prog_name="filterchain")
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    json_flag: bool,
    quiet: bool,
    verbose: int,
    timeout: float | None,
) -> None:
    if click_ctx.invoked_subcommand is None:
        # No args: show help; no network calls.
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    click_ctx.obj = CLIContext(
        output="json" if json_flag else "text",
        quiet=quiet,
        verbosity=verbose,
        timeout=timeout,
    )
    click_ctx.call_on_close(click_ctx.obj.close)

    previous_logging = configure_logging(verbosity=verbose, quiet=quiet)
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


# Register commands
from .commands.request_cmd import request_cmd as _request_cmd  # noqa: E402
from .commands.version_cmd import version_cmd as _version_cmd  # noqa: E402

cli.add_command(_request_cmd)
cli.add_command(_version_cmd)
