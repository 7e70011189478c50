from __future__ import annotations

import json
import platform
import sys

import click
import httpx
import rich_click

import filterchain

from ..context import CLIContext


@click.command(name="version", cls=rich_click.RichCommand)
@click.pass_obj
def version_cmd(ctx: CLIContext) -> None:
    data = {
        "version": filterchain.__version__,
        "httpxVersion": httpx.__version__,
        "pythonVersion": platform.python_version(),
        "platform": platform.platform(),
    }
    if ctx.output == "json":
        sys.stdout.write(json.dumps(data) + "\n")
        return
    for key, value in data.items():
        click.echo(f"{key}: {value}")
