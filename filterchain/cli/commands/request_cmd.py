from __future__ import annotations

import json
import sys
from typing import Any

import click
import httpx
import rich_click
from pydantic import BaseModel, Field
from rich.console import Console

from filterchain.filters import add_header
from filterchain.types import Filter

from ..context import CLIContext
from ..errors import CLIError

_METHODS = ("GET", "POST", "PUT", "DELETE", "MERGE", "HEAD")


class RequestResult(BaseModel):
    ok: bool
    method: str
    url: str
    status: int | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any | None = None
    error: str | None = None


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(f"Expected 'Name: value', got {raw!r}", param_hint="--header")
    return name.strip(), value.strip()


@click.command(name="request", cls=rich_click.RichCommand)
@click.argument("url")
@click.option(
    "-X",
    "--method",
    type=click.Choice(_METHODS, case_sensitive=False),
    default="GET",
    show_default=True,
)
@click.option("-H", "--header", "headers", multiple=True, help="Request header 'Name: value'.")
@click.option("-d", "--data", type=str, default=None, help="Raw request body.")
@click.option("--json-body", type=str, default=None, help="JSON request body.")
@click.pass_obj
def request_cmd(
    ctx: CLIContext,
    url: str,
    *,
    method: str,
    headers: tuple[str, ...],
    data: str | None,
    json_body: str | None,
) -> None:
    """Send one request through a default pipeline and print the response."""
    if not url.startswith(("http://", "https://")):
        raise click.BadParameter("URL must start with http:// or https://", param_hint="URL")
    if data is not None and json_body is not None:
        raise click.UsageError("--data and --json-body are mutually exclusive.")

    filters: list[Filter] = [add_header(*_parse_header(h)) for h in headers]
    options: dict[str, Any] = {}
    if data is not None:
        options["body"] = data
    if json_body is not None:
        try:
            options["json"] = json.loads(json_body)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Not valid JSON: {e}", param_hint="--json-body") from e

    outcome: dict[str, Any] = {}

    def on_done(error: BaseException | None, result: Any, response: Any, body: Any) -> None:
        outcome.update(error=error, result=result, response=response, body=body)

    pipeline = ctx.pipeline(filters)
    pipeline.request(method, url, options, on_done)

    error = outcome.get("error")
    response: httpx.Response | None = outcome.get("response")
    if error is not None or response is None:
        if ctx.output == "json":
            payload = RequestResult(ok=False, method=method.upper(), url=url, error=str(error))
            sys.stdout.write(payload.model_dump_json() + "\n")
            raise click.exceptions.Exit(1)
        raise CLIError(f"Request failed: {error}")

    result = RequestResult(
        ok=response.is_success,
        method=method.upper(),
        url=url,
        status=response.status_code,
        headers=dict(response.headers),
        body=outcome["result"] if outcome["result"] is not None else outcome["body"],
    )
    if ctx.output == "json":
        sys.stdout.write(result.model_dump_json() + "\n")
    else:
        if not ctx.quiet:
            stderr = Console(file=sys.stderr, force_terminal=False)
            stderr.print(f"{response.status_code} {response.reason_phrase}")
        if outcome["body"]:
            click.echo(outcome["body"])
    if not response.is_success:
        raise click.exceptions.Exit(1)
