"""Click commands querying a running ClusterIQ API.

Every command prints the JSON body returned by the server.  Network
failures and non-2xx responses exit with status 1 and a message on stderr.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import click
import httpx

_DEFAULT_API_URL = "http://localhost:8080"
_API_PREFIX = "/api/v1"


class _ApiClient:
    """Thin synchronous wrapper over httpx for the inventory routes."""

    def __init__(self, base_url: str, timeout: float, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(base_url=base_url.rstrip("/") + _API_PREFIX, timeout=timeout, transport=transport)

    def get(self, path: str) -> Any:
        try:
            response = self._client.get(path)
        except httpx.HTTPError as exc:
            raise click.ClickException(f"cannot reach ClusterIQ API: {exc}") from exc
        if response.status_code == 404:
            try:
                detail = response.json().get("detail", "not found")
            except ValueError:
                detail = "not found"
            raise click.ClickException(str(detail))
        if not response.is_success:
            raise click.ClickException(f"ClusterIQ API returned HTTP {response.status_code}")
        return response.json()


def _echo(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


@click.group()
@click.option(
    "--api-url",
    envvar="CIQ_API_URL",
    default=_DEFAULT_API_URL,
    show_default=True,
    help="Base URL of the ClusterIQ API.",
)
@click.option("--timeout", default=10.0, show_default=True, help="Request timeout in seconds.")
@click.pass_context
def cli(ctx: click.Context, api_url: str, timeout: float) -> None:
    """Query the ClusterIQ cloud inventory."""
    if ctx.obj is None:
        ctx.obj = _ApiClient(api_url, timeout)


@cli.command()
@click.argument("name", required=False)
@click.pass_obj
def accounts(client: _ApiClient, name: str | None) -> None:
    """List accounts, or show the account NAME."""
    if name:
        _echo(client.get(f"/accounts/{quote(name, safe='')}"))
    else:
        _echo(client.get("/accounts"))


@cli.command()
@click.option("--name", default=None, help="Only clusters with this exact name.")
@click.pass_obj
def clusters(client: _ApiClient, name: str | None) -> None:
    """List clusters across all accounts."""
    if name:
        _echo(client.get(f"/clusters/{quote(name, safe='')}"))
    else:
        _echo(client.get("/clusters"))


@cli.command()
@click.pass_obj
def instances(client: _ApiClient) -> None:
    """List instances across all clusters."""
    _echo(client.get("/instances"))


@cli.command()
@click.pass_obj
def status(client: _ApiClient) -> None:
    """Show inventory refresh health."""
    _echo(client.get("/status"))
