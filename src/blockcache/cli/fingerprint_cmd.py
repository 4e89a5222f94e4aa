"""CLI command for computing cache keys.

Usage:
    blockcache fingerprint core/paragraph --attrs '{"align": "left"}'
    blockcache fingerprint core/html --content "<p>hi</p>" --json
"""

from __future__ import annotations

import orjson
import typer
from rich.console import Console

from blockcache.cache.fingerprint import fingerprint
from blockcache.cache.keys import CacheKeys
from blockcache.core.errors import InvalidInputError
from blockcache.core.request import RenderRequest, validate_request


def fingerprint_command(
    block_type: str = typer.Argument(..., help="Block type identifier"),
    attrs: str = typer.Option(
        "{}",
        "--attrs",
        "-a",
        help="Block attributes as a JSON object",
    ),
    content: str | None = typer.Option(
        None,
        "--content",
        "-c",
        help="Raw content payload",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print key and prefix group as JSON",
    ),
) -> None:
    """Print the cache key a render request maps to."""
    console = Console(stderr=True)

    try:
        attributes = orjson.loads(attrs)
    except orjson.JSONDecodeError as e:
        console.print(f"[red]Invalid --attrs JSON:[/red] {e}")
        raise typer.Exit(code=1) from e

    if not isinstance(attributes, dict):
        console.print("[red]--attrs must be a JSON object[/red]")
        raise typer.Exit(code=1)

    try:
        request = validate_request(RenderRequest(block_type, attributes, content))
    except InvalidInputError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e

    key = fingerprint(request)
    prefix_group = CacheKeys.prefix_group(block_type)

    if as_json:
        typer.echo(orjson.dumps({"key": key, "prefix_group": prefix_group}).decode())
    else:
        typer.echo(key)
