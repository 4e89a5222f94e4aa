"""CLI command for showing effective configuration.

Usage:
    blockcache settings
"""

from __future__ import annotations

import orjson
import typer

from blockcache.config import Settings


def show_settings() -> None:
    """Print settings resolved from the environment and .env as JSON."""
    settings = Settings()
    typer.echo(orjson.dumps(settings.model_dump(), option=orjson.OPT_INDENT_2).decode())
