"""CLI commands for blockcache.

Provides command-line interface using Typer:
- blockcache fingerprint: Compute the cache key of a render request
- blockcache settings: Show effective configuration
- blockcache publish: Publish a publication event to invalidate caches

Usage:
    blockcache --help
    blockcache fingerprint core/paragraph --attrs '{"align": "left"}'
    blockcache publish published post-42 --block-type core/latest-posts
"""

import typer

from blockcache.cli.fingerprint_cmd import fingerprint_command
from blockcache.cli.publish_cmd import publish
from blockcache.cli.settings_cmd import show_settings
from blockcache.config import Settings
from blockcache.observability.logging import configure_logging

# Main CLI application
app = typer.Typer(
    name="blockcache",
    help="blockcache: fingerprinted render cache for content blocks",
    no_args_is_help=True,
)

# Add subcommands
app.command("fingerprint")(fingerprint_command)
app.command("settings")(show_settings)
app.command("publish")(publish)


@app.callback()
def callback() -> None:
    """blockcache: fingerprinted render cache for content blocks."""
    settings = Settings()
    configure_logging(json_format=settings.log_json, level=settings.log_level)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
