"""CLI interface for mdview.

Serves a Markdown file as HTML and reloads the browser when it changes.
"""

import logging
import sys
from pathlib import Path

import click

from mdview import __version__
from mdview.config import BROWSER_NAMES, Config


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--port",
    "-p",
    type=click.IntRange(0, 65535),
    default=None,
    help="Port to serve on (default: random free port)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (default: 127.0.0.1)",
)
@click.option(
    "--refresh",
    "-r",
    "refresh_interval",
    type=click.IntRange(min=1),
    default=None,
    metavar="SECONDS",
    help="Reload the page every SECONDS instead of on file changes",
)
@click.option(
    "--browser",
    "-b",
    type=click.Choice(BROWSER_NAMES),
    default=None,
    help="Browser to open (default: system default browser)",
)
@click.option(
    "--no-browser",
    is_flag=True,
    help="Don't open a browser",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Path to configuration file (default: auto-discover mdview.toml)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
@click.version_option(__version__, prog_name="mdview")
def cli(
    file: Path,
    port: int | None,
    host: str | None,
    refresh_interval: int | None,
    browser: str | None,
    no_browser: bool,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Serve a markdown FILE with live reload."""
    from mdview.browser import open_browser
    from mdview.server import run_server
    from mdview.session import Session

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = Config.load(config_path).with_overrides(
            host=host,
            port=port,
            refresh_interval=refresh_interval,
            browser=browser,
            open_browser=False if no_browser else None,
        )
        session = Session.create(file, refresh_interval=config.live_reload.refresh_interval)
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if session.live_reload_enabled:
        click.echo("Live reload: enabled")
    else:
        click.echo(f"Refresh interval: {session.refresh_interval}s")

    def on_ready(url: str) -> None:
        click.echo(f"Serving markdown at {url}")
        if config.browser.open and not open_browser(url, config.browser.name):
            click.echo(f"Please open {url} in your browser")

    run_server(config, session, on_ready)


if __name__ == "__main__":
    cli()
