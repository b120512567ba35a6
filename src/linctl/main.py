"""Main CLI entry point for linctl."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from . import output
from .commands import auth_app, comment_app, issue_app, project_app, team_app, user_app
from .commands._common import build_app_context
from .exceptions import ConfigError
from .models import OutputFormat

app = typer.Typer(
    name="linctl",
    help="A command-line client for the Linear issue tracker.",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(issue_app, name="issue")
app.add_typer(project_app, name="project")
app.add_typer(team_app, name="team")
app.add_typer(user_app, name="user")
app.add_typer(comment_app, name="comment")
app.add_typer(auth_app, name="auth")


@app.callback()
def root(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    plaintext: bool = typer.Option(False, "--plaintext", help="Output markdown-style plain text"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug information to stderr"),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to linctl.yaml configuration file",
    ),
):
    """Manage Linear issues, projects, teams and comments from the terminal."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        ctx.obj = build_app_context(config_path, json_output=json_output, plaintext=plaintext)
    except ConfigError as e:
        fmt = OutputFormat.JSON if json_output else OutputFormat.TABLE
        output.error(f"Configuration error: {e}", fmt)
        sys.exit(1)


@app.command()
def version():
    """Show the version of linctl."""
    try:
        import importlib.metadata
        version = importlib.metadata.version("linctl")
        typer.echo(f"linctl version {version}")
    except importlib.metadata.PackageNotFoundError:
        typer.echo("linctl version unknown (not installed)")


def main():
    """Main entry point for the linctl CLI."""
    app()


if __name__ == "__main__":
    main()
