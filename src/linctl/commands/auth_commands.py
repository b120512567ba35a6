"""Authentication commands for linctl CLI."""

import os
from typing import Optional

import typer

from .. import output
from ..core import API_KEY_ENV_VAR, CredentialStore, LinearClient
from ..models import OutputFormat
from ._common import build_client, get_app_context, handle_errors

auth_app = typer.Typer(
    name="auth",
    help="Manage the Linear API key used by linctl.",
    add_completion=False,
    no_args_is_help=True,
)


@auth_app.command("login")
def login(
    ctx: typer.Context,
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Personal API key (prompted for when omitted)"
    ),
):
    """Validate a Linear personal API key and store it."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Login failed"):
        if not api_key:
            typer.echo("Create a personal API key at https://linear.app/settings/api")
            api_key = typer.prompt("Linear API key", hide_input=True)
        api_key = api_key.strip()
        if not api_key:
            raise ValueError("API key cannot be empty")

        client = LinearClient(token=api_key, config=app_ctx.config)
        viewer = client.validate_token()
        path = CredentialStore().save(api_key)
        output.success(f"Authenticated as {viewer.get('name')} ({viewer.get('email')})", app_ctx.output_format)
        if app_ctx.output_format is not OutputFormat.JSON:
            typer.echo(f"   Credentials saved to {path}")


@auth_app.command("status")
def status(ctx: typer.Context):
    """Show whether linctl can authenticate, and as whom."""
    app_ctx = get_app_context(ctx)
    fmt = app_ctx.output_format
    with handle_errors(app_ctx, "Failed to check authentication"):
        viewer = build_client(app_ctx).validate_token()
        if os.getenv(API_KEY_ENV_VAR):
            source = f"{API_KEY_ENV_VAR} environment variable"
        else:
            source = "stored credentials or .env file"

        if fmt is OutputFormat.JSON:
            output.render_json({"authenticated": True, "user": viewer, "source": source})
            return
        output.success(f"Authenticated as {viewer.get('name')} ({viewer.get('email')})", fmt)
        typer.echo(f"   Key source: {source}")


@auth_app.command("logout")
def logout(ctx: typer.Context):
    """Remove stored credentials."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Logout failed"):
        if CredentialStore().clear():
            output.success("Logged out", app_ctx.output_format)
        else:
            output.info("No stored credentials to remove", app_ctx.output_format)
        if os.getenv(API_KEY_ENV_VAR) and app_ctx.output_format is not OutputFormat.JSON:
            typer.echo(f"Note: {API_KEY_ENV_VAR} is still set in your environment")


@auth_app.command("whoami")
def whoami(ctx: typer.Context):
    """Print the name and email of the authenticated user."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch current user"):
        viewer = build_client(app_ctx).get_viewer()
        if app_ctx.output_format is OutputFormat.JSON:
            output.render_json(viewer)
        else:
            typer.echo(f"{viewer.get('name')} ({viewer.get('email')})")
