"""User commands for linctl CLI."""

from typing import Any, Dict, List, Optional

import typer

from .. import output
from ..models import OutputFormat
from ..services import normalize_sort_option
from ._common import build_client, get_app_context, handle_errors, resolve_limit

user_app = typer.Typer(
    name="user",
    help="List and inspect workspace users.",
    add_completion=False,
    no_args_is_help=True,
)


def _role(user: Dict[str, Any]) -> str:
    return "Admin" if user.get('admin') else "Member"


def display_users(users: List[Dict[str, Any]], output_format: OutputFormat, plaintext_title: str = "# Users") -> None:
    """Render a list of users; shared with `team members`."""
    if not users:
        output.info("No users found", output_format)
        return

    if output_format is OutputFormat.JSON:
        output.render_json(users)
        return

    if output_format is OutputFormat.PLAINTEXT:
        typer.echo(plaintext_title)
        for user in users:
            typer.echo(f"## {user['name']}")
            output.render_markdown_fields([
                ("Email", user.get('email')),
                ("Display Name", user.get('displayName')),
                ("Role", _role(user)),
                ("Active", "Yes" if user.get('active') else "No"),
            ])
            typer.echo("")
        return

    rows = [
        [user['name'], user.get('email', ''), _role(user), "Yes" if user.get('active') else "No"]
        for user in users
    ]
    output.render_table(["Name", "Email", "Role", "Active"], rows)
    output.render_summary(len(users), "users")


def _display_user_detail(user: Dict[str, Any], output_format: OutputFormat) -> None:
    if output_format is OutputFormat.JSON:
        output.render_json(user)
        return

    typer.echo(f"# {user['name']}\n")
    output.render_markdown_fields([
        ("ID", user.get('id')),
        ("Email", user.get('email')),
        ("Display Name", user.get('displayName')),
        ("Role", _role(user)),
        ("Active", "Yes" if user.get('active') else "No"),
        ("Member since", output.format_date(user.get('createdAt'))),
    ])


@user_app.command("list")
def list_users(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum number of users to return"),
    active: bool = typer.Option(False, "--active", "-a", help="Only show active users"),
    sort: str = typer.Option("linear", "--sort", "-o", help="Sort order: linear (default), created, updated"),
):
    """List all users in your workspace."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to list users"):
        order_by = normalize_sort_option(sort)
        users = build_client(app_ctx).get_users(first=resolve_limit(limit, app_ctx), order_by=order_by)
        nodes = users.get('nodes') or []
        if active:
            nodes = [user for user in nodes if user.get('active')]
        display_users(nodes, app_ctx.output_format)


user_app.command("ls", hidden=True)(list_users)


@user_app.command("get")
def get_user(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="User email address"),
):
    """Get user details by email."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch user"):
        user = build_client(app_ctx).get_user(email)
        _display_user_detail(user, app_ctx.output_format)


user_app.command("show", hidden=True)(get_user)


@user_app.command("me")
def me(ctx: typer.Context):
    """Show the authenticated user."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch current user"):
        _display_user_detail(build_client(app_ctx).get_viewer(), app_ctx.output_format)
