"""Team commands for linctl CLI."""

from typing import Optional

import typer

from .. import output
from ..models import OutputFormat
from ..services import normalize_sort_option
from ._common import build_client, get_app_context, handle_errors, resolve_limit
from .user_commands import display_users

team_app = typer.Typer(
    name="team",
    help="List teams and their members.",
    add_completion=False,
    no_args_is_help=True,
)


@team_app.command("list")
def list_teams(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum number of teams to return"),
    sort: str = typer.Option("linear", "--sort", "-o", help="Sort order: linear (default), created, updated"),
):
    """List all teams."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to list teams"):
        order_by = normalize_sort_option(sort)
        teams = build_client(app_ctx).get_teams(first=resolve_limit(limit, app_ctx), order_by=order_by)
        nodes = teams.get('nodes') or []
        fmt = app_ctx.output_format

        if not nodes:
            output.info("No teams found", fmt)
        elif fmt is OutputFormat.JSON:
            output.render_json(nodes)
        elif fmt is OutputFormat.PLAINTEXT:
            typer.echo("# Teams")
            for team in nodes:
                typer.echo(f"## {team['name']}")
                output.render_markdown_fields([
                    ("Key", team.get('key')),
                    ("Description", team.get('description')),
                    ("Private", "Yes" if team.get('private') else "No"),
                    ("Issues", team.get('issueCount')),
                ])
                typer.echo("")
        else:
            rows = [
                [team['key'], team['name'], "Yes" if team.get('private') else "No", team.get('issueCount', 0)]
                for team in nodes
            ]
            output.render_table(["Key", "Name", "Private", "Issues"], rows)
            output.render_summary(len(nodes), "teams", (teams.get('pageInfo') or {}).get('hasNextPage', False))


team_app.command("ls", hidden=True)(list_teams)


@team_app.command("get")
def get_team(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Team key, e.g. ENG"),
):
    """Get team details."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch team"):
        team = build_client(app_ctx).get_team(key)
        if app_ctx.output_format is OutputFormat.JSON:
            output.render_json(team)
            return
        typer.echo(f"# {team['name']} ({team['key']})\n")
        output.render_markdown_fields([
            ("ID", team.get('id')),
            ("Description", team.get('description')),
            ("Private", "Yes" if team.get('private') else "No"),
            ("Issues", team.get('issueCount')),
        ])


team_app.command("show", hidden=True)(get_team)


@team_app.command("members")
def team_members(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Team key, e.g. ENG"),
):
    """List members of a team."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch team members"):
        members = build_client(app_ctx).get_team_members(key)
        display_users(members.get('nodes') or [], app_ctx.output_format, f"# {key} members")
