"""Project commands for linctl CLI."""

from typing import Any, Dict, Optional

import typer

from .. import output
from ..models import OutputFormat, RawFilterInputs
from ..utils import resolve_team
from ._common import build_client, get_app_context, handle_errors, resolve_limit
from .list_projects import ListProjectsCommand

project_app = typer.Typer(
    name="project",
    help="List and inspect Linear projects.",
    add_completion=False,
    no_args_is_help=True,
)


@project_app.command("list")
def list_projects(
    ctx: typer.Context,
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Filter by team key"),
    state: Optional[str] = typer.Option(None, "--state", "-s", help="Filter by state (planned, started, paused, completed, canceled)"),
    lead: Optional[str] = typer.Option(None, "--lead", help="Filter by project lead (email or 'me')"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum number of projects to return"),
    include_completed: bool = typer.Option(False, "--include-completed", "-c", help="Include completed and canceled projects"),
    sort: str = typer.Option("linear", "--sort", "-o", help="Sort order: linear (default), created, updated"),
    newer_than: str = typer.Option(
        "", "--newer-than", "-n",
        help="Show projects created after this time (default: 6_months_ago, use 'all_time' for no filter)",
    ),
):
    """List projects in your workspace."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to list projects"):
        inputs = RawFilterInputs(
            assignee=lead,
            state=state,
            team=resolve_team(team, app_ctx.config_loader),
            newer_than=newer_than,
            include_completed=include_completed,
        )
        client = build_client(app_ctx)
        projects = ListProjectsCommand(client).execute(inputs, sort, resolve_limit(limit, app_ctx))
        _display_projects(projects, app_ctx.output_format)


project_app.command("ls", hidden=True)(list_projects)


@project_app.command("get")
def get_project(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project ID"),
):
    """Get project details."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch project"):
        project = build_client(app_ctx).get_project(project_id)
        _display_project_detail(project, app_ctx.output_format)


project_app.command("show", hidden=True)(get_project)


def _team_keys(project: Dict[str, Any]) -> str:
    teams = (project.get('teams') or {}).get('nodes') or []
    return ", ".join(team['key'] for team in teams)


def _display_projects(projects: Dict[str, Any], output_format: OutputFormat) -> None:
    nodes = projects.get('nodes') or []
    if not nodes:
        output.info("No projects found", output_format)
        return

    if output_format is OutputFormat.JSON:
        output.render_json(nodes)
        return

    if output_format is OutputFormat.PLAINTEXT:
        typer.echo("# Projects")
        for project in nodes:
            typer.echo(f"## {project['name']}")
            output.render_markdown_fields([
                ("ID", project.get('id')),
                ("State", project.get('state')),
                ("Progress", f"{(project.get('progress') or 0) * 100:.0f}%"),
                ("Lead", (project.get('lead') or {}).get('name')),
                ("Teams", _team_keys(project)),
                ("Target", project.get('targetDate')),
                ("Created", output.format_date(project.get('createdAt'))),
                ("URL", project.get('url')),
            ])
            typer.echo("")
        typer.echo(f"\nTotal: {len(nodes)} projects")
        return

    rows = []
    for project in nodes:
        rows.append([
            output.truncate(project.get('name'), 30),
            project.get('state'),
            f"{(project.get('progress') or 0) * 100:.0f}%",
            (project.get('lead') or {}).get('name') or "-",
            _team_keys(project),
            project.get('targetDate') or "",
            output.format_date(project.get('createdAt')),
        ])
    output.render_table(["Name", "State", "Progress", "Lead", "Teams", "Target", "Created"], rows)
    output.render_summary(len(nodes), "projects", (projects.get('pageInfo') or {}).get('hasNextPage', False))


def _display_project_detail(project: Dict[str, Any], output_format: OutputFormat) -> None:
    if output_format is OutputFormat.JSON:
        output.render_json(project)
        return

    typer.echo(f"# {project['name']}\n")
    if project.get('description'):
        typer.echo(f"{project['description']}\n")
    output.render_markdown_fields([
        ("ID", project.get('id')),
        ("State", project.get('state')),
        ("Health", project.get('health')),
        ("Progress", f"{(project.get('progress') or 0) * 100:.0f}%"),
        ("Lead", (project.get('lead') or {}).get('name')),
        ("Teams", _team_keys(project)),
        ("Start", project.get('startDate')),
        ("Target", project.get('targetDate')),
        ("Created", output.format_date(project.get('createdAt'))),
        ("Completed", output.format_date(project.get('completedAt'))),
        ("URL", project.get('url')),
    ])

    members = (project.get('members') or {}).get('nodes') or []
    if members:
        typer.echo("\n## Members")
        for member in members:
            typer.echo(f"- {member['name']} ({member.get('email', '')})")

    issues = (project.get('issues') or {}).get('nodes') or []
    if issues:
        typer.echo(f"\n## Issues ({len(issues)})")
        for issue in issues:
            state = (issue.get('state') or {}).get('name', '')
            assignee = (issue.get('assignee') or {}).get('name') or "Unassigned"
            typer.echo(f"- {issue['identifier']}: {issue['title']} [{state}] ({assignee})")
