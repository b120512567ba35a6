"""Issue commands for linctl CLI."""

from typing import Any, Dict, List, Optional

import typer

from .. import output
from ..models import OutputFormat, PRIORITY_UNSET, RawFilterInputs
from ..services import IssueService
from ..utils import resolve_team
from ._common import build_client, get_app_context, handle_errors, resolve_limit
from .list_issues import ListIssuesCommand, SearchIssuesCommand

NEWER_THAN_HELP = (
    "Show issues created after this time, e.g. 2_weeks_ago, 2024-01-01 "
    "(default: 6_months_ago, use 'all_time' for no filter)"
)
PRIORITY_LEVELS = "(0=None, 1=Urgent, 2=High, 3=Normal, 4=Low)"
PRIORITY_HELP = f"Priority {PRIORITY_LEVELS}"

issue_app = typer.Typer(
    name="issue",
    help="Create, list, update, and manage Linear issues.",
    add_completion=False,
    no_args_is_help=True,
)


@issue_app.command("list")
def list_issues(
    ctx: typer.Context,
    assignee: Optional[str] = typer.Option(None, "--assignee", "-a", help="Filter by assignee (email, 'me' or 'unassigned')"),
    state: Optional[str] = typer.Option(None, "--state", "-s", help="Filter by state name"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Filter by team key"),
    priority: int = typer.Option(PRIORITY_UNSET, "--priority", "-r", min=-1, max=4, help=f"Filter by priority {PRIORITY_LEVELS}"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum number of issues to fetch"),
    include_completed: bool = typer.Option(False, "--include-completed", "-c", help="Include completed and canceled issues"),
    sort: str = typer.Option("linear", "--sort", "-o", help="Sort order: linear (default), created, updated"),
    newer_than: str = typer.Option("", "--newer-than", "-n", help=NEWER_THAN_HELP),
):
    """List issues with optional filtering."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch issues"):
        inputs = RawFilterInputs(
            assignee=assignee,
            state=state,
            team=resolve_team(team, app_ctx.config_loader),
            priority=priority,
            newer_than=newer_than,
            include_completed=include_completed,
        )
        client = build_client(app_ctx)
        issues = ListIssuesCommand(client).execute(inputs, sort, resolve_limit(limit, app_ctx))
        _display_issue_collection(issues, app_ctx.output_format, "No issues found", "issues", "# Issues")


issue_app.command("ls", hidden=True)(list_issues)


@issue_app.command("search")
def search_issues(
    ctx: typer.Context,
    query: List[str] = typer.Argument(..., help="Search terms"),
    assignee: Optional[str] = typer.Option(None, "--assignee", "-a", help="Filter by assignee (email, 'me' or 'unassigned')"),
    state: Optional[str] = typer.Option(None, "--state", "-s", help="Filter by state name"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Filter by team key"),
    priority: int = typer.Option(PRIORITY_UNSET, "--priority", "-r", min=-1, max=4, help=f"Filter by priority {PRIORITY_LEVELS}"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum number of issues to fetch"),
    include_completed: bool = typer.Option(False, "--include-completed", "-c", help="Include completed and canceled issues"),
    include_archived: bool = typer.Option(False, "--include-archived", help="Include archived issues in results"),
    sort: str = typer.Option("linear", "--sort", "-o", help="Sort order: linear (default), created, updated"),
    newer_than: str = typer.Option("", "--newer-than", "-n", help=NEWER_THAN_HELP),
):
    """Search issues by keyword."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to search issues"):
        term = " ".join(query).strip()
        inputs = RawFilterInputs(
            assignee=assignee,
            state=state,
            team=resolve_team(team, app_ctx.config_loader),
            priority=priority,
            newer_than=newer_than,
            include_completed=include_completed,
        )
        client = build_client(app_ctx)
        issues = SearchIssuesCommand(client).execute(
            term, inputs, sort, resolve_limit(limit, app_ctx), include_archived
        )
        _display_issue_collection(
            issues, app_ctx.output_format, f'No matches found for "{term}"', "matches", "# Search Results"
        )


issue_app.command("find", hidden=True)(search_issues)


@issue_app.command("get")
def get_issue(
    ctx: typer.Context,
    issue_id: str = typer.Argument(..., help="Issue identifier, e.g. ENG-123"),
):
    """Get issue details."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to fetch issue"):
        issue = build_client(app_ctx).get_issue(issue_id)
        _display_issue_detail(issue, app_ctx.output_format)


issue_app.command("show", hidden=True)(get_issue)


@issue_app.command("create")
def create_issue(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", help="Issue title"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team key (uses default_team from config if omitted)"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Issue description"),
    priority: int = typer.Option(3, "--priority", min=0, max=4, help=PRIORITY_HELP),
    assign_me: bool = typer.Option(False, "--assign-me", "-m", help="Assign to yourself"),
):
    """Create a new issue."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to create issue"):
        team_key = resolve_team(team, app_ctx.config_loader, required=True)
        client = build_client(app_ctx)
        issue_input = IssueService(client).build_create_input(
            title, team_key, description=description, priority=priority, assign_to_me=assign_me
        )
        issue = client.create_issue(issue_input)

        if app_ctx.output_format is OutputFormat.JSON:
            output.render_json(issue)
            return
        output.success(f"Created issue {issue['identifier']}: {issue['title']}", app_ctx.output_format)
        if issue.get('assignee') and app_ctx.output_format is OutputFormat.TABLE:
            typer.echo(f"  Assigned to: {issue['assignee']['name']}")


issue_app.command("new", hidden=True)(create_issue)


@issue_app.command("update")
def update_issue(
    ctx: typer.Context,
    issue_id: str = typer.Argument(..., help="Issue identifier, e.g. ENG-123"),
    title: Optional[str] = typer.Option(None, "--title", help="New title for the issue"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description for the issue"),
    assignee: Optional[str] = typer.Option(None, "--assignee", "-a", help="Assignee (email, name, 'me', or 'unassigned')"),
    state: Optional[str] = typer.Option(None, "--state", "-s", help="State name (e.g., 'Todo', 'In Progress', 'Done')"),
    priority: Optional[int] = typer.Option(None, "--priority", min=0, max=4, help=PRIORITY_HELP),
    due_date: Optional[str] = typer.Option(None, "--due-date", help="Due date (YYYY-MM-DD), or empty to remove"),
    project: Optional[str] = typer.Option(None, "--project", help="Project ID to set; empty or 'none' to remove"),
):
    """Update fields of an issue."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to update issue"):
        client = build_client(app_ctx)
        issue_input = IssueService(client).build_update_input(
            issue_id,
            title=title,
            description=description,
            assignee=assignee,
            state=state,
            priority=priority,
            due_date=due_date,
            project=project,
        )
        issue = client.update_issue(issue_id, issue_input)

        if app_ctx.output_format is OutputFormat.JSON:
            output.render_json(issue)
        else:
            output.success(f"Updated issue {issue['identifier']}", app_ctx.output_format)


@issue_app.command("assign")
def assign_issue(
    ctx: typer.Context,
    issue_id: str = typer.Argument(..., help="Issue identifier, e.g. ENG-123"),
):
    """Assign an issue to yourself."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to assign issue"):
        client = build_client(app_ctx)
        viewer = client.get_viewer()
        issue = client.update_issue(issue_id, {'assigneeId': viewer['id']})

        if app_ctx.output_format is OutputFormat.JSON:
            output.render_json(issue)
        else:
            output.success(f"Assigned {issue['identifier']} to {viewer['name']}", app_ctx.output_format)


def _display_issue_collection(
    issues: Dict[str, Any],
    output_format: OutputFormat,
    empty_message: str,
    summary_label: str,
    plaintext_title: str,
) -> None:
    nodes = issues.get('nodes') or []
    if not nodes:
        output.info(empty_message, output_format)
        return

    if output_format is OutputFormat.JSON:
        output.render_json(nodes)
        return

    if output_format is OutputFormat.PLAINTEXT:
        typer.echo(plaintext_title)
        for issue in nodes:
            typer.echo(f"## {issue['title']}")
            output.render_markdown_fields([
                ("ID", issue.get('identifier')),
                ("State", (issue.get('state') or {}).get('name')),
                ("Assignee", (issue.get('assignee') or {}).get('name') or "Unassigned"),
                ("Team", (issue.get('team') or {}).get('key')),
                ("Created", output.format_date(issue.get('createdAt'))),
                ("URL", issue.get('url')),
                ("Description", issue.get('description')),
            ])
            typer.echo("")
        typer.echo(f"\nTotal: {len(nodes)} {summary_label}")
        return

    rows = []
    for issue in nodes:
        rows.append([
            issue.get('identifier'),
            output.truncate(issue.get('title')),
            (issue.get('state') or {}).get('name', ''),
            (issue.get('assignee') or {}).get('name') or "Unassigned",
            (issue.get('team') or {}).get('key', ''),
            output.format_date(issue.get('createdAt')),
            issue.get('url'),
        ])
    output.render_table(["ID", "Title", "State", "Assignee", "Team", "Created", "URL"], rows)
    output.render_summary(len(nodes), summary_label, (issues.get('pageInfo') or {}).get('hasNextPage', False))


def _display_issue_detail(issue: Dict[str, Any], output_format: OutputFormat) -> None:
    if output_format is OutputFormat.JSON:
        output.render_json(issue)
        return

    state = issue.get('state') or {}
    assignee = issue.get('assignee')
    team = issue.get('team') or {}

    if output_format is OutputFormat.PLAINTEXT:
        typer.echo(f"# {issue['identifier']} - {issue['title']}\n")
        if issue.get('description'):
            typer.echo(f"## Description\n{issue['description']}\n")
        typer.echo("## Core Details")
    else:
        typer.secho(f"\n{issue['identifier']}: {issue['title']}", bold=True)

    output.render_markdown_fields([
        ("ID", issue.get('identifier')),
        ("State", f"{state.get('name')} ({state.get('type')})" if state else None),
        ("Assignee", f"{assignee['name']} ({assignee.get('email', '')})" if assignee else "Unassigned"),
        ("Creator", (issue.get('creator') or {}).get('name')),
        ("Team", f"{team.get('name')} ({team.get('key')})" if team else None),
        ("Priority", f"{output.priority_label(issue.get('priority'))} ({issue.get('priority')})"),
        ("Estimate", issue.get('estimate')),
        ("Created", output.format_date(issue.get('createdAt'), "%Y-%m-%d %H:%M:%S")),
        ("Updated", output.format_date(issue.get('updatedAt'), "%Y-%m-%d %H:%M:%S")),
        ("Completed", output.format_date(issue.get('completedAt'), "%Y-%m-%d %H:%M:%S")),
        ("Canceled", output.format_date(issue.get('canceledAt'), "%Y-%m-%d %H:%M:%S")),
        ("Due Date", issue.get('dueDate')),
        ("Git Branch", issue.get('branchName')),
        ("URL", issue.get('url')),
    ])

    project = issue.get('project')
    if project:
        typer.echo("\n## Project")
        output.render_markdown_fields([
            ("Name", project.get('name')),
            ("State", project.get('state')),
            ("Progress", f"{(project.get('progress') or 0) * 100:.0f}%"),
        ])

    cycle = issue.get('cycle')
    if cycle:
        typer.echo("\n## Cycle")
        output.render_markdown_fields([
            ("Name", f"{cycle.get('name') or ''} (#{cycle.get('number')})"),
            ("Period", f"{output.format_date(cycle.get('startsAt'))} to {output.format_date(cycle.get('endsAt'))}"),
        ])

    parent = issue.get('parent')
    if parent:
        typer.echo("\n## Parent")
        typer.echo(f"- {parent['identifier']}: {parent['title']}")

    children = (issue.get('children') or {}).get('nodes') or []
    if children:
        typer.echo("\n## Sub-issues")
        for child in children:
            typer.echo(f"- {child['identifier']}: {child['title']} [{(child.get('state') or {}).get('name', '')}]")

    labels = (issue.get('labels') or {}).get('nodes') or []
    if labels:
        typer.echo("\n## Labels")
        typer.echo(", ".join(label['name'] for label in labels))

    if output_format is OutputFormat.TABLE and issue.get('description'):
        typer.echo(f"\n## Description\n{issue['description']}")

    comments = (issue.get('comments') or {}).get('nodes') or []
    if comments:
        typer.echo(f"\n## Recent Comments ({len(comments)})")
        for comment in comments:
            author = (comment.get('user') or {}).get('name', 'Unknown')
            typer.echo(f"- {author} ({output.format_time_ago(comment.get('createdAt'))}): {output.truncate(comment.get('body'), 80)}")
