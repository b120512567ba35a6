"""Comment commands for linctl CLI."""

from typing import Optional

import typer

from .. import output
from ..models import OutputFormat
from ..services import normalize_sort_option
from ._common import build_client, get_app_context, handle_errors, resolve_limit

comment_app = typer.Typer(
    name="comment",
    help="List and add comments on issues.",
    add_completion=False,
    no_args_is_help=True,
)


@comment_app.command("list")
def list_comments(
    ctx: typer.Context,
    issue_id: str = typer.Argument(..., help="Issue ID, e.g. ENG-123"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum number of comments to return"),
    sort: str = typer.Option("linear", "--sort", "-o", help="Sort order: linear (default), created, updated"),
):
    """List comments on an issue."""
    app_ctx = get_app_context(ctx)
    fmt = app_ctx.output_format
    with handle_errors(app_ctx, "Failed to list comments"):
        order_by = normalize_sort_option(sort)
        comments = build_client(app_ctx).get_issue_comments(
            issue_id, first=resolve_limit(limit, app_ctx), order_by=order_by
        )
        nodes = comments.get('nodes') or []

        if not nodes:
            output.info(f"No comments on {issue_id}", fmt)
            return
        if fmt is OutputFormat.JSON:
            output.render_json(nodes)
            return

        typer.echo(f"# Comments on {issue_id}\n")
        for comment in nodes:
            author = (comment.get('user') or {}).get('name') or "Unknown"
            typer.echo(f"## {author} - {output.format_time_ago(comment.get('createdAt'))}\n")
            typer.echo(f"{comment.get('body', '')}\n")
        if fmt is OutputFormat.TABLE:
            output.render_summary(len(nodes), "comments", (comments.get('pageInfo') or {}).get('hasNextPage', False))


comment_app.command("ls", hidden=True)(list_comments)


@comment_app.command("create")
def create_comment(
    ctx: typer.Context,
    issue_id: str = typer.Argument(..., help="Issue ID, e.g. ENG-123"),
    body: str = typer.Option(..., "--body", "-b", help="Comment text (markdown)"),
):
    """Add a comment to an issue."""
    app_ctx = get_app_context(ctx)
    with handle_errors(app_ctx, "Failed to create comment"):
        if not body.strip():
            raise ValueError("Comment body is required")
        comment = build_client(app_ctx).create_comment(issue_id, body)
        if app_ctx.output_format is OutputFormat.JSON:
            output.render_json(comment)
        else:
            output.success(f"Added comment to {issue_id}", app_ctx.output_format)


comment_app.command("add", hidden=True)(create_comment)
