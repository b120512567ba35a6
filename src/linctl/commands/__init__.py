"""Command groups for linctl CLI."""

from .auth_commands import auth_app
from .comment_commands import comment_app
from .issue_commands import issue_app
from .project_commands import project_app
from .team_commands import team_app
from .user_commands import user_app

__all__ = ["auth_app", "comment_app", "issue_app", "project_app", "team_app", "user_app"]
