"""Team key resolution for commands that take --team."""

import re
from typing import Optional

from ..exceptions import ConfigNotFoundError, InvalidYAMLError

TEAM_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def resolve_team(team: Optional[str], config_loader=None, required: bool = False) -> Optional[str]:
    """Resolve a team key from the --team flag or configuration.

    Priority order:
    1. Explicit team parameter
    2. default_team from linctl.yaml
    3. None, or an error when ``required`` is set

    Args:
        team: Team key from the command line, e.g. 'ENG', or None
        config_loader: ConfigLoader used to read default_team
        required: Raise instead of returning None when nothing resolves

    Returns:
        Team key, or None when no team applies

    Raises:
        ValueError: If the key is malformed or a required team cannot be resolved
    """
    if team:
        team = team.strip()
        if not TEAM_KEY_PATTERN.match(team):
            raise ValueError(
                f"Invalid team key '{team}'. Expected a key such as 'ENG'\n"
                f"   Run 'linctl team list' to see available keys"
            )
        return team

    if config_loader is not None:
        try:
            config = config_loader.load()
        except (ConfigNotFoundError, InvalidYAMLError):
            config = None
        if config is not None and config.default_team:
            return config.default_team

    if required:
        raise ValueError(
            "Team is required (--team).\n"
            "   Pass --team KEY or set default_team in linctl.yaml"
        )
    return None
