"""Plumbing shared by the command modules: context, client and error exit."""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from ..core import ConfigLoader, LinearClient
from ..exceptions import (
    ConfigError,
    FilterError,
    GraphQLError,
    InvalidTokenError,
    LookupFailedError,
    MissingTokenError,
)
from ..models import Config, OutputFormat
from .. import output

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Options resolved once by the root callback and shared by subcommands."""
    config_loader: ConfigLoader
    config: Config
    output_format: OutputFormat


def build_app_context(
    config_path: Optional[Path] = None,
    json_output: bool = False,
    plaintext: bool = False,
) -> AppContext:
    """Load configuration and pick the output mode.

    --json wins over --plaintext; both win over the configured default.
    """
    config_loader = ConfigLoader(config_path)
    config = config_loader.load_or_default()

    if json_output:
        output_format = OutputFormat.JSON
    elif plaintext:
        output_format = OutputFormat.PLAINTEXT
    else:
        output_format = OutputFormat(config.output)
    return AppContext(config_loader=config_loader, config=config, output_format=output_format)


def get_app_context(ctx: typer.Context) -> AppContext:
    root = ctx.find_root()
    if not isinstance(root.obj, AppContext):
        root.obj = build_app_context()
    return root.obj


def build_client(app_ctx: AppContext) -> LinearClient:
    return LinearClient(config=app_ctx.config, config_dir=app_ctx.config_loader.get_config_dir())


def resolve_limit(limit: Optional[int], app_ctx: AppContext) -> int:
    return limit if limit else app_ctx.config.page_size


@contextmanager
def handle_errors(app_ctx: AppContext, action: str):
    """Turn linctl exceptions into a message on stderr and exit status 1.

    Args:
        app_ctx: Supplies the output mode for the error message
        action: Short description used as a prefix for API failures,
            e.g. "Failed to fetch issues"
    """
    fmt = app_ctx.output_format
    try:
        yield
    except (typer.Exit, typer.Abort):
        raise
    except MissingTokenError:
        output.error("Not authenticated. Run 'linctl auth login' or set LINEAR_API_KEY.", fmt)
        sys.exit(1)
    except InvalidTokenError as e:
        output.error(str(e), fmt)
        sys.exit(1)
    except (FilterError, LookupFailedError, ValueError) as e:
        output.error(str(e), fmt)
        sys.exit(1)
    except ConfigError as e:
        output.error(f"Configuration error: {e}", fmt)
        sys.exit(1)
    except GraphQLError as e:
        output.error(f"{action}: {e}", fmt)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unexpected error during %r", action, exc_info=True)
        output.error(f"Unexpected error: {e}", fmt)
        sys.exit(1)
