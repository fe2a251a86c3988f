"""Config commands -- view and modify the user settings file.

Settings live in ``config.json`` under the opencivic config directory and
have the lowest precedence: environment variables and a project-local
``opencivicdata.properties`` override them (see
:func:`~opencivic.config.resolve_settings`).
"""

from __future__ import annotations

from typing import Optional

import typer

from opencivic.exceptions import OpenCivicError
from opencivic.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


def _mask(secret: Optional[str]) -> Optional[str]:
    if not secret:
        return secret
    return secret[:4] + "*" * max(len(secret) - 4, 4)


@config_app.command("show")
def config_show() -> None:
    """Show the effective settings (API key masked).

    Example::

        opencivic config show
        opencivic --json config show
    """
    from opencivic.config import get_config_dir, resolve_settings

    try:
        settings = resolve_settings()
    except OpenCivicError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config directory: {get_config_dir()}")
    data = settings.model_dump(mode="json")
    data["api_key"] = _mask(settings.api_key)
    format_response(data)


@config_app.command("set-key")
def config_set_key(
    api_key: str = typer.Argument(help="Open Civic Data API key."),
) -> None:
    """Store the API key in the user settings."""
    from opencivic.config import load_user_settings, save_user_settings

    try:
        settings = load_user_settings()
    except OpenCivicError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    settings.api_key = api_key
    path = save_user_settings(settings)
    success(f"API key saved to {path}")


@config_app.command("set-cache-dir")
def config_set_cache_dir(
    directory: Optional[str] = typer.Argument(
        None, help="Cache directory (defaults to the platform cache location)."
    ),
) -> None:
    """Enable the response cache by storing its directory in the user settings."""
    from opencivic.config import get_cache_dir, load_user_settings, save_user_settings

    try:
        settings = load_user_settings()
    except OpenCivicError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    settings.cache_dir = directory or str(get_cache_dir())
    save_user_settings(settings)
    success(f"Caching responses in {settings.cache_dir}")
