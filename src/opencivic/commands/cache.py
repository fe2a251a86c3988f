"""Cache commands -- inspect the local response cache.

Entries are never expired by opencivic; delete files from the directory
shown by ``opencivic cache path`` to force a refetch.
"""

from __future__ import annotations

from pathlib import Path

import typer

from opencivic.exceptions import OpenCivicError
from opencivic.output import error, info, print_table, suggest, warning


cache_app = typer.Typer(no_args_is_help=True)


def _configured_root() -> Path | None:
    from opencivic.config import resolve_settings

    try:
        settings = resolve_settings()
    except OpenCivicError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    if not settings.cache_dir:
        warning("No cache directory configured; responses are not cached.")
        suggest("Run: opencivic config set-cache-dir")
        return None
    return Path(settings.cache_dir).expanduser()


@cache_app.command("path")
def cache_path() -> None:
    """Print the configured cache directory."""
    from opencivic.output import get_output

    root = _configured_root()
    if root is not None:
        get_output().print_data(str(root))


@cache_app.command("list")
def cache_list() -> None:
    """List cached responses with their sizes.

    Zero-length files are shown as invalid; the next query for them
    refetches the response.
    """
    from opencivic.cache import CacheStore

    root = _configured_root()
    if root is None:
        return
    entries = CacheStore(root).entries()
    if not entries:
        info(f"Cache is empty: {root}")
        return
    print_table(
        ["name", "bytes", "valid"],
        [[entry.name, str(entry.size), "yes" if entry.valid else "no"] for entry in entries],
        title=str(root),
    )
