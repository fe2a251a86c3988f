"""Query command -- fetch any API method and print the decoded JSON.

``opencivic query`` maps its positional arguments to the method path and
its ``-a key=value`` options to query arguments, then runs the request
through :class:`~opencivic.client.api.OpenCivicClient`, so the response
cache is used exactly as it would be from Python code.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from opencivic.exceptions import OpenCivicError
from opencivic.exit_codes import EXIT_INVALID_REQUEST
from opencivic.output import error, format_response


def _parse_args(pairs: list[str]) -> dict[str, str]:
    """Turn ``["key=value", ...]`` into a dict; exits with code 3 on bad input."""
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            error(f"Expected key=value, got: {pair}")
            raise typer.Exit(code=EXIT_INVALID_REQUEST)
        parsed[key] = value
    return parsed


def query_command(
    method: list[str] = typer.Argument(
        help="Method path segments, e.g. 'jurisdictions' or an OCD id."
    ),
    arg: list[str] = typer.Option(
        [], "--arg", "-a", help="Query argument as key=value (repeatable)."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the response cache for this request."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="API key (overrides configuration)."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Cache directory (overrides configuration)."
    ),
) -> None:
    """Fetch an API method and print the response.

    Example::

        opencivic query jurisdictions -a classification=government
        opencivic query ocd-division/country:us/state:ny --no-cache
    """
    from opencivic.client import OpenCivicClient
    from opencivic.config import resolve_settings

    args = _parse_args(arg)
    try:
        settings = resolve_settings(api_key=api_key, cache_dir=cache_dir)
        with OpenCivicClient(settings) as client:
            if no_cache:
                client.suspend_cache_once()
            result = client.query(method, args, Any)
    except OpenCivicError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(result)
