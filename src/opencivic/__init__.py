"""opencivic -- a cache-aware client for the Open Civic Data API.

Requests are described by a method path and query arguments, fetched over
HTTP, optionally kept in a local file cache, and decoded into pydantic
records that keep every property the record type does not declare.

Typical use::

    from opencivic import OpenCivicClient, OpenCivicData, resolve_settings

    with OpenCivicClient(resolve_settings()) as client:
        api = OpenCivicData(client)
        page = api.jurisdictions(classification="government")

Modules:
    client: Cache-aware client and network fetcher.
    cache: Filesystem response cache.
    encoding: Method paths and arguments to URIs and cache names.
    decoder: Schema-tolerant JSON decoding.
    models: Settings and API record models.
    resources: Typed endpoint helpers.
    config: XDG-aware settings resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from opencivic.client import OpenCivicClient  # noqa: E402
from opencivic.config import resolve_settings  # noqa: E402
from opencivic.resources import OpenCivicData  # noqa: E402

__all__ = ["OpenCivicClient", "OpenCivicData", "resolve_settings", "__version__"]
