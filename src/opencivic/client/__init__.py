"""HTTP client module for opencivic.

Classes:
    :class:`OpenCivicClient` -- cache-aware client; the entry point for
    queries.
    :class:`NetworkFetcher` -- issues the GET request and exposes the
    response body as a stream.

Example::

    from opencivic.client import OpenCivicClient

    with OpenCivicClient(settings) as client:
        page = client.query(["bills"], {"q": "transit"}, Page[Bill])
"""

from opencivic.client.api import CachingState, OpenCivicClient
from opencivic.client.charset import resolve_charset
from opencivic.client.fetcher import FetchedResponse, NetworkFetcher

__all__ = [
    "CachingState",
    "FetchedResponse",
    "NetworkFetcher",
    "OpenCivicClient",
    "resolve_charset",
]
