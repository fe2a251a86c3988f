"""Filesystem response cache for opencivic.

This package provides :class:`CacheStore`, which keeps one raw JSON
response per distinct request under a cache directory.  File names come
from :func:`~opencivic.encoding.cache_filename`, so the same request always
maps to the same file.

The store is consumed by :class:`~opencivic.client.api.OpenCivicClient`
and is enabled by setting ``cache_dir`` in
:class:`~opencivic.models.Settings`.
"""

from opencivic.cache.store import CacheEntryInfo, CacheStore

__all__ = ["CacheEntryInfo", "CacheStore"]
