"""Cache-aware API client.

:class:`OpenCivicClient` is the single entry point for talking to the Open
Civic Data API.  Each :meth:`~OpenCivicClient.query` picks one of three
paths when it starts:

- **Direct network** -- no cache directory is configured, cache checks are
  switched off, or :meth:`~OpenCivicClient.suspend_cache_once` was called
  for this query.  The response is decoded straight off the network stream
  and the cache is left alone.
- **Cache hit** -- a non-empty cache file exists for the request and is
  decoded instead of calling the API.
- **Cache miss** -- the response is streamed into the cache file first,
  and the freshly written file is then decoded like a hit.  The cache
  therefore always holds exactly what later queries will read.

The caching flags live on the client instance.  A client is **not**
thread-safe: callers sharing one between threads must serialise access
themselves.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, TypeVar

import httpx

from opencivic.cache import CacheStore
from opencivic.client.fetcher import NetworkFetcher
from opencivic.decoder import decode
from opencivic.encoding import ArgMap, MethodPath, cache_filename, describe_request
from opencivic.exceptions import APIError, ConfigError
from opencivic.models import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CachingState:
    """Caching switches consulted at the start of every query.

    Attributes:
        cache_root: Cache directory; ``None`` disables caching entirely.
        check_cache: Sticky switch set by
            :meth:`OpenCivicClient.set_cache_enabled`.
        suspend_once: One-shot bypass, cleared when the next query ends.
    """

    cache_root: Optional[Path] = None
    check_cache: bool = True
    suspend_once: bool = False

    def is_caching(self) -> bool:
        return self.cache_root is not None and self.check_cache and not self.suspend_once


def _prepare_cache_dir(cache_dir: Optional[str]) -> Optional[Path]:
    """Expand *cache_dir* and create it if needed."""
    if not cache_dir:
        return None
    path = Path(cache_dir).expanduser()
    logger.debug("Cache directory: %s", path)
    if not path.exists():
        logger.info("Creating directories for cache: %s", path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigError(f"Cannot create cache directory {path}: {exc}") from exc
    elif not path.is_dir():
        raise ConfigError(f"Cache path {path} is not a directory")
    return path


class OpenCivicClient:
    """Synchronous, cache-aware client for the Open Civic Data API.

    Must be used as a context manager so that the underlying
    :class:`httpx.Client` is opened and closed properly.

    Args:
        settings: API key, cache directory, base URL and request settings.
        transport: Optional ``httpx`` transport, e.g. an
            :class:`httpx.MockTransport` in tests.

    Raises:
        ConfigError: If ``settings.api_key`` is missing or the cache
            directory cannot be created.

    Example::

        with OpenCivicClient(resolve_settings()) as client:
            page = client.query(["jurisdictions"], {"page": "1"}, Page[Jurisdiction])
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not settings.api_key:
            raise ConfigError(
                "No API key configured. Set OPENCIVIC_API_KEY, add 'apikey' to "
                "opencivicdata.properties, or run 'opencivic config set-key'."
            )
        self._settings = settings
        self._api_key: str = settings.api_key
        self._transport = transport
        self._state = CachingState(cache_root=_prepare_cache_dir(settings.cache_dir))
        self._store: Optional[CacheStore] = (
            CacheStore(self._state.cache_root) if self._state.cache_root is not None else None
        )
        self._http: Optional[httpx.Client] = None
        self._fetcher: Optional[NetworkFetcher] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> OpenCivicClient:
        self._http = httpx.Client(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout,
            verify=self._settings.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        self._fetcher = NetworkFetcher(self._http, self._api_key)
        return self

    def __exit__(self, *args: object) -> None:
        if self._http:
            self._http.close()
            self._http = None
            self._fetcher = None

    # ------------------------------------------------------------------ #
    # Caching switches
    # ------------------------------------------------------------------ #

    @property
    def cache_store(self) -> Optional[CacheStore]:
        """The cache store, or ``None`` when no cache directory is configured."""
        return self._store

    @property
    def state(self) -> CachingState:
        return self._state

    def set_cache_enabled(self, enabled: bool) -> None:
        """Switch cache lookups on or off until changed again."""
        if self._state.check_cache != enabled:
            logger.debug("Changing cache check setting to: %s", enabled)
        self._state.check_cache = enabled

    def is_cache_enabled(self) -> bool:
        return self._state.check_cache

    def suspend_cache_once(self) -> None:
        """Bypass the cache for the next :meth:`query` only.

        The sticky setting from :meth:`set_cache_enabled` is not changed.
        """
        self._state.suspend_once = True

    def set_api_key(self, api_key: str) -> None:
        """Replace the configured API key.

        Normally the key comes from :class:`~opencivic.models.Settings`;
        this is an escape hatch for scripts juggling several keys.
        """
        self._api_key = api_key
        if self._fetcher is not None:
            self._fetcher.set_api_key(api_key)

    # ------------------------------------------------------------------ #
    # Query
    # ------------------------------------------------------------------ #

    def query(
        self,
        method: MethodPath,
        args: Optional[ArgMap],
        target_type: type[T] | Any,
    ) -> T:
        """Fetch ``/<method>/?<args>`` and decode it into *target_type*.

        Args:
            method: Path segments, e.g. ``["people"]`` or an OCD id.
            args: Query arguments; ``None`` values are left out.
            target_type: A :class:`~opencivic.models.BaseRecord` subclass
                or any type :func:`~opencivic.decoder.decode` accepts.

        Returns:
            The decoded response.

        Raises:
            EncodingError: If the method path or an argument is invalid.
            CacheIOError: If the cache file cannot be read or written.
            DecodeError: If the body is not JSON or does not fit the type.
            APIError: On a non-2xx status or a transport failure.
        """
        assert self._fetcher is not None, "Client not initialised -- use as context manager"

        try:
            if not self._state.is_caching():
                logger.debug("Querying API without cache: %s", describe_request(method, args))
                with self._fetcher.fetch(method, args) as fetched, fetched.text() as reader:
                    return decode(reader, target_type)
            return self._query_through_cache(method, args, target_type)
        except APIError as exc:
            exc.with_request(method, args, target_type)
            raise
        except (OSError, UnicodeError, httpx.HTTPError) as exc:
            raise APIError(str(exc), method, args, target_type) from exc
        finally:
            self._state.suspend_once = False

    def _query_through_cache(
        self,
        method: MethodPath,
        args: Optional[ArgMap],
        target_type: Any,
    ) -> Any:
        assert self._store is not None
        assert self._fetcher is not None

        filename = cache_filename(method, args)
        if self._store.exists(filename):
            logger.debug("Cache hit: %s", filename)
        else:
            logger.debug("Cache miss, fetching into %s", filename)
            with self._fetcher.fetch(method, args) as fetched:
                self._store.write_from(filename, fetched.utf8_body())

        with self._store.open(filename) as fh, io.TextIOWrapper(fh, encoding="utf-8") as reader:
            return decode(reader, target_type)
