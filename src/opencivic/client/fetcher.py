"""Network access to the Open Civic Data API.

:class:`NetworkFetcher` issues the GET request for a method path and its
arguments and exposes the response body as a stream, so large result pages
can be copied to the cache or fed to the JSON decoder without first
materialising the whole body.
"""

from __future__ import annotations

import codecs
import io
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO, Optional, TextIO

import httpx

from opencivic.client.charset import is_utf8, resolve_charset
from opencivic.encoding import ArgMap, MethodPath, describe_request, request_uri
from opencivic.exceptions import APIError

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "text/json, application/json"
_READ_BUFFER_SIZE = 256 * 1024


class _ChunkStream(io.RawIOBase):
    """Read-only raw stream over an iterator of byte chunks."""

    def __init__(self, chunks: Iterator[bytes]) -> None:
        self._chunks = chunks
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # noqa: ANN001
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


@dataclass
class FetchedResponse:
    """A successful response whose body has not been read yet.

    Attributes:
        body: Binary stream over the (transfer-decoded) response body.
        charset: Text encoding resolved from the ``Content-Type`` header.
        status_code: The 2xx status the server answered with.
    """

    body: BinaryIO
    charset: str
    status_code: int

    def text(self) -> TextIO:
        """Wrap :attr:`body` in a text stream using :attr:`charset`."""
        return io.TextIOWrapper(self.body, encoding=self.charset)

    def utf8_body(self) -> BinaryIO:
        """Return :attr:`body` re-encoded as UTF-8.

        UTF-8 bodies are returned untouched, so their bytes reach the cache
        exactly as the server sent them.
        """
        if is_utf8(self.charset):
            return self.body
        return io.BufferedReader(
            _ChunkStream(_transcode_to_utf8(self.body, self.charset)),
            buffer_size=_READ_BUFFER_SIZE,
        )


def _transcode_to_utf8(body: BinaryIO, charset: str) -> Iterator[bytes]:
    decoder = codecs.getincrementaldecoder(charset)()
    while True:
        chunk = body.read(_READ_BUFFER_SIZE)
        text = decoder.decode(chunk, final=not chunk)
        if text:
            yield text.encode("utf-8")
        if not chunk:
            return


class NetworkFetcher:
    """Issues API requests through an :class:`httpx.Client`.

    The ``httpx`` client is owned by the caller (normally
    :class:`~opencivic.client.api.OpenCivicClient`), which opens and closes
    it.

    Args:
        http: Client whose ``base_url`` points at the API host.
        api_key: Key sent as the ``apikey`` query parameter.
    """

    def __init__(self, http: httpx.Client, api_key: str) -> None:
        self._http = http
        self._api_key = api_key

    def set_api_key(self, api_key: str) -> None:
        self._api_key = api_key

    @contextmanager
    def fetch(self, method: MethodPath, args: Optional[ArgMap] = None) -> Iterator[FetchedResponse]:
        """Send ``GET`` for *method* and *args* and yield the open response.

        The response is closed when the ``with`` block exits, whichever way
        it exits.

        Raises:
            EncodingError: If the request cannot be encoded.
            APIError: On any non-2xx status (the message is the server's
                status text) or on a transport failure.

        Example::

            with fetcher.fetch(["jurisdictions"], {"page": "2"}) as fetched:
                payload = json.load(fetched.text())
        """
        uri = request_uri(method, args, self._api_key)
        logger.debug("GET %s", describe_request(method, args))
        try:
            with self._http.stream("GET", uri, headers={"Accept": ACCEPT_HEADER}) as response:
                if response.status_code // 100 != 2:
                    message = response.reason_phrase or f"HTTP {response.status_code}"
                    logger.debug("API answered %d %s", response.status_code, message)
                    raise APIError(message, status_code=response.status_code)

                charset = resolve_charset(response.headers.get("content-type"))
                body = io.BufferedReader(
                    _ChunkStream(response.iter_bytes()),
                    buffer_size=_READ_BUFFER_SIZE,
                )
                with body:
                    yield FetchedResponse(
                        body=body, charset=charset, status_code=response.status_code
                    )
        except httpx.HTTPError as exc:
            raise APIError(f"Request failed: {exc}") from exc
