"""Exception hierarchy for opencivic.

All exceptions inherit from :class:`OpenCivicError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`opencivic.exit_codes`.
The CLI entry point in :func:`opencivic.app.main` catches ``OpenCivicError``
and exits with the matching code.

Subclass hierarchy::

    OpenCivicError          (exit 1)
    +-- ConfigError         (exit 2)
    +-- APIError            (exit 4)
        +-- EncodingError   (exit 3)
        +-- CacheIOError    (exit 5)
        +-- DecodeError     (exit 6)

Every failure raised while serving :meth:`~opencivic.client.api.OpenCivicClient.query`
is an :class:`APIError` (or a subclass) that names the request it belongs
to: the method path, the arguments and the requested record type.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from opencivic.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CACHE_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_REQUEST,
)


class OpenCivicError(Exception):
    """Base exception for all opencivic errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(OpenCivicError):
    """Raised for configuration problems (no API key, unreadable config files)."""

    exit_code = EXIT_CONFIG_ERROR


class APIError(OpenCivicError):
    """Raised when a query cannot be served.

    Covers non-2xx responses (``message`` is the server's status text) and
    transport failures (the ``httpx`` error is chained as ``__cause__``).

    Args:
        message: Status text or failure description.
        method: The method path segments of the failing request.
        args: The argument mapping of the failing request.
        target_type: The record type the caller asked for.
        status_code: HTTP status code, when a response was received.
    """

    exit_code = EXIT_API_ERROR

    def __init__(
        self,
        message: str,
        method: Optional[Sequence[str]] = None,
        args: Optional[Mapping[str, Any]] = None,
        target_type: Any = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.method = list(method) if method is not None else None
        self.args_map = dict(args) if args is not None else None
        self.target_type = target_type
        self.status_code = status_code

    def with_request(
        self,
        method: Sequence[str],
        args: Optional[Mapping[str, Any]],
        target_type: Any,
    ) -> APIError:
        """Fill in request context that a lower layer did not know about.

        Context already present is kept. Returns ``self`` so the call can
        be used inline in a ``raise`` statement.
        """
        if self.method is None:
            self.method = list(method)
        if self.args_map is None:
            self.args_map = dict(args or {})
        if self.target_type is None:
            self.target_type = target_type
        return self

    @property
    def request(self) -> str:
        """A short ``path?key=value`` description of the failing request."""
        if self.method is None:
            return ""
        from opencivic.encoding import describe_request

        return describe_request(self.method, self.args_map)

    def __str__(self) -> str:
        request = self.request
        if not request:
            return self.message
        target = getattr(self.target_type, "__name__", None) or repr(self.target_type)
        return f"{self.message} [{request} -> {target}]"


class EncodingError(APIError):
    """Raised when a method path or argument cannot be turned into a URI or cache name."""

    exit_code = EXIT_INVALID_REQUEST


class CacheIOError(APIError):
    """Raised when the response cache cannot be read or written."""

    exit_code = EXIT_CACHE_ERROR


class DecodeError(APIError):
    """Raised for malformed JSON or a type mismatch on a declared record field.

    Properties the record type does not declare never cause this error.
    """

    exit_code = EXIT_DECODE_ERROR
