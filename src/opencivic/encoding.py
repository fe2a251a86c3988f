"""Request encoding -- method paths and arguments to URIs and cache names.

A request is identified by a *method path* (ordered path segments such as
``["jurisdictions"]`` or ``["ocd-division/country:us/state:ny"]``) and an
*argument map* (``key -> value`` where ``None`` values are skipped).  The
same pair is encoded two ways:

* :func:`request_uri` -- the path and query string sent to the API.
* :func:`cache_filename` -- the name of the file holding the cached
  response.

Arguments are always emitted in ascending key order, so logically equal
requests produce byte-identical URIs and cache names regardless of how the
caller built the mapping.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence
from urllib.parse import quote, quote_plus

from opencivic.exceptions import EncodingError

ArgMap = Mapping[str, Any]
MethodPath = Sequence[str]

_CACHE_SUFFIX = ".json"


def _check_method(method: MethodPath) -> list[str]:
    if isinstance(method, str):
        # A bare string would otherwise be iterated character by character.
        method = [method]
    segments = list(method) if method is not None else []
    if not segments:
        raise EncodingError("Method path must have at least one segment")
    for segment in segments:
        if not isinstance(segment, str) or not segment:
            raise EncodingError(f"Invalid method path segment: {segment!r}")
    return segments


def present_args(args: Optional[ArgMap]) -> list[tuple[str, str]]:
    """Return the non-``None`` arguments as ``(key, value)`` pairs in key order.

    Non-string values are converted with :func:`str` so that ``page=2`` and
    ``page="2"`` name the same request.

    Raises:
        EncodingError: If a key is empty or not a string.
    """
    if not args:
        return []
    pairs: list[tuple[str, str]] = []
    for key, value in args.items():
        if not isinstance(key, str) or not key:
            raise EncodingError(f"Invalid argument name: {key!r}")
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((key, str(value)))
    pairs.sort(key=lambda pair: pair[0])
    return pairs


def _form_encode(text: str) -> str:
    """UTF-8 form encoding (spaces become ``+``)."""
    try:
        return quote_plus(text, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"Cannot encode {text!r}: {exc}") from exc


def _cache_component(text: str) -> str:
    # "." separates components in a cache name, so it is escaped inside one.
    return _form_encode(text).replace(".", "%2E")


def request_path(method: MethodPath) -> str:
    """Build the URI path for *method*, e.g. ``/jurisdictions/``.

    Segments are joined with ``/`` behind a leading ``/`` and followed by a
    trailing ``/``.  ``/`` and ``:`` inside a segment are kept so OCD ids can
    be passed as a single segment.
    """
    parts = []
    for segment in _check_method(method):
        try:
            parts.append(quote(segment, safe="/:", encoding="utf-8", errors="strict"))
        except UnicodeEncodeError as exc:
            raise EncodingError(f"Cannot encode {segment!r}: {exc}") from exc
    return "/" + "/".join(parts) + "/"


def query_string(api_key: str, args: Optional[ArgMap] = None) -> str:
    """Build ``apikey=<key>&k=v...`` with every key and value form-encoded."""
    terms = [f"apikey={_form_encode(api_key)}"]
    for key, value in present_args(args):
        terms.append(f"{_form_encode(key)}={_form_encode(value)}")
    return "&".join(terms)


def request_uri(method: MethodPath, args: Optional[ArgMap], api_key: str) -> str:
    """Return the path and query string for a GET request.

    Example::

        >>> request_uri(["bills"], {"q": "tax cut", "page": None}, "KEY")
        '/bills/?apikey=KEY&q=tax+cut'
    """
    return f"{request_path(method)}?{query_string(api_key, args)}"


def cache_filename(method: MethodPath, args: Optional[ArgMap] = None) -> str:
    """Return the cache file name for a request.

    The encoded method segments are joined with ``.``, each present argument
    appends ``.<key>.<value>`` in key order, and the name ends in ``.json``.
    Components are form-encoded with ``.`` escaped as ``%2E``, and the
    result has no directory component.

    Example::

        >>> cache_filename(["people"], {"name": "Jane Doe", "page": "2"})
        'people.name.Jane+Doe.page.2.json'
    """
    name = ".".join(_cache_component(segment) for segment in _check_method(method))
    for key, value in present_args(args):
        name += f".{_cache_component(key)}.{_cache_component(value)}"
    return name + _CACHE_SUFFIX


def describe_request(method: MethodPath, args: Optional[ArgMap] = None) -> str:
    """Human-readable ``a/b?k=v`` form used in log lines and error messages.

    Unlike the other helpers this never raises, since it runs while an
    error is already being reported.
    """
    if isinstance(method, str):
        method = [method]
    path = "/".join(str(segment) for segment in (method or []))
    terms = [
        f"{key}={value}" for key, value in sorted((args or {}).items(), key=lambda kv: str(kv[0]))
        if value is not None
    ]
    return f"{path}?{'&'.join(terms)}" if terms else path
