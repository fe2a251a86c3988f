"""Charset detection from a ``Content-Type`` header."""

from __future__ import annotations

import codecs
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"


def resolve_charset(content_type: Optional[str]) -> str:
    """Return the ``charset=`` parameter of *content_type*, or ``utf-8``.

    Whitespace is ignored and the parameter name is matched
    case-sensitively.  Missing headers, missing parameters and charsets
    Python has no codec for all resolve to :data:`DEFAULT_CHARSET`.

    Example::

        >>> resolve_charset("application/json; charset=ISO-8859-1")
        'ISO-8859-1'
        >>> resolve_charset(None)
        'utf-8'
    """
    charset: Optional[str] = None
    if content_type:
        for param in "".join(content_type.split()).split(";"):
            if param.startswith("charset="):
                charset = param.split("=", 1)[1].strip("\"'")
                break

    if not charset:
        logger.debug("Defaulting to %s charset", DEFAULT_CHARSET)
        return DEFAULT_CHARSET

    try:
        codecs.lookup(charset)
    except LookupError:
        logger.warning("Unknown charset %r, defaulting to %s", charset, DEFAULT_CHARSET)
        return DEFAULT_CHARSET
    return charset


def is_utf8(charset: str) -> bool:
    """Return ``True`` if *charset* names the UTF-8 codec."""
    return codecs.lookup(charset).name == "utf-8"
