"""Numeric process exit codes used by the ``opencivic`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~opencivic.exceptions.OpenCivicError` subclass.
Shell scripts wrapping the CLI can inspect the exit code to tell a bad API
key from a failed request without parsing stderr.

Example::

    $ opencivic query jurisdictions
    $ echo $?
    2   # EXIT_CONFIG_ERROR -- no API key configured
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_ERROR = 2
"""The API key or a configuration file is missing or invalid."""

EXIT_INVALID_REQUEST = 3
"""The method path or an argument could not be encoded."""

EXIT_API_ERROR = 4
"""The remote API answered with a non-2xx status or could not be reached."""

EXIT_CACHE_ERROR = 5
"""The local response cache could not be read or written."""

EXIT_DECODE_ERROR = 6
"""The response body was not valid JSON or did not match the record type."""
