"""Exception types shared across the segmentation core, oracle, and API.

WHY: Callers must be able to tell "the input was empty" apart from "the
translation service is down" apart from "the service answered with garbage".
Each of these needs a different reaction (reject, retry or degrade, recover
locally), so each gets its own type.

HOW: A small hierarchy rooted at VietListenerError. Validation problems
also subclass ValueError so generic callers (argparse, FastAPI handlers)
can treat them as bad input.

RULES:
- EmptyInputError: normalized text has zero syllables — raised before any
  scoring or oracle work
- OracleUnavailableError: transport/HTTP failure of a batch; always
  propagated, never masked as an empty result
- MalformedOracleResponseError: unparseable response; recovered inside the
  oracle client by identity fallback
- OracleNotConfiguredError: an operation needs an oracle but none is set up
"""

from __future__ import annotations


class VietListenerError(Exception):
    """Base class for all errors raised by this package."""


class EmptyInputError(VietListenerError, ValueError):
    """Raised when the input text contains no syllables after normalization."""


class OracleError(VietListenerError):
    """Base class for translation oracle failures."""


class OracleUnavailableError(OracleError):
    """Raised when a translation batch fails in transport or with an HTTP error.

    WHY: The caller decides whether to retry or fall back to lexicon-only
    segmentation, so the failure must be explicit.

    HOW: Wraps the HTTP status code (0 for transport errors) and the
    response body or exception text.

    RULES:
    - Always include status_code and message
    - failed_batches counts how many batches of the request failed
    """

    def __init__(self, status_code: int, message: str, failed_batches: int = 1) -> None:
        self.status_code = status_code
        self.message = message
        self.failed_batches = failed_batches
        super().__init__(f"Translation oracle error {status_code}: {message}")


class MalformedOracleResponseError(OracleError):
    """Raised by a backend when a response body cannot be parsed at all."""


class OracleNotConfiguredError(OracleError):
    """Raised when an operation requires an oracle but no API key is configured."""


class LexiconFormatError(VietListenerError, ValueError):
    """Raised when a lexicon file does not match the expected JSON shape."""


class FrequencyTableFormatError(VietListenerError, ValueError):
    """Raised when a frequency table file does not match the expected JSON shape."""
