# =============================================================================
# core/errors.py  -  Error Taxonomy
# =============================================================================
#
# Every failure the pipeline can produce is one of these.  At the tool-call
# boundary (tools/mcp_server.py) they collapse into a single "internal error"
# carrying the message, except InvalidQueryError which is a caller mistake.
#
#   BuschGPTError
#     ├── ConfigurationError   missing/invalid settings (fatal at startup)
#     ├── AuthError            token issuer exchange failed
#     ├── QueryError           chat call failed, or wraps an AuthError
#     └── InvalidQueryError    empty / non-string query (also a ValueError)
#
# None of these are retried automatically.  A caller that wants a retry calls
# again.
# =============================================================================

from typing import Optional

from core.models import DownstreamFailure


class BuschGPTError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(BuschGPTError):
    """Required configuration is missing or malformed."""


class AuthError(BuschGPTError):
    """The client-credentials exchange did not produce a usable token."""

    def __init__(self, message: str, failure: Optional[DownstreamFailure] = None):
        super().__init__(message)
        self.failure = failure


class QueryError(BuschGPTError):
    """The chat endpoint did not produce an answer."""

    def __init__(self, message: str, failure: Optional[DownstreamFailure] = None):
        super().__init__(message)
        self.failure = failure


class InvalidQueryError(BuschGPTError, ValueError):
    """The query was missing, empty, or not a string."""
