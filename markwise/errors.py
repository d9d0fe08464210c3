"""
Error types for Markwise.

Routes map these onto HTTP responses: validation problems are 400,
everything else is 500 with the error message as the body.
"""
import openai


class MarkwiseError(Exception):
    """Base class for errors raised by Markwise services."""
    status_code = 500


class ConfigurationError(MarkwiseError):
    """Missing API credentials or other required settings."""


class ValidationError(MarkwiseError):
    """Missing or invalid request fields."""
    status_code = 400


class UpstreamError(MarkwiseError):
    """The model API or the database call failed."""


class ParseError(MarkwiseError):
    """Model output did not match the expected JSON contract."""


class NotFoundError(MarkwiseError):
    status_code = 404


RATE_LIMIT_MESSAGE = (
    "AI system busy (rate limit reached). Please wait about a minute before trying again."
)


def is_rate_limited(error):
    """True if an upstream error looks like HTTP 429 rate limiting."""
    if isinstance(error, openai.RateLimitError):
        return True
    cause = error.__cause__
    if cause is not None and isinstance(cause, openai.RateLimitError):
        return True
    message = str(error)
    return '429' in message or 'Too Many Requests' in message
