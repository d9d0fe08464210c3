"""
JSON error responses shared by the route blueprints.
"""
import logging

from flask import jsonify

from markwise.errors import MarkwiseError, RATE_LIMIT_MESSAGE, is_rate_limited

logger = logging.getLogger(__name__)


def error_response(error, context=''):
    """Map an exception to ({"error": message}, status)."""
    if isinstance(error, MarkwiseError):
        status = error.status_code
    else:
        status = 500
    if status >= 500:
        logger.error("%s error: %s", context or 'request', error)
    return jsonify({"error": str(error)}), status


def rate_limit_aware_response(error, context=''):
    """Like error_response, but upstream rate limiting becomes an actionable 429."""
    if is_rate_limited(error):
        logger.warning("%s rate limited upstream: %s", context or 'request', error)
        return jsonify({"error": RATE_LIMIT_MESSAGE, "retry_after": 60}), 429
    return error_response(error, context)
