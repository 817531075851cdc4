"""Mapping of application exceptions onto JSON error responses."""

import logging

from flask import jsonify

from acadrag.exceptions import (
    InvalidQueryError,
    NoSourceMaterialError,
    SearchTimeoutError,
    UpstreamServiceError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = (
    (InvalidQueryError, 400),
    (NoSourceMaterialError, 404),
    (SearchTimeoutError, 504),
    (UpstreamServiceError, 502),
)


def error_response(error: Exception, action: str):
    """Build the ``(json, status)`` response for an exception raised while handling ``action``."""
    for error_type, status in STATUS_CODES:
        if isinstance(error, error_type):
            logger.warning(f"❌ {action} failed ({status}): {error}")
            return jsonify({"error": str(error)}), status

    logger.error(f"❌ Error processing {action}: {error}", exc_info=True)
    return jsonify({"error": f"Internal server error: {error}"}), 500
