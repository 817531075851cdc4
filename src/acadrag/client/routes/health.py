"""Health check API route."""

import logging

from flask import Blueprint, jsonify

from acadrag.client.routes.config import get_config

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint.

    The embedding probe result is cached by the embedding client, so this
    endpoint can be polled without hitting the provider on every call.

    Returns:
        JSON with service status
    """
    config = get_config()
    embedder = config.embedder
    embedding_status = "not configured"
    if embedder is not None:
        embedding_status = "healthy" if embedder.is_healthy() else "unavailable"

    return jsonify(
        {
            "status": "healthy",
            "llm_service": "initialized" if config.llm_service else "not initialized",
            "retrieval": "initialized" if config.pipeline else "not initialized",
            "embedding_service": embedding_status,
            "search_mode": "vector" if embedding_status == "healthy" else "fallback_text",
        }
    )
