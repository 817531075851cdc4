"""Search API routes over indexed course material."""

import logging

from flask import Blueprint, jsonify, request

from acadrag.client.routes.config import get_config
from acadrag.client.routes.errors import error_response
from acadrag.exceptions import InvalidQueryError
from acadrag.service.components import run_async
from acadrag.service.database.models import SearchFilters

logger = logging.getLogger(__name__)

search_bp = Blueprint("search", __name__)


def _parse_request() -> tuple[str, SearchFilters]:
    """Read ``{query, filters}`` from the JSON body.

    Raises:
        InvalidQueryError: If the query is missing or blank, or a filter is invalid
    """
    data = request.get_json(silent=True) or {}
    query = data.get("query")
    if not isinstance(query, str) or not query.strip():
        raise InvalidQueryError("Query is required")
    return query, SearchFilters.from_dict(data.get("filters"))


@search_bp.route("/api/search", methods=["POST"])
def search():
    """General search with query expansion and diversified results.

    Request:
        {
            "query": "acid base titration",
            "filters": {"courseCode": "CHEM101", "max_chunks": 10, "diversity_lambda": 0.3}
        }

    Response:
        {"chunks": [...], "totalResults": 10, "searchType": "vector", "sources": [...], ...}
    """
    logger.info("📨 Received search request")
    try:
        query, filters = _parse_request()
        response = run_async(get_config().pipeline.search(query, filters))
        return jsonify(response.to_dict())
    except Exception as e:
        return error_response(e, "search request")


@search_bp.route("/api/chat-search", methods=["POST"])
def chat_search():
    """Single-query search used to ground chat answers."""
    logger.info("📨 Received chat-search request")
    try:
        query, filters = _parse_request()
        response = run_async(get_config().pipeline.search_for_chat(query, filters))
        return jsonify(response.to_dict())
    except Exception as e:
        return error_response(e, "chat-search request")


@search_bp.route("/api/quiz-search", methods=["POST"])
def quiz_search():
    """Broad, diversity-weighted search for quiz source material."""
    logger.info("📨 Received quiz-search request")
    try:
        query, filters = _parse_request()
        response = run_async(get_config().pipeline.search_for_quiz(query, filters))
        return jsonify(response.to_dict())
    except Exception as e:
        return error_response(e, "quiz-search request")
