"""Chat API route answering questions from course material."""

import logging

from flask import Blueprint, jsonify, request

from acadrag.client.routes.config import get_config
from acadrag.client.routes.errors import error_response
from acadrag.exceptions import InvalidQueryError
from acadrag.retrieval.context import AssembledContext, assemble_context
from acadrag.service.components import run_async
from acadrag.service.database.models import SearchFilters

logger = logging.getLogger(__name__)

chat_bp = Blueprint("chat", __name__)

HISTORY_LIMIT = 6

RESPONSE_STYLE = (
    "RESPONSE STYLE: Be direct, concise, and to-the-point. Give clear, simple answers "
    "unless the user specifically asks for detailed explanations.\n"
    "Wrap every formula, equation and symbol in LaTeX math delimiters: $...$ inline "
    "and $$...$$ for display."
)


def build_system_prompt(context: AssembledContext, level: str | None) -> str:
    """Build the system prompt, embedding the course-material context when there is any.

    Args:
        context: Assembled context for the question
        level: The student's academic level, if known

    Returns:
        The system prompt text
    """
    audience = (
        f"The user is at the {level or 'unspecified'} academic level. Tailor your "
        "explanations, examples, and language to be appropriate for this level."
    )
    if not context.has_content:
        return (
            "You are an advanced academic assistant. Reply neutrally and conversationally "
            "to greetings, general, or non-document questions.\n"
            f"{audience}\n\n{RESPONSE_STYLE}"
        )

    topics = ", ".join(context.topic_areas) or "various"
    types = ", ".join(context.document_types) or "various"
    return (
        "You are an advanced academic assistant with access to a curated database of "
        "course materials.\n"
        f"{audience}\n\n{RESPONSE_STYLE}\n\n"
        f"Relevant material was found across {len(context.sources)} sources, covering "
        f"{topics} topics from {types} document types.\n\n"
        f"CONTEXT FROM DOCUMENTS:\n{context.text}\n\n"
        'Use the context to answer. Cite sources as "According to [Source]..." when relevant.'
    )


@chat_bp.route("/api/chat", methods=["POST"])
def chat():
    """Answer a chat message grounded in retrieved course material.

    Request:
        {
            "message": "Explain buffer solutions",
            "filters": {"courseCode": "CHEM101"},   # Optional
            "level": "200",                         # Optional
            "messages": [                           # Optional conversation history
                {"role": "user", "content": "Previous question"},
                {"role": "assistant", "content": "Previous answer"}
            ]
        }

    Response:
        {
            "response": "...",
            "sources": ["CHEM101 - Dr. Ada"],
            "topicAreas": ["Buffers"],
            "documentTypes": ["notes"],
            "searchType": "vector"
        }
    """
    config = get_config()
    logger.info("📨 Received chat request")
    try:
        data = request.get_json(silent=True) or {}
        message = data.get("message") or data.get("query")
        if not isinstance(message, str) or not message.strip():
            raise InvalidQueryError("Missing 'message' field in request")

        filters = SearchFilters.from_dict(data.get("filters"))
        history = data.get("messages") or []
        logger.info(f"🔍 Message: '{message[:100]}', history: {len(history)} messages")

        search_response = run_async(config.pipeline.search_for_chat(message, filters))
        context = assemble_context(search_response.results, config.context_max_chars)
        logger.info(
            f"✅ Context: {len(context.text)} chars from {len(context.sources)} sources "
            f"({search_response.search_type})"
        )

        messages = [{"role": "system", "content": build_system_prompt(context, data.get("level"))}]
        for msg in history[-HISTORY_LIMIT:]:
            if msg.get("role") in ("user", "assistant") and msg.get("content"):
                messages.append({"role": msg["role"], "content": msg["content"]})
        messages.append({"role": "user", "content": message})

        logger.info(f"🤖 Generating response from LLM with {len(messages)} messages...")
        llm_response = run_async(config.llm_service.generate_response(messages))

        logger.info("✅ Chat request completed successfully")
        return jsonify(
            {
                "response": llm_response,
                "sources": context.sources,
                "topicAreas": context.topic_areas,
                "documentTypes": context.document_types,
                "searchType": search_response.search_type,
            }
        )
    except Exception as e:
        return error_response(e, "chat request")
