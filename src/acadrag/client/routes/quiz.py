"""Quiz generation API route."""

import logging

from flask import Blueprint, jsonify, request

from acadrag.client.routes.config import get_config
from acadrag.client.routes.errors import error_response
from acadrag.quiz.generator import QuizRequest
from acadrag.service.components import run_async

logger = logging.getLogger(__name__)

quiz_bp = Blueprint("quiz", __name__)


@quiz_bp.route("/api/quiz/generate", methods=["POST"])
def generate_quiz():
    """Generate a source-diverse quiz for a course.

    Request:
        {
            "courseCode": "CHEM101",
            "courseTitle": "General Chemistry",
            "level": "100",
            "numQuestions": 5,
            "questionType": "MCQ",      # MCQ, OBJECTIVE, TRUE_FALSE, SHORT_ANSWER
            "topic": "Titration",       # Optional
            "difficulty": "medium"      # Optional
        }

    Response:
        {
            "success": true,
            "quiz": {"title": "CHEM101 - Titration Quiz", ..., "questions": [...]},
            "message": "Generated 4 out of 5 requested questions. ..."   # When short
        }
    """
    logger.info("📨 Received quiz generation request")
    try:
        quiz_request = QuizRequest.from_dict(request.get_json(silent=True))
        result = run_async(get_config().quiz_generator.generate(quiz_request))
    except Exception as e:
        return error_response(e, "quiz generation")

    response = {
        "success": True,
        "quiz": {
            "title": f"{quiz_request.course_code} - {quiz_request.topic or 'General'} Quiz",
            "courseCode": quiz_request.course_code,
            "courseTitle": quiz_request.course_title,
            "topic": quiz_request.topic,
            "level": quiz_request.level,
            "difficulty": quiz_request.difficulty,
            "timeLimit": quiz_request.time_limit,
            "numQuestions": len(result.questions),
            "questions": [
                dict(question, order=order) for order, question in enumerate(result.questions, 1)
            ],
        },
        "sourcesUsed": result.sources_used,
        "attempts": result.attempts,
    }
    if result.message:
        response["message"] = result.message
    return jsonify(response)
