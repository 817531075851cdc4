"""Tests for the Flask application module."""

import json
import random
from unittest.mock import MagicMock, patch

import pytest

from acadrag.client.app import app
from acadrag.client.routes.chat import build_system_prompt
from acadrag.client.routes.config import RouteConfig
from acadrag.exceptions import SearchTimeoutError
from acadrag.quiz.generator import QuizGenerator
from acadrag.retrieval.context import AssembledContext
from acadrag.retrieval.embedding import EmbeddingClient, TTLCache

ROUTE_MODULES = ("search", "chat", "quiz", "health")


@pytest.fixture
def corpus(create_test_chunk):
    return [
        create_test_chunk("titration_chunk_0", "Titration finds an unknown concentration",
                          [1, 1, 0, 0]),
        create_test_chunk("titration_chunk_1", "Indicators change colour at the endpoint",
                          [1, 0.5, 0.2, 0], professor="Dr. Babbage"),
        create_test_chunk("gases_chunk_0", "Ideal gas law relates pressure and volume",
                          [0, 0, 1, 0], topic="Gases"),
    ]


@pytest.fixture
def mock_config(make_pipeline, corpus, provider_factory, quiz_config):
    """RouteConfig wired to an in-memory pipeline and a scripted provider."""
    provider = provider_factory(responses=["A titration measures concentration."])
    pipeline = make_pipeline(corpus, provider)
    return RouteConfig(
        pipeline=pipeline,
        llm_service=provider,
        quiz_generator=QuizGenerator(pipeline, provider, quiz_config, rng=random.Random(0)),
        embedder=EmbeddingClient(provider, dimensions=4, health_cache=TTLCache()),
        context_max_chars=2000,
    )


@pytest.fixture
def client(mock_config):
    """Flask test client with every route reading mock_config."""
    patches = [
        patch(f"acadrag.client.routes.{module}.get_config", return_value=mock_config)
        for module in ROUTE_MODULES
    ]
    for p in patches:
        p.start()
    with app.test_client() as test_client:
        yield test_client
    for p in patches:
        p.stop()


def _post(client, url, body):
    return client.post(url, data=json.dumps(body), content_type="application/json")


class TestSystemPrompt:
    """Tests for build_system_prompt."""

    def test_prompt_with_context(self):
        """Test that context, sources and level are embedded in the prompt."""
        context = AssembledContext(
            text="Source: CHEM101 - Dr. Ada\nBuffers resist pH change.",
            sources=["CHEM101 - Dr. Ada"],
            topic_areas=["Buffers"],
            document_types=["notes"],
        )

        prompt = build_system_prompt(context, "200")

        assert "CONTEXT FROM DOCUMENTS:" in prompt
        assert "Buffers resist pH change." in prompt
        assert "1 sources" in prompt
        assert "200 academic level" in prompt

    def test_prompt_without_context(self):
        """Test the conversational prompt used when nothing was retrieved."""
        prompt = build_system_prompt(AssembledContext(), None)
        assert "CONTEXT FROM DOCUMENTS" not in prompt
        assert "unspecified academic level" in prompt


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_check_returns_status(self, client):
        """Test health endpoint returns service status."""
        response = client.get("/health")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["status"] == "healthy"
        assert data["embedding_service"] == "healthy"
        assert data["search_mode"] == "vector"

    def test_health_without_embedder(self, client, mock_config):
        """Test health reports text search when no embedder is configured."""
        mock_config.embedder = None

        data = json.loads(client.get("/health").data)

        assert data["embedding_service"] == "not configured"
        assert data["search_mode"] == "fallback_text"


class TestSearchEndpoints:
    """Tests for /api/search, /api/chat-search and /api/quiz-search."""

    def test_search_returns_chunks(self, client):
        """Test a successful general search."""
        response = _post(client, "/api/search", {"query": "titration", "filters": {"max_chunks": 2}})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["searchType"] == "vector"
        assert 0 < data["totalResults"] <= 2
        assert data["expandedQueries"][0] == "titration"

    @pytest.mark.parametrize("url", ["/api/search", "/api/chat-search", "/api/quiz-search"])
    def test_missing_query_returns_400(self, client, url):
        """Test that a blank query is rejected."""
        response = _post(client, url, {"query": "  "})

        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "Query is required"

    def test_invalid_filter_returns_400(self, client):
        """Test that an out-of-range diversity weight is rejected."""
        response = _post(client, "/api/search", {"query": "x", "filters": {"diversity_lambda": 3}})
        assert response.status_code == 400

    def test_quiz_search(self, client):
        """Test the quiz-search endpoint."""
        response = _post(client, "/api/quiz-search", {"query": "titration"})

        assert response.status_code == 200
        assert json.loads(response.data)["totalResults"] == 3

    def test_timeout_returns_504(self, client, mock_config):
        """Test that a search timeout maps to 504."""
        mock_config.pipeline = MagicMock()
        mock_config.pipeline.search_for_chat.side_effect = SearchTimeoutError("too slow")

        response = _post(client, "/api/chat-search", {"query": "titration"})

        assert response.status_code == 504

    def test_unexpected_error_returns_500(self, client, mock_config):
        """Test that unexpected failures map to 500."""
        mock_config.pipeline = MagicMock()
        mock_config.pipeline.search.side_effect = RuntimeError("boom")

        response = _post(client, "/api/search", {"query": "titration"})

        assert response.status_code == 500
        assert "Internal server error" in json.loads(response.data)["error"]


class TestChatEndpoint:
    """Tests for the /api/chat endpoint."""

    def test_chat_missing_message(self, client):
        """Test chat endpoint with missing message returns 400."""
        response = _post(client, "/api/chat", {})

        assert response.status_code == 400
        assert "message" in json.loads(response.data)["error"]

    def test_chat_answers_with_sources(self, client, mock_config):
        """Test that chat answers carry source summaries and send context to the model."""
        history = [{"role": "user", "content": f"q{i}"} for i in range(10)]

        response = _post(
            client, "/api/chat", {"message": "What is titration?", "level": "100", "messages": history}
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["response"] == "A titration measures concentration."
        assert data["searchType"] == "vector"
        assert "CHEM101 - Dr. Ada Lovelace" in data["sources"]

        messages, _ = mock_config.llm_service.prompts[0]
        assert messages[0]["role"] == "system"
        assert "CONTEXT FROM DOCUMENTS" in messages[0]["content"]
        # system prompt + last 6 history messages + the new message
        assert len(messages) == 8
        assert messages[-1] == {"role": "user", "content": "What is titration?"}

    def test_chat_llm_error_handling(self, client, mock_config):
        """Test error handling when the LLM call fails."""
        mock_config.llm_service = MagicMock()
        mock_config.llm_service.generate_response.side_effect = Exception("LLM generation failed")

        response = _post(client, "/api/chat", {"message": "titration"})

        assert response.status_code == 500


class TestQuizEndpoint:
    """Tests for the /api/quiz/generate endpoint."""

    def test_generate_quiz(self, client, mock_config):
        """Test a successful quiz with ordered questions."""
        mock_config.llm_service.responses = [
            json.dumps(
                {
                    "questions": [
                        {"questionText": "Statement one is true?", "correctAnswer": "True",
                         "sourceUsed": "SOURCE 1"},
                        {"questionText": "Statement two is false?", "correctAnswer": "false",
                         "sourceUsed": "SOURCE 2"},
                    ]
                }
            )
        ]

        response = _post(
            client,
            "/api/quiz/generate",
            {"courseCode": "CHEM101", "courseTitle": "General Chemistry", "level": "100",
             "numQuestions": 2, "questionType": "TRUE_FALSE"},
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["quiz"]["title"] == "CHEM101 - General Quiz"
        assert [q["order"] for q in data["quiz"]["questions"]] == [1, 2]
        assert data["quiz"]["questions"][0]["correctAnswer"] == "true"
        assert "message" not in data

    def test_missing_fields_returns_400(self, client):
        """Test that an incomplete quiz request is rejected."""
        response = _post(client, "/api/quiz/generate", {"courseCode": "CHEM101"})

        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "Missing required fields"

    def test_no_material_returns_404(self, client, mock_config, make_pipeline, quiz_config):
        """Test that a course without material maps to 404."""
        provider = mock_config.llm_service
        mock_config.quiz_generator = QuizGenerator(make_pipeline([], provider), provider, quiz_config)

        response = _post(
            client,
            "/api/quiz/generate",
            {"courseCode": "NONE999", "courseTitle": "Nothing", "level": "100", "numQuestions": 2},
        )

        assert response.status_code == 404


class TestMain:
    """Tests for the main entry point."""

    @patch("acadrag.client.app.app.run")
    @patch("acadrag.client.app.initialize_services")
    def test_main_starts_flask_app(self, mock_initialize, mock_run):
        """Test that main() initializes services and starts Flask app."""
        from acadrag.client.app import main

        main()

        mock_initialize.assert_called_once()
        call_kwargs = mock_run.call_args[1]
        assert "host" in call_kwargs
        assert "port" in call_kwargs
        assert "debug" in call_kwargs
