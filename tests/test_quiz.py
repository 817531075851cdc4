"""Tests for quiz source sampling, response parsing and generation."""

import json
import random

import pytest

from acadrag.config import QuizConfig
from acadrag.exceptions import (
    InvalidQueryError,
    NoSourceMaterialError,
    QuizGenerationError,
)
from acadrag.quiz.generator import (
    QuizGenerator,
    QuizRequest,
    parse_questions,
    validate_questions,
)
from acadrag.quiz.sampler import (
    DiversityProfile,
    batch_is_diverse,
    diversity_profiles,
    select_source_material,
    shuffled_indices,
    source_diversity_ratio,
)


def _mcq(i, source):
    return {
        "questionText": f"Question number {i} about acids?",
        "options": ["A", "B", "C", "D"],
        "correctAnswers": ["A"],
        "sourceUsed": source,
    }


def _response(questions):
    return json.dumps({"questions": questions})


@pytest.fixture
def quiz_request():
    return QuizRequest(
        course_code="CHEM101",
        course_title="General Chemistry",
        level="100",
        num_questions=3,
    )


@pytest.fixture
def quiz_chunks(create_test_chunk):
    return [
        create_test_chunk(f"d{i}_chunk_0", f"Course passage {i}", [1, i / 10, 0, 0])
        for i in range(12)
    ]


class TestSampler:
    """Tests for random source selection and diversity checks."""

    @pytest.mark.parametrize("seed", range(10))
    @pytest.mark.parametrize("pool_size,count", [(10, 4), (40, 30), (5, 10), (0, 3)])
    def test_indices_unique_and_in_range(self, seed, pool_size, count):
        """Test that sampled indices are unique, in range and bounded by count."""
        indices = shuffled_indices(pool_size, count, random.Random(seed))

        assert len(indices) == min(pool_size, count)
        assert len(set(indices)) == len(indices)
        assert all(0 <= index < pool_size for index in indices)

    def test_deterministic_with_seeded_rng(self):
        """Test that the same seed yields the same selection."""
        assert shuffled_indices(20, 5, random.Random(42)) == shuffled_indices(
            20, 5, random.Random(42)
        )

    def test_negative_sizes_rejected(self):
        """Test that negative sizes raise ValueError."""
        with pytest.raises(ValueError):
            shuffled_indices(-1, 2, random.Random(0))

    def test_select_source_material_returns_positions(self):
        """Test that selected items correspond to the returned indices."""
        items = [f"chunk{i}" for i in range(8)]

        selected, indices = select_source_material(items, 3, random.Random(1))

        assert selected == [items[i] for i in indices]

    def test_diversity_profiles_read_source_used(self):
        """Test that profiles capture each question's attributed source."""
        profiles = diversity_profiles(
            [{"questionText": "Q1", "sourceUsed": " SOURCE 2 "}, {"questionText": "Q2"}]
        )
        assert profiles == [
            DiversityProfile(question_text="Q1", source="SOURCE 2"),
            DiversityProfile(question_text="Q2", source=None),
        ]

    def test_ratio(self):
        """Test the distinct-source ratio."""
        profiles = [
            DiversityProfile("a", "SOURCE 1"),
            DiversityProfile("b", "SOURCE 1"),
            DiversityProfile("c", "SOURCE 2"),
            DiversityProfile("d", None),
        ]
        assert source_diversity_ratio(profiles) == pytest.approx(0.5)
        assert source_diversity_ratio([]) == 0.0

    def test_single_question_always_diverse(self):
        """Test that a one-question batch passes."""
        assert batch_is_diverse([DiversityProfile("a", None)], 0.9)

    def test_single_source_batch_rejected(self):
        """Test that several questions on one source fail."""
        profiles = [DiversityProfile(str(i), "SOURCE 1") for i in range(3)]
        assert not batch_is_diverse(profiles, 0.0)

    def test_threshold_applied(self):
        """Test that the ratio must reach the threshold."""
        profiles = [
            DiversityProfile("a", "SOURCE 1"),
            DiversityProfile("b", "SOURCE 2"),
            DiversityProfile("c", "SOURCE 2"),
        ]
        assert batch_is_diverse(profiles, 0.6)
        assert not batch_is_diverse(profiles, 0.9)


class TestParsing:
    """Tests for parse_questions and validate_questions."""

    def test_parse_plain_json(self):
        """Test parsing a clean response."""
        assert parse_questions(_response([_mcq(1, "SOURCE 1")]))[0]["sourceUsed"] == "SOURCE 1"

    def test_parse_fenced_json_with_prose(self):
        """Test that code fences and surrounding prose are ignored."""
        raw = "Here is your quiz:\n```json\n" + _response([_mcq(1, "SOURCE 1")]) + "\n```\nEnjoy!"
        assert len(parse_questions(raw)) == 1

    def test_parse_trailing_commas(self):
        """Test that trailing commas are repaired."""
        raw = '{"questions": [{"questionText": "What is a buffer solution?", "options": ["a", "b", "c",],},]}'
        questions = parse_questions(raw)
        assert questions[0]["options"] == ["a", "b", "c"]

    def test_parse_truncated_output(self):
        """Test that a response cut off mid-string is closed and parsed."""
        raw = '{"questions": [{"questionText": "What is titration?", "explanation": "It meas'
        questions = parse_questions(raw)
        assert questions[0]["questionText"] == "What is titration?"

    def test_parse_unusable_response(self):
        """Test that a response without JSON yields no questions."""
        assert parse_questions("I cannot help with that.") == []

    def test_parse_unquoted_keys_and_single_quotes(self):
        """Test that loosely quoted JSON from the model is recovered."""
        raw = "{questions: [{'questionText': 'What is a buffer solution?', 'sourceUsed': 'S1'}]}"
        questions = parse_questions(raw)
        assert questions == [{"questionText": "What is a buffer solution?", "sourceUsed": "S1"}]

    def test_parse_non_list_questions(self):
        """Test that a questions value that is not a list yields nothing."""
        assert parse_questions('{"questions": "none yet"}') == []

    def test_validate_mcq(self):
        """Test MCQ validation rules and answer normalization."""
        questions = [
            {"questionText": "Which are acids (pick all)?", "options": ["HCl (TRUE)", "NaOH", "HNO3"],
             "correctAnswers": ["HCl (TRUE)", "HNO3"]},
            {"questionText": "Too few options here?", "options": ["A", "B"], "correctAnswers": ["A"]},
            {"questionText": "short", "options": ["A", "B", "C"], "correctAnswers": ["A"]},
        ]

        valid = validate_questions(questions, "MCQ")

        assert len(valid) == 1
        assert valid[0]["options"][0] == "HCl"
        assert valid[0]["correctAnswers"] == ["HCl", "HNO3"]
        assert valid[0]["questionType"] == "MCQ"
        assert valid[0]["points"] == 1

    def test_validate_true_false(self):
        """Test that TRUE_FALSE answers are normalized to lowercase."""
        questions = [
            {"questionText": "Water boils at 100 C at sea level.", "correctAnswer": "TRUE"},
            {"questionText": "This answer is not a boolean.", "correctAnswer": "maybe"},
        ]

        valid = validate_questions(questions, "TRUE_FALSE")

        assert [q["correctAnswer"] for q in valid] == ["true"]

    def test_validate_objective(self):
        """Test OBJECTIVE questions need options and a correct answer."""
        questions = [
            {"questionText": "Which gas is inert here?", "options": ["He", "O2"], "correctAnswer": "He"},
            {"questionText": "Which gas is missing an answer?", "options": ["He", "O2"]},
        ]
        assert len(validate_questions(questions, "OBJECTIVE")) == 1


class TestQuizRequest:
    """Tests for QuizRequest validation."""

    def test_from_dict_camel_case(self):
        """Test building a request from a camelCase body."""
        request = QuizRequest.from_dict(
            {"courseCode": "CHEM101", "courseTitle": "Chemistry", "level": 100,
             "numQuestions": "5", "questionType": "TRUE_FALSE", "topic": " Gases "}
        )
        assert request.num_questions == 5
        assert request.level == "100"
        assert request.topic == "Gases"
        assert request.search_query == "CHEM101 Chemistry Gases"

    @pytest.mark.parametrize(
        "body",
        [
            {"courseTitle": "Chemistry", "level": "100", "numQuestions": 5},
            {"courseCode": "CHEM101", "courseTitle": "Chemistry", "level": "100"},
            {"courseCode": "CHEM101", "courseTitle": "Chemistry", "level": "100",
             "numQuestions": 5, "questionType": "ESSAY"},
            {"courseCode": "CHEM101", "courseTitle": "Chemistry", "level": "100",
             "numQuestions": "many"},
        ],
    )
    def test_invalid_requests(self, body):
        """Test that incomplete or invalid bodies are rejected."""
        with pytest.raises(InvalidQueryError):
            QuizRequest.from_dict(body)


class TestQuizGenerator:
    """Tests for QuizGenerator.generate."""

    @pytest.mark.asyncio
    async def test_diverse_batch_accepted(self, make_pipeline, quiz_chunks, provider_factory,
                                          quiz_config, quiz_request):
        """Test that a diverse first batch is returned as-is."""
        provider = provider_factory(
            responses=[_response([_mcq(i, f"SOURCE {i}") for i in range(1, 4)])]
        )
        generator = QuizGenerator(
            make_pipeline(quiz_chunks, provider), provider, quiz_config, rng=random.Random(0)
        )

        result = await generator.generate(quiz_request)

        assert len(result.questions) == 3
        assert result.attempts == 1
        assert result.message is None
        assert not result.is_partial
        options = provider.prompts[0][1]
        assert options.temperature == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_low_diversity_batch_regenerated(self, make_pipeline, quiz_chunks,
                                                   provider_factory, quiz_config, quiz_request):
        """Test that a single-source batch is discarded and regenerated."""
        provider = provider_factory(
            responses=[
                _response([_mcq(i, "SOURCE 1") for i in range(1, 4)]),
                _response([_mcq(i, f"SOURCE {i}") for i in range(4, 7)]),
            ]
        )
        generator = QuizGenerator(
            make_pipeline(quiz_chunks, provider), provider, quiz_config, rng=random.Random(0)
        )

        result = await generator.generate(quiz_request)

        assert result.attempts == 2
        assert [q["questionText"] for q in result.questions] == [
            _mcq(i, "")["questionText"] for i in range(4, 7)
        ]
        # The retry uses the shorter prompt and a higher temperature
        second_prompt, second_options = provider.prompts[1]
        assert "SOURCE USAGE RULES" not in second_prompt[0]["content"]
        assert second_options.temperature == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_partial_result_after_attempts_exhausted(self, make_pipeline, quiz_chunks,
                                                          provider_factory, quiz_config):
        """Test that fewer questions than requested come back with a message."""
        provider = provider_factory(
            responses=[
                _response([_mcq(1, "SOURCE 1"), _mcq(2, "SOURCE 2")]),
                _response([_mcq(2, "SOURCE 2")]),
                "not json at all",
            ]
        )
        generator = QuizGenerator(
            make_pipeline(quiz_chunks, provider), provider, quiz_config, rng=random.Random(0)
        )
        request = QuizRequest(
            course_code="CHEM101", course_title="General Chemistry", level="100", num_questions=5
        )

        result = await generator.generate(request)

        assert len(result.questions) == 2
        assert result.attempts == 3
        assert result.is_partial
        assert result.message == (
            "Generated 2 out of 5 requested questions. "
            "The system prioritized quality over quantity."
        )

    @pytest.mark.asyncio
    async def test_no_valid_questions_raises(self, make_pipeline, quiz_chunks, provider_factory,
                                             quiz_config, quiz_request):
        """Test that a quiz with zero usable questions fails."""
        provider = provider_factory(responses=["{}", "{}", "{}"])
        generator = QuizGenerator(make_pipeline(quiz_chunks, provider), provider, quiz_config)

        with pytest.raises(QuizGenerationError):
            await generator.generate(quiz_request)

    @pytest.mark.asyncio
    async def test_no_source_material_raises(self, make_pipeline, provider_factory, quiz_config,
                                             quiz_request):
        """Test that an empty corpus raises NoSourceMaterialError."""
        provider = provider_factory()
        generator = QuizGenerator(make_pipeline([], provider), provider, quiz_config)

        with pytest.raises(NoSourceMaterialError):
            await generator.generate(quiz_request)
