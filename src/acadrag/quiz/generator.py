"""Quiz generation from diversified course material."""

import json
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any

from json_repair import repair_json

from acadrag.config import QuizConfig
from acadrag.constants import QUESTION_TYPES
from acadrag.exceptions import (
    InvalidQueryError,
    NoSourceMaterialError,
    QuizBatchRejected,
    QuizGenerationError,
)
from acadrag.llm.base import GenerationOptions, LLMService
from acadrag.quiz.prompts import simplified_prompt, source_index_prompt
from acadrag.quiz.sampler import (
    batch_is_diverse,
    diversity_profiles,
    select_source_material,
    source_diversity_ratio,
)
from acadrag.retrieval.context import format_source_material
from acadrag.retrieval.pipeline import RetrievalPipeline
from acadrag.retry import retry_async
from acadrag.service.database.models import SearchFilters

logger = logging.getLogger(__name__)

JSON_BLOCK = re.compile(r"\{[\s\S]*\}")
ANSWER_SUFFIX = re.compile(r"\s*\((?:TRUE|FALSE)\)\s*$", re.IGNORECASE)
MIN_QUESTION_LENGTH = 10
DIFFICULTIES = ("easy", "medium", "hard")


@dataclass
class QuizRequest:
    """Parameters of a quiz to generate."""

    course_code: str
    course_title: str
    level: str
    num_questions: int
    question_type: str = "MCQ"
    topic: str | None = None
    difficulty: str = "medium"
    time_limit: int | None = None

    def __post_init__(self) -> None:
        if not self.course_code or not self.course_title or not self.level:
            raise InvalidQueryError("Missing required fields")
        if self.num_questions < 1:
            raise InvalidQueryError("num_questions must be a positive integer")
        if self.question_type not in QUESTION_TYPES:
            raise InvalidQueryError(f"Unsupported question type: {self.question_type}")
        if self.difficulty not in DIFFICULTIES:
            raise InvalidQueryError(f"Unsupported difficulty: {self.difficulty}")
        self.topic = self.topic.strip() if self.topic and self.topic.strip() else None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "QuizRequest":
        """Build a request from a JSON body with camelCase or snake_case keys."""
        data = data or {}

        def pick(*keys: str) -> Any:
            for key in keys:
                if data.get(key) not in (None, ""):
                    return data[key]
            return None

        num_questions = pick("numQuestions", "num_questions")
        time_limit = pick("timeLimit", "time_limit")
        if num_questions is None:
            raise InvalidQueryError("Missing required fields")
        try:
            return cls(
                course_code=pick("courseCode", "course_code") or "",
                course_title=pick("courseTitle", "course_title") or "",
                level=str(pick("level") or ""),
                num_questions=int(num_questions),
                question_type=pick("questionType", "question_type") or "MCQ",
                topic=pick("topic"),
                difficulty=pick("difficulty") or "medium",
                time_limit=int(time_limit) if time_limit is not None else None,
            )
        except InvalidQueryError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidQueryError(f"Invalid quiz request: {e}") from e

    @property
    def search_query(self) -> str:
        if self.topic:
            return f"{self.course_code} {self.course_title} {self.topic}"
        return f"{self.course_code} {self.course_title}"


@dataclass
class QuizResult:
    """Questions produced for a request, possibly fewer than asked for."""

    questions: list[dict[str, Any]]
    requested: int
    attempts: int
    sources_used: list[str] = field(default_factory=list)
    message: str | None = None

    @property
    def is_partial(self) -> bool:
        return len(self.questions) < self.requested

    def to_dict(self) -> dict[str, Any]:
        result = {
            "success": True,
            "questions": self.questions,
            "numQuestions": len(self.questions),
            "requested": self.requested,
            "attempts": self.attempts,
            "sourcesUsed": self.sources_used,
        }
        if self.message:
            result["message"] = self.message
        return result


def parse_questions(raw: str) -> list[dict[str, Any]]:
    """Extract the ``questions`` array from a model response.

    Malformed JSON (code fences, trailing commas, unquoted keys, truncated
    output) goes through json-repair. Returns an empty list when nothing
    usable can be recovered.
    """
    start = raw.find("{")
    if start == -1:
        return []

    match = JSON_BLOCK.search(raw)
    # Truncated output has no closing brace to match
    text = match.group(0) if match else raw[start:]
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = repair_json(text, return_objects=True)

    if not isinstance(parsed, dict):
        logger.warning("⚠️ Could not parse quiz questions from model response")
        return []
    questions = parsed.get("questions")
    if not isinstance(questions, list):
        return []
    return [question for question in questions if isinstance(question, dict)]


def _clean_answer(value: Any) -> str:
    return ANSWER_SUFFIX.sub("", str(value)).strip()


def validate_questions(questions: list[dict[str, Any]], question_type: str) -> list[dict[str, Any]]:
    """Keep questions that are usable for ``question_type``, normalizing them in place.

    Validation is lenient: MCQ needs 3+ options and at least one correct
    answer, OBJECTIVE needs 2+ options and a correct answer, TRUE_FALSE needs
    a true/false answer. ``(TRUE)``/``(FALSE)`` markers are stripped.
    """
    valid = []
    for question in questions:
        text = str(question.get("questionText") or "").strip()
        if len(text) < MIN_QUESTION_LENGTH:
            continue
        question["questionText"] = text
        options = question.get("options")

        if question_type == "MCQ":
            answers = question.get("correctAnswers")
            if not isinstance(options, list) or len(options) < 3:
                continue
            if not isinstance(answers, list) or len(answers) < 1:
                continue
            question["options"] = [_clean_answer(option) for option in options]
            question["correctAnswers"] = [_clean_answer(answer) for answer in answers]
        elif question_type == "OBJECTIVE":
            if not isinstance(options, list) or len(options) < 2:
                continue
            if not question.get("correctAnswer"):
                continue
            question["options"] = [_clean_answer(option) for option in options]
            question["correctAnswer"] = _clean_answer(question["correctAnswer"])
        elif question_type == "TRUE_FALSE":
            answer = str(question.get("correctAnswer", "")).strip().lower()
            if answer not in ("true", "false"):
                continue
            question["correctAnswer"] = answer

        question["questionType"] = question_type
        question.setdefault("points", 1)
        question.setdefault("explanation", "")
        valid.append(question)
    return valid


class QuizGenerator:
    """Generates source-diverse quizzes from retrieved course material."""

    def __init__(
        self,
        pipeline: RetrievalPipeline,
        llm: LLMService,
        config: QuizConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.llm = llm
        self.config = config or QuizConfig.from_env()
        self.rng = rng or random.Random()

    async def _source_material(self, request: QuizRequest) -> tuple[str, list[int]]:
        filters = SearchFilters(
            course_code=request.course_code,
            topic=request.topic,
            level=request.level,
            max_chunks=self.config.source_chunks,
            diversity_lambda=self.config.source_lambda,
        )
        response = await self.pipeline.search_for_quiz(request.search_query, filters)
        if not response.results:
            raise NoSourceMaterialError(
                "No relevant content found for this course/topic. "
                "Please ensure documents are uploaded for this course."
            )

        size = self.config.context_size_with_topic if request.topic else self.config.context_size
        chunks, indices = select_source_material(response.chunks, size, self.rng)
        logger.info(
            f"📚 Randomly selected {len(chunks)} of {len(response.chunks)} chunks "
            f"({response.search_type} search), indices {indices}"
        )
        context = "DIVERSE COURSE MATERIAL SOURCES:\n\n" + format_source_material(chunks)
        return context, indices

    def _options(self, attempt: int) -> GenerationOptions:
        return GenerationOptions(
            temperature=self.config.base_temperature + attempt * self.config.temperature_step,
            max_output_tokens=self.config.max_output_tokens,
            top_k=self.config.top_k,
            top_p=self.config.top_p,
        )

    async def generate(self, request: QuizRequest) -> QuizResult:
        """Generate up to ``request.num_questions`` questions.

        Batches whose questions lean on too few sources are discarded and
        regenerated, up to ``config.max_attempts`` batches in total.

        Raises:
            NoSourceMaterialError: When the search finds no course material
            QuizGenerationError: When no valid question survives any attempt
        """
        context, indices = await self._source_material(request)
        collected: list[dict[str, Any]] = []
        attempts_made = 0

        async def run_batch(attempt: int) -> None:
            nonlocal attempts_made
            attempts_made = attempt
            prompt = (
                source_index_prompt(request, context, indices)
                if attempt == 1
                else simplified_prompt(request, context)
            )
            messages = [
                {"role": "system", "content": prompt},
                {
                    "role": "user",
                    "content": (
                        f"Generate {request.num_questions} questions based on the material. "
                        f"Attempt {attempt}."
                    ),
                },
            ]
            raw = await self.llm.generate_response(messages, self._options(attempt))
            batch = validate_questions(parse_questions(raw), request.question_type)
            profiles = diversity_profiles(batch)
            logger.info(
                f"📝 Attempt {attempt}: {len(batch)} valid questions, "
                f"source diversity {source_diversity_ratio(profiles):.0%}"
            )

            if not batch:
                raise QuizBatchRejected("Batch contained no valid questions")
            if not batch_is_diverse(profiles, self.config.diversity_threshold):
                raise QuizBatchRejected("Batch rejected for low source diversity")

            known = {question["questionText"] for question in collected}
            for question in batch:
                if question["questionText"] not in known:
                    known.add(question["questionText"])
                    collected.append(question)

            if len(collected) < request.num_questions:
                raise QuizBatchRejected(
                    f"Only {len(collected)} of {request.num_questions} questions so far"
                )

        try:
            await retry_async(
                run_batch,
                max_attempts=self.config.max_attempts,
                base_delay=self.config.retry_base_delay,
                retry_on=(QuizBatchRejected,),
                label="quiz batch",
            )
        except QuizBatchRejected as e:
            logger.warning(f"⚠️ Quiz attempts exhausted: {e}")

        questions = collected[: request.num_questions]
        if len(questions) < self.config.min_questions:
            raise QuizGenerationError(
                "Could not generate any valid questions. Please try with a different topic or course."
            )

        sources_used = []
        for profile in diversity_profiles(questions):
            if profile.source and profile.source not in sources_used:
                sources_used.append(profile.source)

        message = None
        if len(questions) < request.num_questions:
            message = (
                f"Generated {len(questions)} out of {request.num_questions} requested questions. "
                "The system prioritized quality over quantity."
            )
        logger.info(
            f"✅ Quiz generated: {len(questions)}/{request.num_questions} questions "
            f"from {len(sources_used)} sources in {attempts_made} attempts"
        )
        return QuizResult(
            questions=questions,
            requested=request.num_questions,
            attempts=attempts_made,
            sources_used=sources_used,
            message=message,
        )
