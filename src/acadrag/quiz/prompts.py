"""Prompt templates for quiz generation."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acadrag.quiz.generator import QuizRequest

QUESTION_TYPE_INSTRUCTIONS = {
    "MCQ": """MULTIPLE CHOICE QUESTIONS (MCQ):
- Generate exactly 5 options per question
- 3 options must be TRUE (correct answers)
- 2 options must be FALSE but plausible
- TRUE options: Use EXACT phrases from the material (6 words or less)
- Vary the position of correct answers across questions""",
    "OBJECTIVE": """OBJECTIVE QUESTIONS:
- Generate exactly 4 options per question
- 1 correct answer, 3 plausible distractors
- Use clear, concise language
- Vary the position of correct answers""",
    "TRUE_FALSE": """TRUE/FALSE QUESTIONS:
- Provide clear, unambiguous statements
- Make statements specific and testable
- correctAnswer must be "true" or "false"
- Balance true and false statements across the set""",
    "SHORT_ANSWER": """SHORT ANSWER QUESTIONS:
- Ask for specific, concise responses
- Provide clear answer expectations in correctAnswer
- Test understanding, not just memorization""",
}


def _response_format(question_type: str) -> str:
    return f"""RESPONSE FORMAT (JSON):
{{
  "questions": [
    {{
      "questionText": "...",
      "questionType": "{question_type}",
      "options": ["...", ...],
      "correctAnswer": "...",
      "correctAnswers": ["...", ...],
      "explanation": "...",
      "points": 1,
      "sourceUsed": "SOURCE X"
    }}
  ]
}}"""


def source_index_prompt(request: "QuizRequest", context: str, selected_indices: list[int]) -> str:
    """First-attempt prompt assigning each question to a different numbered source."""
    topic_context = f" focusing specifically on {request.topic}" if request.topic else ""
    source_count = len(selected_indices)
    return f"""You are an expert exam setter for {request.course_code} - {request.course_title} at {request.level} level.

Using the following course material{topic_context}, generate exactly {request.num_questions} {request.difficulty} questions of type {request.question_type}.

The material below was drawn at random from {source_count} different passages of the course database. Each passage is labelled "--- SOURCE n: ... ---".

COURSE MATERIAL:
{context}

SOURCE USAGE RULES:
- Each question MUST be based on a DIFFERENT source
- Spread questions across the whole range SOURCE 1 to SOURCE {source_count}
- Only cycle back to a used source when there are more questions than sources
- Every question must name its source in the "sourceUsed" field

{QUESTION_TYPE_INSTRUCTIONS.get(request.question_type, "")}

{_response_format(request.question_type)}

Return ONLY valid JSON, no extra text, no comments, and no trailing commas."""


def simplified_prompt(request: "QuizRequest", context: str) -> str:
    """Shorter prompt used on retries."""
    return f"""You are an expert exam setter for {request.course_code} - {request.course_title} at {request.level} level.

Using the following course material, generate {request.num_questions} questions of type {request.question_type}. The difficulty level should be {request.difficulty}.

COURSE MATERIAL:
{context}

REQUIREMENTS:
1. Generate exactly {request.num_questions} questions
2. Each question should test understanding of the material
3. Include brief explanations for correct answers
4. Use a different source for each question and name it in "sourceUsed"

{QUESTION_TYPE_INSTRUCTIONS.get(request.question_type, "")}

{_response_format(request.question_type)}

Return ONLY valid JSON, no extra text."""
