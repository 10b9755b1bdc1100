"""
Structured schemas for LLM responses.

The model is asked for strict JSON; these pydantic models validate what
comes back and normalise it into domain objects. Any ValueError raised here
sends the gateway down its fallback path.
"""
import math
from typing import Optional, Any, List

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..infrastructure.llm import parse_json_text
from .models import Question, Difficulty, AnswerEvaluation, FinalEvaluation

DEFAULT_EVALUATION_FEEDBACK = (
    "Evaluation completed. Consider reviewing the question and providing a more detailed answer."
)


class QuestionPayload(BaseModel):
    """One question as returned by the model; optional fields get defaults."""
    id: Optional[str] = None
    text: Optional[str] = None
    difficulty: Optional[str] = None
    time_limit: Optional[int] = Field(default=None, alias="timeLimit")
    category: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalise_difficulty(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip().lower()
        return value if value in {d.value for d in Difficulty} else None

    @field_validator("time_limit", mode="before")
    @classmethod
    def _positive_time_limit(cls, value: Any) -> Optional[int]:
        try:
            seconds = int(value)
        except (TypeError, ValueError):
            return None
        return seconds if seconds > 0 else None

    def to_question(self, index: int) -> Question:
        return Question(
            id=self.id or f"q_{index + 1}",
            text=self.text or "Question not available",
            difficulty=Difficulty(self.difficulty or Difficulty.MEDIUM.value),
            time_limit=self.time_limit or 90,
            category=self.category or "General",
        )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class AnswerEvaluationPayload(BaseModel):
    score: Optional[float] = None
    feedback: Optional[str] = None

    # Infinity and NaN parse as JSON floats but cannot be rounded to a score
    model_config = {"allow_inf_nan": False}

    def to_evaluation(self) -> AnswerEvaluation:
        # Model scores live on a 1-10 scale; 0 is reserved for gibberish fallback
        score = max(1, min(10, round_half_up(self.score or 5)))
        return AnswerEvaluation(score=score, feedback=self.feedback or DEFAULT_EVALUATION_FEEDBACK)


class FinalEvaluationPayload(BaseModel):
    total_score: float = Field(alias="totalScore")
    summary: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "allow_inf_nan": False}

    def to_evaluation(self, fill_strengths: List[str], fill_weaknesses: List[str]) -> FinalEvaluation:
        return FinalEvaluation(
            total_score=max(0, min(100, round_half_up(self.total_score))),
            summary=self.summary,
            strengths=_three_items(self.strengths, fill_strengths),
            weaknesses=_three_items(self.weaknesses, fill_weaknesses),
        )


def _three_items(items: List[str], filler: List[str]) -> List[str]:
    """Trim to three entries, padding from filler when the model gave fewer."""
    result = [item for item in items if item and item.strip()][:3]
    for extra in filler:
        if len(result) >= 3:
            break
        if extra not in result:
            result.append(extra)
    return result


def parse_questions(raw_response: str, expected_count: Optional[int] = None) -> List[Question]:
    """
    Parse the question-generation response.

    Raises:
        LLMError: If no JSON can be recovered from the response
        ValueError: If the response is not a list of question objects of the expected length
    """
    data = parse_json_text(raw_response)
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        data = data["questions"]
    if not isinstance(data, list) or not data:
        raise ValueError(f"Expected a non-empty JSON list of questions, got: {type(data).__name__}")
    if expected_count is not None and len(data) != expected_count:
        raise ValueError(f"Expected {expected_count} questions, got {len(data)}")

    try:
        payloads = [QuestionPayload.model_validate(item) for item in data]
    except ValidationError as e:
        raise ValueError(f"Invalid question structure: {e}") from e
    return [payload.to_question(i) for i, payload in enumerate(payloads)]


def parse_answer_evaluation(raw_response: str) -> AnswerEvaluation:
    """
    Parse a {score, feedback} object, clamping the score into [1, 10].

    Raises:
        LLMError: If no JSON can be recovered from the response
        ValueError: If the object does not match the expected shape
    """
    data = parse_json_text(raw_response)
    try:
        return AnswerEvaluationPayload.model_validate(data).to_evaluation()
    except ValidationError as e:
        raise ValueError(f"Invalid evaluation structure: {e}") from e


def parse_final_evaluation(raw_response: str,
                           fill_strengths: List[str],
                           fill_weaknesses: List[str]) -> FinalEvaluation:
    """
    Parse the final evaluation object.

    Raises:
        LLMError: If no JSON can be recovered from the response
        ValueError: If required fields are missing or mistyped
    """
    data = parse_json_text(raw_response)
    try:
        payload = FinalEvaluationPayload.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid final evaluation structure: {e}") from e
    return payload.to_evaluation(fill_strengths, fill_weaknesses)
