"""
Question/evaluation gateway.

Every call to the language model goes through here. The three public
operations never raise for model or network trouble: on any LLMError or
malformed payload they fall back to deterministic local content.
"""
import asyncio
import logging
import re
from typing import List, Optional

import numpy as np

from ..config import (
    QUESTIONS_PER_INTERVIEW, TECHNICAL_TERMS, ANALYSIS_TEMPERATURE,
    QUESTION_TEMPERATURE, EVALUATION_TEMPERATURE, FINAL_EVALUATION_TEMPERATURE,
)
from ..errors import LLMError
from ..utils import now_ms
from .events import InterviewEventBus, FallbackUsedEvent
from .models import (
    CandidateDocument, Question, Answer, InterviewSession, Difficulty,
    AnswerEvaluation, FinalEvaluation,
)
from .prompts import InterviewPrompts, PromptFormatter
from .schemas import parse_questions, parse_answer_evaluation, parse_final_evaluation, round_half_up

logger = logging.getLogger("gateway")

# Keyboard mashing: one short run of letters, or a few letter-words with no punctuation
_ABSURD_RE = re.compile(r"[a-zA-Z]{4,}")
_GIBBERISH_RE = re.compile(r"(?:[a-zA-Z]{3,}\s?){2,}")
_PUNCTUATION_RE = re.compile(r"[.,;:!?]")
_TECHNICAL_RE = re.compile(r"\b(?:" + "|".join(TECHNICAL_TERMS) + r")\b", re.IGNORECASE)

_FALLBACK = InterviewPrompts.fallback_messages()


def is_gibberish(text: str) -> bool:
    """True for random letters or short unpunctuated word salad."""
    text = text.strip()
    if _ABSURD_RE.fullmatch(text) and len(text) < 12:
        return True
    return bool(_GIBBERISH_RE.fullmatch(text)) and not _PUNCTUATION_RE.search(text) and len(text) < 20


def fallback_score(text: str, difficulty: Difficulty) -> int:
    """
    Deterministic score used when the model cannot evaluate an answer.

    Returns 0 for gibberish, otherwise a length-based score in [1, 10].
    """
    text = text.strip()
    if is_gibberish(text):
        return 0

    length = len(text)
    if length < 10:
        score = 2
    elif length < 30:
        score = 3
    elif length < 100:
        score = 4
    elif length > 200:
        score = 6
    else:
        score = 5

    if _TECHNICAL_RE.search(text):
        score += 1

    if difficulty == Difficulty.EASY:
        score += 1
    elif difficulty == Difficulty.HARD:
        score -= 1

    return max(1, min(10, score))


def fallback_feedback(score: int, difficulty: Difficulty) -> str:
    templates = _FALLBACK["feedback"]
    if score == 0:
        return templates["gibberish"]
    if score >= 8:
        return templates["excellent"].format(difficulty=difficulty.value)
    if score >= 6:
        return templates["good"]
    if score >= 4:
        return templates["fair"]
    return templates["poor"]


def fallback_questions() -> List[Question]:
    """The fixed six-question set: two easy, two medium, two hard."""
    return [
        Question(
            id=item["id"],
            text=item["text"],
            difficulty=Difficulty(item["difficulty"]),
            time_limit=item["time_limit"],
            category=item["category"],
        )
        for item in InterviewPrompts.fallback_questions()
    ]


def fallback_final_evaluation(session: InterviewSession) -> FinalEvaluation:
    """Average the per-answer scores onto a 0-100 scale with generic narrative."""
    if session.answers:
        mean_score = float(np.mean([answer.score or 0 for answer in session.answers]))
        total = max(0, min(100, round_half_up(mean_score * 10)))
    else:
        total = 0
    return FinalEvaluation(
        total_score=total,
        summary=_FALLBACK["final_summary"],
        strengths=list(_FALLBACK["strengths"]),
        weaknesses=list(_FALLBACK["weaknesses"]),
    )


class InterviewGateway:
    """Builds prompts, calls the model and validates what comes back."""

    def __init__(self, llm_client, event_bus: Optional[InterviewEventBus] = None,
                 question_count: int = QUESTIONS_PER_INTERVIEW):
        """
        Args:
            llm_client: Object with generate_content(prompt, temperature=...) -> str
            event_bus: Receives FallbackUsedEvent whenever local content is substituted
            question_count: Number of questions a generated set must contain
        """
        self.llm_client = llm_client
        self.event_bus = event_bus
        self.question_count = question_count

    async def _generate(self, prompt: str, temperature: float) -> str:
        # requests blocks, so keep it off the loop that drives the timers
        return await asyncio.to_thread(self.llm_client.generate_content, prompt, temperature=temperature)

    def _fallback_used(self, session_id: str, operation: str, error: Exception) -> None:
        logger.warning("%s failed, using fallback: %s", operation, error)
        if self.event_bus:
            self.event_bus.emit(FallbackUsedEvent(session_id, now_ms(), operation, str(error)))

    async def analyze_resume(self, document: CandidateDocument, session_id: str = "") -> str:
        """Free-text résumé analysis; a one-line summary when the model fails."""
        try:
            analysis = await self._generate(
                InterviewPrompts.resume_analysis(document.raw_text), ANALYSIS_TEMPERATURE
            )
            logger.debug("Resume analysis: %s", analysis)
            return analysis
        except LLMError as e:
            self._fallback_used(session_id, "resume_analysis", e)
            return _FALLBACK["basic_analysis"].format(name=document.name or "Unknown candidate")

    async def generate_questions(self, document: CandidateDocument, session_id: str = "") -> List[Question]:
        """
        Generate the personalised question set for a résumé.

        Never raises for model failures; returns the fixed fallback set instead.
        """
        analysis = await self.analyze_resume(document, session_id)
        prompt = InterviewPrompts.question_generation(
            PromptFormatter.format_candidate_profile(document), analysis, document.raw_text
        )
        try:
            raw_response = await self._generate(prompt, QUESTION_TEMPERATURE)
            questions = parse_questions(raw_response, expected_count=self.question_count)
            logger.info("Generated %d questions", len(questions))
            return questions
        except (LLMError, ValueError) as e:
            self._fallback_used(session_id, "generate_questions", e)
            return fallback_questions()

    async def evaluate_answer(self, question: Question, answer: Answer, session_id: str = "") -> AnswerEvaluation:
        """Score one answer in [1, 10], or with the heuristic (0 for gibberish) on failure."""
        try:
            raw_response = await self._generate(
                InterviewPrompts.answer_evaluation(question, answer), EVALUATION_TEMPERATURE
            )
            evaluation = parse_answer_evaluation(raw_response)
            logger.info("Answer to %s scored %d", question.id, evaluation.score)
            return evaluation
        except (LLMError, ValueError) as e:
            self._fallback_used(session_id, "evaluate_answer", e)
            score = fallback_score(answer.text, question.difficulty)
            return AnswerEvaluation(score=score, feedback=fallback_feedback(score, question.difficulty))

    async def generate_final_evaluation(self, session: InterviewSession) -> FinalEvaluation:
        """Overall 0-100 assessment; degraded averaging when the model fails."""
        try:
            raw_response = await self._generate(
                InterviewPrompts.final_evaluation(PromptFormatter.format_qa_pairs(session)),
                FINAL_EVALUATION_TEMPERATURE,
            )
            evaluation = parse_final_evaluation(
                raw_response, _FALLBACK["strengths"], _FALLBACK["weaknesses"]
            )
            logger.info("Final evaluation for %s: %d", session.id, evaluation.total_score)
            return evaluation
        except (LLMError, ValueError) as e:
            self._fallback_used(session.id, "final_evaluation", e)
            return fallback_final_evaluation(session)
