"""Interview engine components.

This module contains the business logic for running a timed mock interview:
résumé extraction, the model gateway, the session state machine and
profile aggregation.
"""

# Controller
from .controller import InterviewController

# Data models
from .models import (
    User, UserRole, Difficulty, CandidateDocument, Question, Answer,
    InterviewSession, CandidateProfile, AnswerEvaluation, FinalEvaluation, TimerState
)

# Extraction
from .extraction import extract_candidate_fields, parse_resume

# Gateway
from .gateway import InterviewGateway, fallback_score, fallback_feedback, fallback_questions, is_gibberish

# State
from .reducers import Action, AppState, AuthState, InterviewState, CandidatesState, root_reducer
from .timer import QuestionTimer

# Aggregation
from .aggregator import record_session, recompute_stats, upsert_profile, search_profiles, sort_profiles, score_band

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent, InterviewStartedEvent,
    AnswerSubmittedEvent, AnswerEvaluatedEvent, QuestionTimedOutEvent,
    InterviewCompletedEvent, InterviewResumedEvent, FallbackUsedEvent,
    ErrorOccurredEvent
)

__all__ = [
    # Controller
    "InterviewController",

    # Data models
    "User", "UserRole", "Difficulty", "CandidateDocument", "Question", "Answer",
    "InterviewSession", "CandidateProfile", "AnswerEvaluation", "FinalEvaluation", "TimerState",

    # Extraction
    "extract_candidate_fields", "parse_resume",

    # Gateway
    "InterviewGateway", "fallback_score", "fallback_feedback", "fallback_questions", "is_gibberish",

    # State
    "Action", "AppState", "AuthState", "InterviewState", "CandidatesState", "root_reducer",
    "QuestionTimer",

    # Aggregation
    "record_session", "recompute_stats", "upsert_profile", "search_profiles",
    "sort_profiles", "score_band",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent", "InterviewStartedEvent",
    "AnswerSubmittedEvent", "AnswerEvaluatedEvent", "QuestionTimedOutEvent",
    "InterviewCompletedEvent", "InterviewResumedEvent", "FallbackUsedEvent",
    "ErrorOccurredEvent",
]
