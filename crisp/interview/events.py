"""
Event-driven notifications for the interview engine.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    INTERVIEW_STARTED = "interview_started"
    ANSWER_SUBMITTED = "answer_submitted"
    ANSWER_EVALUATED = "answer_evaluated"
    QUESTION_TIMED_OUT = "question_timed_out"
    INTERVIEW_COMPLETED = "interview_completed"
    INTERVIEW_RESUMED = "interview_resumed"
    FALLBACK_USED = "fallback_used"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: int
    data: Dict[str, Any]


@dataclass
class InterviewStartedEvent(InterviewEvent):
    """Event fired when a session has its questions and becomes active."""
    def __init__(self, session_id: str, timestamp: int, candidate_id: str, question_count: int):
        super().__init__(
            event_type=EventType.INTERVIEW_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"candidate_id": candidate_id, "question_count": question_count}
        )


@dataclass
class AnswerSubmittedEvent(InterviewEvent):
    """Event fired when an answer is appended to the session."""
    def __init__(self, session_id: str, timestamp: int, question_id: str,
                 time_spent: int, auto_submitted: bool):
        super().__init__(
            event_type=EventType.ANSWER_SUBMITTED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "question_id": question_id,
                "time_spent": time_spent,
                "auto_submitted": auto_submitted
            }
        )


@dataclass
class AnswerEvaluatedEvent(InterviewEvent):
    """Event fired when a score and feedback are committed to an answer."""
    def __init__(self, session_id: str, timestamp: int, question_id: str, score: int):
        super().__init__(
            event_type=EventType.ANSWER_EVALUATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_id": question_id, "score": score}
        )


@dataclass
class QuestionTimedOutEvent(InterviewEvent):
    """Event fired when a countdown expires with nothing staged."""
    def __init__(self, session_id: str, timestamp: int, question_id: str):
        super().__init__(
            event_type=EventType.QUESTION_TIMED_OUT,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_id": question_id}
        )


@dataclass
class InterviewCompletedEvent(InterviewEvent):
    """Event fired when the final evaluation has been recorded."""
    def __init__(self, session_id: str, timestamp: int, candidate_id: str,
                 total_score: int, answer_count: int):
        super().__init__(
            event_type=EventType.INTERVIEW_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "candidate_id": candidate_id,
                "total_score": total_score,
                "answer_count": answer_count
            }
        )


@dataclass
class InterviewResumedEvent(InterviewEvent):
    """Event fired when a paused or rehydrated session accepts input again."""
    def __init__(self, session_id: str, timestamp: int, question_index: int):
        super().__init__(
            event_type=EventType.INTERVIEW_RESUMED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_index": question_index}
        )


@dataclass
class FallbackUsedEvent(InterviewEvent):
    """Event fired when the gateway substitutes local content for a model response."""
    def __init__(self, session_id: str, timestamp: int, operation: str, reason: str):
        super().__init__(
            event_type=EventType.FALLBACK_USED,
            session_id=session_id,
            timestamp=timestamp,
            data={"operation": operation, "reason": reason}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: int, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview engine communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to %s", event_type)

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe a handler from one event type."""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug("Unsubscribed handler from %s", event_type)
            except ValueError:
                logger.warning("Handler not found for %s", event_type)

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        Handler exceptions are logged and never reach the emitter.
        """
        logger.debug("Emitting event: %s for session %s", event.event_type, event.session_id)

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error("Error in event handler for %s: %s", event.event_type, e)

        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error("Error in global event handler: %s", e)

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        self.logger.info("Event: %s | Session: %s | Data: %s",
                         event.event_type.value, event.session_id, event.data)


class InterviewMetrics:
    """Collects counters from interview events."""

    _COUNTERS = {
        EventType.INTERVIEW_STARTED: "interviews_started",
        EventType.INTERVIEW_COMPLETED: "interviews_completed",
        EventType.INTERVIEW_RESUMED: "interviews_resumed",
        EventType.ANSWER_SUBMITTED: "answers_submitted",
        EventType.ANSWER_EVALUATED: "answers_evaluated",
        EventType.QUESTION_TIMED_OUT: "questions_timed_out",
        EventType.FALLBACK_USED: "fallbacks_used",
        EventType.ERROR_OCCURRED: "errors_occurred",
    }

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        name = self._COUNTERS.get(event.event_type)
        if name:
            self._counts[name] += 1
        if event.event_type == EventType.INTERVIEW_COMPLETED:
            self.last_score = event.data.get("total_score")

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return dict(self._counts)

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self._counts: Dict[str, int] = {name: 0 for name in self._COUNTERS.values()}
        self.last_score: Optional[int] = None
