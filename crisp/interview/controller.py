"""
Interview controller.

Owns the application state and drives the session state machine: starting
an interview, timing and submitting answers, evaluating them in the
background and completing the session. All state changes go through
dispatch() on the event loop thread; model calls run in worker threads via
the gateway.
"""
import asyncio
import logging
import uuid
from typing import Optional, Set, Callable

from ..config import TIMER_TICK_SECONDS
from ..errors import InterviewError, AuthError
from ..utils import now_ms
from . import reducers as r
from .aggregator import find_profile
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    InterviewStartedEvent, AnswerSubmittedEvent, AnswerEvaluatedEvent,
    QuestionTimedOutEvent, InterviewCompletedEvent, InterviewResumedEvent,
    ErrorOccurredEvent,
)
from .gateway import InterviewGateway
from .models import (
    User, UserRole, CandidateDocument, InterviewSession, Question, Answer, TimerState,
)
from .reducers import Action, AppState, root_reducer
from .timer import QuestionTimer

logger = logging.getLogger("controller")


class InterviewController:
    """
    Single owner of AppState for one user of the application.

    Background work (answer evaluation, auto-submission) is tracked so that
    results arriving for a session that has since been reset or replaced are
    dropped instead of being committed.
    """

    def __init__(self,
                 gateway: InterviewGateway,
                 state_store=None,
                 identity_store=None,
                 profile_store=None,
                 event_bus: Optional[InterviewEventBus] = None,
                 tick_seconds: float = TIMER_TICK_SECONDS,
                 on_tick: Optional[Callable[[TimerState], None]] = None):
        self.gateway = gateway
        self.state_store = state_store
        self.identity_store = identity_store
        self.profile_store = profile_store
        self.tick_seconds = tick_seconds
        self.on_tick = on_tick

        # Initialize event system
        self.event_bus = event_bus or gateway.event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)
        if self.gateway.event_bus is not self.event_bus:
            logger.warning("Gateway reports to a different event bus; fallbacks will not be counted")

        self.state = state_store.load() if state_store else AppState()
        self._staged = ""
        self._timer: Optional[QuestionTimer] = None
        self._paused_remaining: Optional[int] = None
        self._pending_start: Optional[str] = None
        self._completion: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._evaluations: Set[asyncio.Task] = set()

        # A rehydrated session waits for an explicit resume
        if self.has_resumable_session():
            self.dispatch(Action(r.PAUSE))
            logger.info("Found resumable session %s", self.session.id)

    # State access

    def dispatch(self, action: Action) -> AppState:
        """Apply an action through the root reducer and persist the result."""
        self.state = root_reducer(self.state, action)
        logger.debug("Dispatched %s", action.type)
        if self.state_store:
            try:
                self.state_store.save(self.state)
            except OSError as e:
                logger.error("Failed to persist state after %s: %s", action.type, e)
        return self.state

    @property
    def session(self) -> Optional[InterviewSession]:
        return self.state.interview.current_session

    @property
    def current_question(self) -> Optional[Question]:
        session = self.session
        return session.current_question if session else None

    @property
    def is_active(self) -> bool:
        return self.state.interview.is_interview_active

    @property
    def timer_state(self) -> TimerState:
        return self._timer.state if self._timer else TimerState()

    @property
    def staged_answer(self) -> str:
        return self._staged

    def has_resumable_session(self) -> bool:
        session = self.session
        return session is not None and not session.is_completed

    def _is_current(self, session_id: str) -> bool:
        session = self.session
        return session is not None and session.id == session_id

    def _emit_error(self, error: Exception, component: str, session_id: str = "") -> None:
        self.event_bus.emit(ErrorOccurredEvent(
            session_id, now_ms(), type(error).__name__, str(error), component
        ))

    # Authentication

    def _require_identity(self):
        if self.identity_store is None:
            raise AuthError("No identity store configured")
        return self.identity_store

    def sign_up(self, email: str, password: str, name: Optional[str] = None,
                role: UserRole = UserRole.INTERVIEWEE) -> User:
        store = self._require_identity()
        self.dispatch(Action(r.SIGN_UP_PENDING))
        try:
            user = store.sign_up(email, password, name=name, role=role)
        except AuthError as e:
            self.dispatch(Action(r.SIGN_UP_REJECTED, str(e)))
            raise
        self.dispatch(Action(r.SIGN_UP_FULFILLED, user))
        return user

    def sign_in(self, email: str, password: str) -> User:
        store = self._require_identity()
        self.dispatch(Action(r.SIGN_IN_PENDING))
        try:
            user = store.sign_in(email, password)
        except AuthError as e:
            self.dispatch(Action(r.SIGN_IN_REJECTED, str(e)))
            raise
        self.dispatch(Action(r.SIGN_IN_FULFILLED, user))
        return user

    def sign_out(self) -> None:
        store = self._require_identity()
        self._cancel_timer()
        store.sign_out()
        self.dispatch(Action(r.SIGN_OUT_FULFILLED))

    def check_auth_state(self) -> Optional[User]:
        user = self._require_identity().current_user()
        self.dispatch(Action(r.CHECK_AUTH_FULFILLED, user))
        return user

    # Interview lifecycle

    async def start_interview(self, document: Optional[CandidateDocument],
                              candidate_id: Optional[str] = None) -> Optional[InterviewSession]:
        """
        Generate questions for a résumé and make the new session current.

        Returns None when the interview was reset while questions were being
        generated.

        Raises:
            InterviewError: No document, no candidate, or a session already in progress
        """
        user = self.state.auth.user
        candidate_id = candidate_id or (user.id if user else None)
        if document is None:
            raise InterviewError("Please upload a resume before starting the interview.")
        if not candidate_id:
            raise InterviewError("Please sign in before starting the interview.")
        if self.has_resumable_session() or self._pending_start:
            raise InterviewError("An interview is already in progress.")

        session_id = uuid.uuid4().hex
        self._pending_start = session_id
        self.dispatch(Action(r.UPSERT_PROFILE, {
            "id": candidate_id,
            "name": document.name or (user.name if user else "") or "",
            "email": document.email or (user.email if user else "") or "",
            "phone": document.phone,
        }))
        self.dispatch(Action(r.START_PENDING))

        try:
            questions = await self.gateway.generate_questions(document, session_id)
        except Exception as e:
            if self._pending_start == session_id:
                self._pending_start = None
                self.dispatch(Action(r.START_REJECTED, str(e)))
            self._emit_error(e, "start_interview", session_id)
            logger.error("Failed to start interview: %s", e)
            raise

        if self._pending_start != session_id:
            logger.info("Dropping questions for abandoned session %s", session_id)
            return None
        self._pending_start = None

        session = InterviewSession(
            id=session_id,
            candidate_id=candidate_id,
            document=document,
            questions=list(questions),
            created_at=now_ms(),
        )
        self._staged = ""
        self.dispatch(Action(r.START_FULFILLED, session))
        self.event_bus.emit(InterviewStartedEvent(session_id, now_ms(), candidate_id, len(questions)))
        logger.info("Started interview %s for %s with %d questions", session_id, candidate_id, len(questions))

        self._start_timer()
        return self.session

    def stage_answer(self, text: str) -> None:
        """Record the text typed so far for the current question."""
        if self.is_active and self.current_question:
            self._staged = text

    async def submit_answer(self, text: Optional[str] = None,
                            time_spent: Optional[int] = None,
                            auto_submitted: bool = False,
                            question_id: Optional[str] = None) -> Optional[Answer]:
        """
        Append an answer for the current question and move on.

        Evaluation starts in the background. When this was the last question
        the interview is completed before returning. Submitting with no
        active question is a no-op that returns None, as is submitting for a
        question_id that is no longer the current question.
        """
        session = self.session
        question = self.current_question
        if session is None or question is None or not self.is_active:
            logger.warning("Ignoring answer submission with no active question")
            return None
        if question_id is not None and question.id != question_id:
            logger.info("Ignoring submission for %s; current question is %s", question_id, question.id)
            return None

        if time_spent is None:
            time_spent = self._timer.elapsed if self._timer else 0
        self._cancel_timer()

        answer = Answer(
            question_id=question.id,
            text=self._staged if text is None else text,
            time_spent=time_spent,
            timestamp=now_ms(),
        )
        self.dispatch(Action(r.ANSWER_SUBMITTED, answer))
        self._staged = ""
        self.event_bus.emit(AnswerSubmittedEvent(session.id, now_ms(), question.id, time_spent, auto_submitted))
        logger.info("Answer submitted for %s (%ds%s)", question.id, time_spent,
                    ", auto" if auto_submitted else "")

        self._evaluations.add(self._spawn(self._evaluate(session.id, question, answer)))

        if self.session.all_answered:
            await self.complete_interview()
        else:
            self._start_timer()
        return answer

    async def _evaluate(self, session_id: str, question: Question, answer: Answer) -> None:
        evaluation = await self.gateway.evaluate_answer(question, answer, session_id)
        if not self._is_current(session_id):
            logger.info("Dropping stale evaluation for %s in session %s", question.id, session_id)
            return
        self.dispatch(Action(r.ANSWER_EVALUATED, {
            "session_id": session_id,
            "question_id": answer.question_id,
            "score": evaluation.score,
            "feedback": evaluation.feedback,
        }))
        self.event_bus.emit(AnswerEvaluatedEvent(session_id, now_ms(), question.id, evaluation.score))

    async def complete_interview(self) -> Optional[InterviewSession]:
        """
        Finish the current session: wait for outstanding evaluations, request
        the final evaluation and record the session in the candidate's profile.

        Returns None when the session was reset before completion finished.

        Raises:
            InterviewError: There is no active session to complete
        """
        if self._completion is not None and not self._completion.done():
            return await asyncio.shield(self._completion)

        session = self.session
        if session is None or session.is_completed:
            raise InterviewError("There is no interview to complete.")
        if not self.is_active:
            raise InterviewError("Resume the interview before completing it.")

        self._cancel_timer()
        self._completion = asyncio.get_running_loop().create_task(self._complete(session.id))
        return await asyncio.shield(self._completion)

    async def _complete(self, session_id: str) -> Optional[InterviewSession]:
        pending = [task for task in self._evaluations if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if not self._is_current(session_id):
            logger.info("Session %s was replaced before completion", session_id)
            return None

        evaluation = await self.gateway.generate_final_evaluation(self.session)
        if not self._is_current(session_id):
            logger.info("Dropping final evaluation for replaced session %s", session_id)
            return None

        self.dispatch(Action(r.COMPLETED, {
            "session_id": session_id,
            "evaluation": evaluation,
            "completed_at": now_ms(),
        }))
        session = self.session
        self.dispatch(Action(r.ADD_SESSION, {"candidate_id": session.candidate_id, "session": session}))

        if self.profile_store:
            profile = find_profile(self.state.candidates.profiles, session.candidate_id)
            try:
                self.profile_store.save_profile(profile)
            except OSError as e:
                logger.error("Failed to export profile %s: %s", session.candidate_id, e)
                self._emit_error(e, "profile_store", session_id)

        self.event_bus.emit(InterviewCompletedEvent(
            session_id, now_ms(), session.candidate_id, session.total_score, len(session.answers)
        ))
        logger.info("Completed interview %s with score %d", session_id, session.total_score)
        return session

    def pause(self) -> None:
        """Stop accepting input, keeping the remaining time for the current question."""
        if self._timer and self._timer.is_running:
            self._paused_remaining = self._timer.state.time_remaining
        self._cancel_timer()
        self.dispatch(Action(r.PAUSE))

    async def resume(self) -> bool:
        """
        Accept input again for an incomplete session.

        A session whose questions are all answered is completed right away.
        Returns False when there is nothing to resume.
        """
        if not self.has_resumable_session():
            return False
        self.dispatch(Action(r.RESUME))
        session = self.session
        self.event_bus.emit(InterviewResumedEvent(session.id, now_ms(), session.current_question_index))
        logger.info("Resumed interview %s at question %d", session.id, session.current_question_index + 1)

        if session.all_answered:
            await self.complete_interview()
        else:
            remaining, self._paused_remaining = self._paused_remaining, None
            self._start_timer(remaining)
        return True

    def reset(self) -> None:
        """Drop the current session; in-flight results for it will be discarded."""
        self._cancel_timer()
        self._staged = ""
        self._paused_remaining = None
        self._pending_start = None
        self._completion = None
        self.dispatch(Action(r.RESET))
        logger.info("Interview state reset")

    async def shutdown(self) -> None:
        """Cancel the timer and let background evaluations settle."""
        self._cancel_timer()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Timer and background tasks

    def _start_timer(self, time_remaining: Optional[int] = None) -> None:
        question = self.current_question
        if question is None:
            return
        self._cancel_timer()
        session_id = self.session.id
        self._timer = QuestionTimer(
            question.time_limit,
            on_expire=lambda: self._on_timer_expired(session_id, question),
            tick_seconds=self.tick_seconds,
            on_tick=self.on_tick,
            time_remaining=time_remaining,
        )
        self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer:
            self._timer.cancel()

    def _on_timer_expired(self, session_id: str, question: Question) -> None:
        current = self.current_question
        if not self._is_current(session_id) or current is None or current.id != question.id:
            return
        if self._staged.strip():
            logger.info("Time is up for %s, submitting staged answer", question.id)
            self._spawn(self.submit_answer(
                time_spent=question.time_limit, auto_submitted=True, question_id=question.id
            ))
        else:
            # Nothing to submit; the question stays open for a manual answer
            logger.info("Time is up for %s with no answer staged", question.id)
            self.event_bus.emit(QuestionTimedOutEvent(session_id, now_ms(), question.id))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._evaluations.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background interview task failed: %s", error)
            self._emit_error(error, "background_task", self.session.id if self.session else "")
