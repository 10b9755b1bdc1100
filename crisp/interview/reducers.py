"""
Application state and pure reducers.

The whole application state is one AppState value. Reducers take a state
and an Action and return a new state; they never mutate their input and
never perform I/O. Actions that make no sense for the current state
(an answer with no active question, an evaluation for an unknown answer,
a result for a session that has since been replaced) leave it unchanged.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .aggregator import record_session, recompute_stats, upsert_profile
from .models import User, InterviewSession, CandidateProfile, Answer, FinalEvaluation


# auth
SIGN_IN_PENDING = "auth/signIn/pending"
SIGN_IN_FULFILLED = "auth/signIn/fulfilled"
SIGN_IN_REJECTED = "auth/signIn/rejected"
SIGN_UP_PENDING = "auth/signUp/pending"
SIGN_UP_FULFILLED = "auth/signUp/fulfilled"
SIGN_UP_REJECTED = "auth/signUp/rejected"
SIGN_OUT_FULFILLED = "auth/signOut/fulfilled"
CHECK_AUTH_FULFILLED = "auth/checkAuthState/fulfilled"
SET_USER = "auth/setUser"
AUTH_CLEAR_ERROR = "auth/clearError"

# interview
START_PENDING = "interview/start/pending"
START_FULFILLED = "interview/start/fulfilled"
START_REJECTED = "interview/start/rejected"
ANSWER_SUBMITTED = "interview/answerSubmitted"
ANSWER_EVALUATED = "interview/answerEvaluated"
COMPLETED = "interview/completed"
SET_CURRENT_SESSION = "interview/setCurrentSession"
UPDATE_QUESTION_INDEX = "interview/updateCurrentQuestionIndex"
PAUSE = "interview/pause"
RESUME = "interview/resume"
RESET = "interview/reset"
INTERVIEW_CLEAR_ERROR = "interview/clearError"

# candidates
ADD_PROFILE = "candidates/addProfile"
UPDATE_PROFILE = "candidates/updateProfile"
UPSERT_PROFILE = "candidates/upsertProfile"
ADD_SESSION = "candidates/addSession"
REMOVE_PROFILE = "candidates/removeProfile"
CANDIDATES_SET_LOADING = "candidates/setLoading"
CANDIDATES_SET_ERROR = "candidates/setError"
CANDIDATES_CLEAR_ERROR = "candidates/clearError"


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


@dataclass
class AuthState:
    user: Optional[User] = None
    is_loading: bool = False
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"user": self.user.to_dict() if self.user else None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthState":
        user = data.get("user")
        return cls(user=User.from_dict(user) if user else None)


@dataclass
class InterviewState:
    current_session: Optional[InterviewSession] = None
    is_interview_active: bool = False
    is_loading: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_session": self.current_session.to_dict() if self.current_session else None,
            "is_interview_active": self.is_interview_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterviewState":
        session = data.get("current_session")
        return cls(
            current_session=InterviewSession.from_dict(session) if session else None,
            is_interview_active=bool(data.get("is_interview_active", False)),
        )


@dataclass
class CandidatesState:
    profiles: List[CandidateProfile] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"profiles": [p.to_dict() for p in self.profiles]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidatesState":
        return cls(profiles=[CandidateProfile.from_dict(p) for p in data.get("profiles", [])])


@dataclass
class AppState:
    auth: AuthState = field(default_factory=AuthState)
    interview: InterviewState = field(default_factory=InterviewState)
    candidates: CandidatesState = field(default_factory=CandidatesState)

    def to_dict(self) -> Dict[str, Any]:
        """Persistable slice of the state; loading flags and errors are transient."""
        return {
            "auth": self.auth.to_dict(),
            "interview": self.interview.to_dict(),
            "candidates": self.candidates.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppState":
        return cls(
            auth=AuthState.from_dict(data.get("auth") or {}),
            interview=InterviewState.from_dict(data.get("interview") or {}),
            candidates=CandidatesState.from_dict(data.get("candidates") or {}),
        )


def auth_reducer(state: AuthState, action: Action) -> AuthState:
    if action.type in (SIGN_IN_PENDING, SIGN_UP_PENDING):
        return replace(state, is_loading=True, error=None)
    if action.type in (SIGN_IN_FULFILLED, SIGN_UP_FULFILLED, CHECK_AUTH_FULFILLED, SET_USER):
        return replace(state, user=action.payload, is_loading=False, error=None)
    if action.type in (SIGN_IN_REJECTED, SIGN_UP_REJECTED):
        return replace(state, is_loading=False, error=action.payload or "Authentication failed")
    if action.type == SIGN_OUT_FULFILLED:
        return AuthState()
    if action.type == AUTH_CLEAR_ERROR:
        return replace(state, error=None)
    return state


def _with_session(state: InterviewState, session: InterviewSession, **changes) -> InterviewState:
    return replace(state, current_session=session, **changes)


def _submit_answer(state: InterviewState, answer: Answer) -> InterviewState:
    session = state.current_session
    if session is None or session.is_completed or not state.is_interview_active:
        return state
    question = session.current_question
    if question is None or question.id != answer.question_id:
        return state

    session = session.copy()
    session.answers.append(replace(answer))
    session.current_question_index += 1
    return _with_session(state, session)


def _evaluate_answer(state: InterviewState, payload: Dict[str, Any]) -> InterviewState:
    session = state.current_session
    if session is None or session.id != payload["session_id"]:
        return state
    if session.find_answer(payload["question_id"]) is None:
        return state

    session = session.copy()
    answer = session.find_answer(payload["question_id"])
    answer.score = payload["score"]
    answer.feedback = payload["feedback"]
    return _with_session(state, session)


def _complete(state: InterviewState, payload: Dict[str, Any]) -> InterviewState:
    session = state.current_session
    if session is None or session.is_completed or session.id != payload["session_id"]:
        return state

    evaluation: FinalEvaluation = payload["evaluation"]
    session = session.copy()
    session.is_completed = True
    session.completed_at = payload["completed_at"]
    session.total_score = evaluation.total_score
    session.summary = evaluation.summary
    session.strengths = list(evaluation.strengths)
    session.weaknesses = list(evaluation.weaknesses)
    return _with_session(state, session, is_interview_active=False)


def _update_index(state: InterviewState, index: int) -> InterviewState:
    session = state.current_session
    if session is None or not 0 <= index <= len(session.questions):
        return state
    session = session.copy()
    session.current_question_index = index
    return _with_session(state, session)


def interview_reducer(state: InterviewState, action: Action) -> InterviewState:
    if action.type == START_PENDING:
        return replace(state, is_loading=True, error=None)
    if action.type == START_FULFILLED:
        return InterviewState(current_session=action.payload, is_interview_active=True)
    if action.type == START_REJECTED:
        return replace(state, is_loading=False, error=action.payload or "Failed to start interview")
    if action.type == ANSWER_SUBMITTED:
        return _submit_answer(state, action.payload)
    if action.type == ANSWER_EVALUATED:
        return _evaluate_answer(state, action.payload)
    if action.type == COMPLETED:
        return _complete(state, action.payload)
    if action.type == SET_CURRENT_SESSION:
        session = action.payload
        return replace(state, current_session=session,
                       is_interview_active=session is not None and not session.is_completed)
    if action.type == UPDATE_QUESTION_INDEX:
        return _update_index(state, action.payload)
    if action.type == PAUSE:
        return replace(state, is_interview_active=False)
    if action.type == RESUME:
        if state.current_session and not state.current_session.is_completed:
            return replace(state, is_interview_active=True)
        return state
    if action.type == RESET:
        return InterviewState()
    if action.type == INTERVIEW_CLEAR_ERROR:
        return replace(state, error=None)
    return state


def _replace_profile(profiles: List[CandidateProfile], profile: CandidateProfile) -> List[CandidateProfile]:
    result = [profile if p.id == profile.id else p for p in profiles]
    if not any(p.id == profile.id for p in profiles):
        result.append(profile)
    return result


def _update_profile(profiles: List[CandidateProfile], payload: Dict[str, Any]) -> List[CandidateProfile]:
    updates = dict(payload["updates"])
    result = []
    for profile in profiles:
        if profile.id == payload["id"]:
            profile = replace(profile, **updates)
            if "sessions" in updates:
                profile = recompute_stats(profile)
        result.append(profile)
    return result


def candidates_reducer(state: CandidatesState, action: Action) -> CandidatesState:
    if action.type == ADD_PROFILE:
        return replace(state, profiles=_replace_profile(state.profiles, action.payload))
    if action.type == UPDATE_PROFILE:
        return replace(state, profiles=_update_profile(state.profiles, action.payload))
    if action.type == UPSERT_PROFILE:
        payload = action.payload
        return replace(state, profiles=upsert_profile(
            state.profiles, payload["id"], payload.get("name", ""),
            payload.get("email", ""), payload.get("phone"),
        ))
    if action.type == ADD_SESSION:
        payload = action.payload
        return replace(state, profiles=record_session(
            state.profiles, payload["candidate_id"], payload["session"],
            name=payload.get("name", ""), email=payload.get("email", ""),
        ))
    if action.type == REMOVE_PROFILE:
        return replace(state, profiles=[p for p in state.profiles if p.id != action.payload])
    if action.type == CANDIDATES_SET_LOADING:
        return replace(state, is_loading=bool(action.payload))
    if action.type == CANDIDATES_SET_ERROR:
        return replace(state, error=action.payload)
    if action.type == CANDIDATES_CLEAR_ERROR:
        return replace(state, error=None)
    return state


def root_reducer(state: AppState, action: Action) -> AppState:
    """Route an action to its slice; untouched slices keep their identity."""
    slice_name = action.type.split("/", 1)[0]
    if slice_name == "auth":
        return replace(state, auth=auth_reducer(state.auth, action))
    if slice_name == "interview":
        return replace(state, interview=interview_reducer(state.interview, action))
    if slice_name == "candidates":
        return replace(state, candidates=candidates_reducer(state.candidates, action))
    return state
