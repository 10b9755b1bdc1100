"""
Data models for the interview engine.

Timestamps are epoch milliseconds. Every model converts to and from plain
dicts so the whole application state can be written to JSON.
"""
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Optional, Dict, List, Any, Tuple


class UserRole(str, Enum):
    """Who is using the application."""
    INTERVIEWER = "interviewer"
    INTERVIEWEE = "interviewee"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass
class User:
    """A signed-in account."""
    id: str
    email: str
    role: UserRole = UserRole.INTERVIEWEE
    name: Optional[str] = None
    phone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            role=UserRole(data.get("role") or UserRole.INTERVIEWEE.value),
            name=data.get("name"),
            phone=data.get("phone"),
        )


@dataclass(frozen=True)
class CandidateDocument:
    """Structured best-effort fields extracted from an uploaded résumé."""
    raw_text: str
    file_name: str = ""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    skills: Tuple[str, ...] = ()
    experience: Tuple[str, ...] = ()
    education: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("skills", "experience", "education"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidateDocument":
        return cls(
            raw_text=data.get("raw_text", ""),
            file_name=data.get("file_name", ""),
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            linkedin=data.get("linkedin"),
            github=data.get("github"),
            skills=tuple(data.get("skills") or ()),
            experience=tuple(data.get("experience") or ()),
            education=tuple(data.get("education") or ()),
        )


@dataclass(frozen=True)
class Question:
    """A single generated interview question."""
    id: str
    text: str
    difficulty: Difficulty
    time_limit: int  # in seconds
    category: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["difficulty"] = self.difficulty.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            id=data["id"],
            text=data["text"],
            difficulty=Difficulty(data["difficulty"]),
            time_limit=int(data["time_limit"]),
            category=data.get("category", "General"),
        )


@dataclass
class Answer:
    """A submitted answer; score and feedback arrive after evaluation."""
    question_id: str
    text: str
    time_spent: int  # in seconds
    timestamp: int
    score: Optional[int] = None
    feedback: Optional[str] = None

    @property
    def is_evaluated(self) -> bool:
        return self.score is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Answer":
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__ if k in data})


@dataclass
class InterviewSession:
    """One complete attempt at answering the generated question set."""
    id: str
    candidate_id: str
    document: CandidateDocument
    questions: List[Question]
    answers: List[Answer] = field(default_factory=list)
    current_question_index: int = 0
    is_completed: bool = False
    total_score: Optional[int] = None
    summary: Optional[str] = None
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    created_at: int = 0
    completed_at: Optional[int] = None

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_completed or self.current_question_index >= len(self.questions):
            return None
        return self.questions[self.current_question_index]

    @property
    def all_answered(self) -> bool:
        return self.current_question_index >= len(self.questions)

    @property
    def last_activity(self) -> int:
        return self.completed_at or self.created_at

    def find_answer(self, question_id: str) -> Optional[Answer]:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None

    def copy(self) -> "InterviewSession":
        """Shallow-copy the session with fresh answer objects and lists."""
        return replace(
            self,
            answers=[replace(a) for a in self.answers],
            questions=list(self.questions),
            strengths=list(self.strengths),
            weaknesses=list(self.weaknesses),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "candidate_id": self.candidate_id,
            "document": self.document.to_dict(),
            "questions": [q.to_dict() for q in self.questions],
            "answers": [a.to_dict() for a in self.answers],
            "current_question_index": self.current_question_index,
            "is_completed": self.is_completed,
            "total_score": self.total_score,
            "summary": self.summary,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "created_at": self.created_at,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterviewSession":
        return cls(
            id=data["id"],
            candidate_id=data["candidate_id"],
            document=CandidateDocument.from_dict(data.get("document") or {}),
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
            answers=[Answer.from_dict(a) for a in data.get("answers", [])],
            current_question_index=int(data.get("current_question_index", 0)),
            is_completed=bool(data.get("is_completed", False)),
            total_score=data.get("total_score"),
            summary=data.get("summary"),
            strengths=list(data.get("strengths") or []),
            weaknesses=list(data.get("weaknesses") or []),
            created_at=int(data.get("created_at", 0)),
            completed_at=data.get("completed_at"),
        )


@dataclass
class CandidateProfile:
    """Per-candidate history and derived statistics."""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    sessions: List[InterviewSession] = field(default_factory=list)
    total_sessions: int = 0
    average_score: Optional[float] = None
    last_interview_date: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "sessions": [s.to_dict() for s in self.sessions],
            "total_sessions": self.total_sessions,
            "average_score": self.average_score,
            "last_interview_date": self.last_interview_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidateProfile":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            phone=data.get("phone"),
            sessions=[InterviewSession.from_dict(s) for s in data.get("sessions", [])],
            total_sessions=int(data.get("total_sessions", 0)),
            average_score=data.get("average_score"),
            last_interview_date=data.get("last_interview_date"),
        )


@dataclass
class AnswerEvaluation:
    """Score and feedback for one answer."""
    score: int
    feedback: str


@dataclass
class FinalEvaluation:
    """Overall assessment of a finished session."""
    total_score: int
    summary: str
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)


@dataclass
class TimerState:
    """Countdown for the question currently on screen."""
    time_remaining: int = 0
    is_running: bool = False
    is_expired: bool = False
