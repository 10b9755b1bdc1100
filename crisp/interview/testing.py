"""
Testing infrastructure with mock services for the interview engine.
"""
import json
import shutil
import tempfile
import threading
from typing import Dict, Any, List, Optional

from ..errors import LLMError
from .events import InterviewEventBus
from .extraction import extract_candidate_fields
from .gateway import InterviewGateway
from .models import CandidateDocument, InterviewSession

SAMPLE_RESUME_TEXT = """Jane Marie Doe
jane.doe@example.com | (555) 123-4567
linkedin.com/in/janedoe | github.com/janedoe

Skills
Python, React, Node.js, PostgreSQL, Docker

Experience
Senior Software Engineer at Acme Corp 2019-2024
Junior Developer at Initech 2016-2019
7 years of experience building web platforms

Education
Bachelor of Science in Computer Science, State University
"""


def sample_resume_text() -> str:
    return SAMPLE_RESUME_TEXT


def sample_document(text: str = SAMPLE_RESUME_TEXT, file_name: str = "jane_doe.pdf") -> CandidateDocument:
    """Candidate document built through the real extractor."""
    return extract_candidate_fields(text, file_name=file_name)


def questions_json(count: int = 6, time_limit: int = 60) -> str:
    """A well-formed question-generation response, two of each difficulty for six."""
    difficulties = ["easy", "easy", "medium", "medium", "hard", "hard"]
    questions = [
        {
            "id": f"q{i + 1}",
            "text": f"Generated question {i + 1}?",
            "difficulty": difficulties[i % len(difficulties)],
            "timeLimit": time_limit,
            "category": "Python",
        }
        for i in range(count)
    ]
    return json.dumps(questions)


def evaluation_json(score: float = 8, feedback: str = "Solid answer.") -> str:
    return json.dumps({"score": score, "feedback": feedback})


def final_evaluation_json(total_score: float = 82, summary: str = "Strong candidate.",
                          strengths: Optional[List[str]] = None,
                          weaknesses: Optional[List[str]] = None) -> str:
    return json.dumps({
        "totalScore": total_score,
        "summary": summary,
        "strengths": strengths if strengths is not None else ["Clear", "Accurate", "Concise"],
        "weaknesses": weaknesses if weaknesses is not None else ["Depth", "Examples", "Testing"],
    })


def classify_prompt(prompt: str) -> str:
    """Which gateway operation a prompt belongs to."""
    if prompt.startswith("Analyze this resume"):
        return "analysis"
    if "personalized interview questions" in prompt:
        return "questions"
    if "evaluating a candidate's response" in prompt:
        return "evaluation"
    if "Review the following interview Q&A" in prompt:
        return "final"
    return "unknown"


class MockLLMClient:
    """
    Mock LLM client for testing.

    Responses are scripted per operation ("analysis", "questions",
    "evaluation", "final"); each list is consumed in order and its last
    entry repeats. Operations without a script get a well-formed default.
    """

    DEFAULTS = {
        "analysis": "Experienced full-stack engineer with Python and React.",
        "questions": questions_json(),
        "evaluation": evaluation_json(),
        "final": final_evaluation_json(),
        "unknown": "{}",
    }

    def __init__(self, responses: Optional[Dict[str, List[str]]] = None):
        self.responses = {kind: list(items) for kind, items in (responses or {}).items()}
        self.request_history: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def generate_content(self, prompt: str, temperature: float = 0.0, **kwargs) -> str:
        """Return mock LLM response."""
        kind = classify_prompt(prompt)
        with self._lock:
            self.request_history.append({
                "kind": kind,
                "prompt": prompt,
                "temperature": temperature,
                "kwargs": kwargs
            })
            scripted = self.responses.get(kind)
            if scripted:
                response = scripted.pop(0) if len(scripted) > 1 else scripted[0]
            else:
                response = self.DEFAULTS[kind]
        if isinstance(response, Exception):
            raise response
        return response

    def calls(self, kind: str) -> List[Dict[str, Any]]:
        return [request for request in self.request_history if request["kind"] == kind]


class FailingLLMClient:
    """Client whose every call fails, as during a full model outage."""

    def __init__(self, message: str = "Gemini API error: 503 - unavailable"):
        self.message = message
        self.call_count = 0

    def generate_content(self, prompt: str, temperature: float = 0.0, **kwargs) -> str:
        self.call_count += 1
        raise LLMError(self.message)


class BlockingLLMClient(MockLLMClient):
    """
    MockLLMClient that holds answer evaluations until release() is called.

    Lets tests change the interview state while an evaluation is in flight.
    """

    def __init__(self, responses: Optional[Dict[str, List[str]]] = None, timeout: float = 5.0):
        super().__init__(responses)
        self.timeout = timeout
        self.started = threading.Event()
        self._release = threading.Event()

    def release(self) -> None:
        self._release.set()

    def generate_content(self, prompt: str, temperature: float = 0.0, **kwargs) -> str:
        if classify_prompt(prompt) == "evaluation":
            self.started.set()
            self._release.wait(self.timeout)
        return super().generate_content(prompt, temperature, **kwargs)


def create_mock_gateway(llm_client=None, event_bus: Optional[InterviewEventBus] = None) -> InterviewGateway:
    return InterviewGateway(llm_client or MockLLMClient(), event_bus=event_bus or InterviewEventBus())


def validate_session(session: InterviewSession) -> List[str]:
    """
    Check the invariants of a session and return the issues found.

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    if len(session.answers) > len(session.questions):
        issues.append(f"{len(session.answers)} answers for {len(session.questions)} questions")
    if not 0 <= session.current_question_index <= len(session.questions):
        issues.append(f"Question index out of range: {session.current_question_index}")
    if not session.is_completed and session.current_question_index != len(session.answers):
        issues.append("Question index does not match answer count")
    if session.is_completed:
        if session.total_score is None:
            issues.append("Completed session has no total score")
        elif not 0 <= session.total_score <= 100:
            issues.append(f"Total score out of range: {session.total_score}")
        if session.completed_at is None:
            issues.append("Completed session has no completion time")
    for answer in session.answers:
        if answer.score is not None and not 0 <= answer.score <= 10:
            issues.append(f"Answer score out of range for {answer.question_id}: {answer.score}")

    return issues


def assert_valid_session(session: InterviewSession) -> None:
    """Assert that a session is valid, raising AssertionError if not."""
    issues = validate_session(session)
    if issues:
        raise AssertionError(f"Invalid interview session: {'; '.join(issues)}")


def make_temp_workdir() -> str:
    return tempfile.mkdtemp(prefix="crisp_test_")


def cleanup_test_files(temp_dir: str) -> None:
    """Clean up test files and directories."""
    shutil.rmtree(temp_dir, ignore_errors=True)
