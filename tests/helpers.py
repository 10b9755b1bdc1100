"""Builders shared by the state, aggregator and store tests."""
from crisp.interview.models import InterviewSession, Question, Answer, Difficulty
from crisp.interview.testing import sample_document


def make_questions(count=3, time_limit=60):
    difficulties = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD]
    return [
        Question(id=f"q{i + 1}", text=f"Question {i + 1}?", difficulty=difficulties[i % 3],
                 time_limit=time_limit, category="Python")
        for i in range(count)
    ]


def make_session(session_id="s1", candidate_id="c1", question_count=3, created_at=1000,
                 total_score=None, completed_at=None):
    session = InterviewSession(
        id=session_id,
        candidate_id=candidate_id,
        document=sample_document(),
        questions=make_questions(question_count),
        created_at=created_at,
    )
    if total_score is not None:
        session.answers = [Answer(question_id=q.id, text="answer", time_spent=10, timestamp=created_at, score=7)
                           for q in session.questions]
        session.current_question_index = question_count
        session.is_completed = True
        session.total_score = total_score
        session.summary = "Done."
        session.completed_at = completed_at or created_at + 1
    return session


def make_answer(question_id="q1", text="An answer", time_spent=12):
    return Answer(question_id=question_id, text=text, time_spent=time_spent, timestamp=2000)
