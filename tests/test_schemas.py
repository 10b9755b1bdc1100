import json

import pytest

from crisp.errors import LLMError
from crisp.interview.models import Difficulty
from crisp.interview.schemas import (
    parse_questions, parse_answer_evaluation, parse_final_evaluation, round_half_up,
)
from crisp.interview.testing import questions_json

FILL_STRENGTHS = ["Good communication", "Solid foundation", "Problem-solving approach"]
FILL_WEAKNESSES = ["Could improve on advanced concepts", "More practice needed", "Time management"]


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(4.4) == 4
    assert round_half_up(46.666) == 47


def test_questions_accept_wrapped_list():
    raw = json.dumps({"questions": json.loads(questions_json())})

    questions = parse_questions(raw, expected_count=6)

    assert [q.difficulty for q in questions[:2]] == [Difficulty.EASY, Difficulty.EASY]


def test_question_fields_are_normalised():
    raw = json.dumps([
        {"id": 3, "text": "A?", "difficulty": " HARD ", "timeLimit": "150", "category": "Go"},
        {"id": "b", "text": "B?", "difficulty": "impossible", "timeLimit": -5},
        {"id": "c", "text": "C?", "time_limit": 30},
    ])

    first, second, third = parse_questions(raw)

    assert (first.id, first.difficulty, first.time_limit) == ("3", Difficulty.HARD, 150)
    assert (second.difficulty, second.time_limit) == (Difficulty.MEDIUM, 90)
    assert third.time_limit == 30


def test_question_count_is_enforced():
    with pytest.raises(ValueError, match="Expected 6"):
        parse_questions(questions_json(count=4), expected_count=6)


def test_questions_must_be_objects():
    with pytest.raises(ValueError):
        parse_questions('["just text", "more text"]')


def test_non_json_question_response():
    with pytest.raises(LLMError):
        parse_questions("Sorry, I can't do that")


@pytest.mark.parametrize("raw, expected", [
    ('{"score": 0, "feedback": "x"}', 5),
    ('{"score": -3, "feedback": "x"}', 1),
    ('{"score": 9.4, "feedback": "x"}', 9),
    ('{"score": 100, "feedback": "x"}', 10),
])
def test_answer_score_is_clamped(raw, expected):
    assert parse_answer_evaluation(raw).score == expected


def test_answer_score_must_be_numeric():
    with pytest.raises(ValueError):
        parse_answer_evaluation('{"score": "great", "feedback": "x"}')


def test_final_evaluation_requires_summary_and_score():
    with pytest.raises(ValueError):
        parse_final_evaluation('{"summary": "ok"}', FILL_STRENGTHS, FILL_WEAKNESSES)


def test_final_evaluation_snake_case_and_blank_items():
    raw = json.dumps({"total_score": -4, "summary": "Weak", "strengths": ["", "  ", "Honest"],
                      "weaknesses": []})

    evaluation = parse_final_evaluation(raw, FILL_STRENGTHS, FILL_WEAKNESSES)

    assert evaluation.total_score == 0
    assert evaluation.strengths == ["Honest", "Good communication", "Solid foundation"]
    assert evaluation.weaknesses == FILL_WEAKNESSES


def test_non_finite_scores_are_rejected():
    with pytest.raises(ValueError):
        parse_answer_evaluation('{"score": -Infinity, "feedback": "x"}')
    with pytest.raises(ValueError):
        parse_final_evaluation('{"totalScore": NaN, "summary": "x"}', FILL_STRENGTHS, FILL_WEAKNESSES)
