import asyncio
import json

import pytest

from crisp.errors import LLMError
from crisp.interview.events import InterviewEventBus, EventType
from crisp.interview.gateway import (
    InterviewGateway, fallback_score, fallback_feedback, fallback_questions,
    fallback_final_evaluation, is_gibberish,
)
from crisp.interview.models import Answer, Difficulty, InterviewSession, Question
from crisp.interview.testing import (
    MockLLMClient, FailingLLMClient, questions_json, evaluation_json, final_evaluation_json,
)


def make_question(difficulty=Difficulty.MEDIUM, qid="q1"):
    return Question(id=qid, text="Explain closures.", difficulty=difficulty, time_limit=60, category="JS")


def make_answer(text, qid="q1"):
    return Answer(question_id=qid, text=text, time_spent=20, timestamp=1)


def make_session(document, scores):
    questions = [make_question(qid=f"q{i}") for i in range(len(scores))]
    answers = [Answer(question_id=f"q{i}", text="answer", time_spent=5, timestamp=1, score=s)
               for i, s in enumerate(scores)]
    return InterviewSession(id="s1", candidate_id="c1", document=document,
                            questions=questions, answers=answers,
                            current_question_index=len(answers))


# Heuristic fallback

def test_random_letters_score_zero():
    assert fallback_score("asdkj", Difficulty.MEDIUM) == 0
    assert is_gibberish("asdkj")


def test_short_unpunctuated_word_salad_scores_zero():
    assert fallback_score("hello world foo", Difficulty.EASY) == 0


def test_long_technical_easy_answer():
    text = "react " + "x" * 244
    assert len(text) == 250

    assert fallback_score(text, Difficulty.EASY) == 8


def test_length_buckets_and_difficulty_adjustment():
    assert fallback_score("The answer is " + "x" * 36, Difficulty.MEDIUM) == 4
    assert fallback_score("Use a cache.", Difficulty.HARD) == 2
    assert fallback_score("ok", Difficulty.HARD) == 1


def test_punctuated_short_answer_is_not_gibberish():
    assert not is_gibberish("Yes, it does.")


def test_feedback_templates_by_band():
    assert "random/absurd" in fallback_feedback(0, Difficulty.EASY)
    assert "easy level" in fallback_feedback(8, Difficulty.EASY)
    assert fallback_feedback(6, Difficulty.HARD).startswith("Good answer")
    assert fallback_feedback(4, Difficulty.HARD).startswith("Your answer shows some understanding")
    assert fallback_feedback(2, Difficulty.HARD).startswith("Your answer needs improvement")


def test_fallback_question_set_is_balanced():
    questions = fallback_questions()

    assert len(questions) == 6
    counts = {d: sum(q.difficulty == d for q in questions) for d in Difficulty}
    assert counts == {Difficulty.EASY: 2, Difficulty.MEDIUM: 2, Difficulty.HARD: 2}
    assert questions[0].text == "What is the difference between props and state in React?"


def test_fallback_final_score_is_mean_times_ten(document):
    evaluation = fallback_final_evaluation(make_session(document, [8, 6, None]))

    assert evaluation.total_score == 47
    assert len(evaluation.strengths) == 3
    assert len(evaluation.weaknesses) == 3


def test_fallback_final_score_without_answers(document):
    assert fallback_final_evaluation(make_session(document, [])).total_score == 0


# Question generation

def test_generate_questions_uses_analysis_then_question_prompt(document, llm_client):
    gateway = InterviewGateway(llm_client)

    questions = asyncio.run(gateway.generate_questions(document))

    assert [q.id for q in questions] == ["q1", "q2", "q3", "q4", "q5", "q6"]
    kinds = [r["kind"] for r in llm_client.request_history]
    assert kinds == ["analysis", "questions"]
    assert llm_client.calls("analysis")[0]["temperature"] == 0.3
    assert llm_client.calls("questions")[0]["temperature"] == 0.7
    assert "Jane Marie Doe" in llm_client.calls("questions")[0]["prompt"]


def test_generate_questions_strips_code_fences(document):
    client = MockLLMClient({"questions": ["```json\n" + questions_json(time_limit=45) + "\n```"]})

    questions = asyncio.run(InterviewGateway(client).generate_questions(document))

    assert len(questions) == 6
    assert all(q.time_limit == 45 for q in questions)


def test_missing_question_fields_get_defaults(document):
    raw = json.dumps([{"text": f"Question {i}"} for i in range(5)] + [{"id": 7}])
    client = MockLLMClient({"questions": [raw]})

    questions = asyncio.run(InterviewGateway(client).generate_questions(document))

    assert questions[0].id == "q_1"
    assert questions[0].difficulty == Difficulty.MEDIUM
    assert questions[0].time_limit == 90
    assert questions[0].category == "General"
    assert questions[5].id == "7"
    assert questions[5].text == "Question not available"


@pytest.mark.parametrize("response", [
    "I cannot help with that.",
    "[]",
    questions_json(count=5),
    json.dumps({"questions": "none"}),
])
def test_unusable_question_responses_fall_back(document, response):
    bus = InterviewEventBus()
    events = []
    bus.subscribe(EventType.FALLBACK_USED, events.append)
    gateway = InterviewGateway(MockLLMClient({"questions": [response]}), event_bus=bus)

    questions = asyncio.run(gateway.generate_questions(document, session_id="s1"))

    assert [q.text for q in questions] == [q.text for q in fallback_questions()]
    assert events and events[0].data["operation"] == "generate_questions"
    assert events[0].session_id == "s1"


def test_analysis_failure_uses_basic_analysis(document):
    client = MockLLMClient({"analysis": [LLMError("timeout")]})

    questions = asyncio.run(InterviewGateway(client).generate_questions(document))

    assert len(questions) == 6
    prompt = client.calls("questions")[0]["prompt"]
    assert "Basic resume analysis: Jane Marie Doe with experience in software development." in prompt


def test_total_outage_never_raises(document):
    client = FailingLLMClient()
    gateway = InterviewGateway(client)

    questions = asyncio.run(gateway.generate_questions(document))

    assert len(questions) == 6
    assert client.call_count == 2


# Answer evaluation

def test_evaluate_answer_parses_and_clamps():
    client = MockLLMClient({"evaluation": [evaluation_json(score=12, feedback="Great")]})

    evaluation = asyncio.run(InterviewGateway(client).evaluate_answer(make_question(), make_answer("text")))

    assert evaluation.score == 10
    assert evaluation.feedback == "Great"
    assert client.calls("evaluation")[0]["temperature"] == 0.2


def test_evaluate_answer_rounds_half_up():
    client = MockLLMClient({"evaluation": [evaluation_json(score=6.5)]})

    evaluation = asyncio.run(InterviewGateway(client).evaluate_answer(make_question(), make_answer("text")))

    assert evaluation.score == 7


def test_evaluate_answer_defaults_missing_fields():
    client = MockLLMClient({"evaluation": ['{"verdict": "fine"}']})

    evaluation = asyncio.run(InterviewGateway(client).evaluate_answer(make_question(), make_answer("text")))

    assert evaluation.score == 5
    assert evaluation.feedback.startswith("Evaluation completed.")


def test_evaluate_answer_falls_back_to_heuristic():
    gateway = InterviewGateway(FailingLLMClient())

    evaluation = asyncio.run(gateway.evaluate_answer(make_question(), make_answer("asdkj")))

    assert evaluation.score == 0
    assert "random/absurd" in evaluation.feedback


def test_evaluation_prompt_contains_rubric_and_answer():
    client = MockLLMClient()

    asyncio.run(InterviewGateway(client).evaluate_answer(make_question(Difficulty.HARD), make_answer("Closures capture scope")))

    prompt = client.calls("evaluation")[0]["prompt"]
    assert "Technical Accuracy (40%)" in prompt
    assert '"Closures capture scope"' in prompt
    assert "For hard difficulty questions" in prompt


# Final evaluation

def test_final_evaluation_clamps_and_pads(document):
    raw = final_evaluation_json(total_score=150, strengths=["Clear"], weaknesses=["A", "B", "C", "D"])
    client = MockLLMClient({"final": [raw]})

    evaluation = asyncio.run(InterviewGateway(client).generate_final_evaluation(make_session(document, [9, 9])))

    assert evaluation.total_score == 100
    assert evaluation.strengths == ["Clear", "Good communication", "Solid foundation"]
    assert evaluation.weaknesses == ["A", "B", "C"]


def test_final_evaluation_prompt_lists_answers(document):
    client = MockLLMClient()

    asyncio.run(InterviewGateway(client).generate_final_evaluation(make_session(document, [7, None])))

    prompt = client.calls("final")[0]["prompt"]
    assert "Q1 (medium): Explain closures.\nA1: answer\nScore: 7/10" in prompt
    assert "Score: N/A/10" in prompt


def test_final_evaluation_missing_summary_falls_back(document):
    client = MockLLMClient({"final": ['{"totalScore": 80}']})

    evaluation = asyncio.run(InterviewGateway(client).generate_final_evaluation(make_session(document, [6, 8])))

    assert evaluation.total_score == 70
    assert "unavailable" in evaluation.summary


@pytest.mark.parametrize("raw", ['{"score": Infinity, "feedback": "x"}', '{"score": NaN, "feedback": "x"}'])
def test_non_finite_answer_score_falls_back(raw):
    bus = InterviewEventBus()
    events = []
    bus.subscribe(EventType.FALLBACK_USED, events.append)
    gateway = InterviewGateway(MockLLMClient({"evaluation": [raw]}), event_bus=bus)

    evaluation = asyncio.run(gateway.evaluate_answer(make_question(), make_answer("Closures keep scope alive.")))

    assert 1 <= evaluation.score <= 10
    assert events[0].data["operation"] == "evaluate_answer"


def test_non_finite_total_score_falls_back(document):
    raw = '{"totalScore": Infinity, "summary": "x", "strengths": [], "weaknesses": []}'
    client = MockLLMClient({"final": [raw]})

    evaluation = asyncio.run(InterviewGateway(client).generate_final_evaluation(make_session(document, [6, 8])))

    assert evaluation.total_score == 70
    assert "unavailable" in evaluation.summary
