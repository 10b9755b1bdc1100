import asyncio

import pytest

from crisp.errors import AuthError, InterviewError
from crisp.infrastructure.data import StateStore, ProfileStore
from crisp.infrastructure.identity import LocalIdentityStore
from crisp.interview import reducers as r
from crisp.interview.controller import InterviewController
from crisp.interview.events import EventType
from crisp.interview.gateway import InterviewGateway
from crisp.interview.models import UserRole
from crisp.interview.reducers import Action, AppState, root_reducer
from crisp.interview.testing import (
    MockLLMClient, FailingLLMClient, BlockingLLMClient, questions_json, assert_valid_session,
    create_mock_gateway,
)

from helpers import make_session, make_answer

FAST = 0.01
SLOW = 30.0
ANSWER = "Use async await with a promise chain to handle the API call."


def make_controller(client=None, tick=SLOW, **kwargs):
    return InterviewController(create_mock_gateway(client), tick_seconds=tick, **kwargs)


def record_events(controller):
    events = []
    controller.event_bus.subscribe_all(events.append)
    return events


def of_type(events, event_type):
    return [e for e in events if e.event_type == event_type]


async def answer_all(controller, text=ANSWER):
    while controller.current_question is not None:
        controller.stage_answer(text)
        await controller.submit_answer()


def test_full_interview(document):
    client = MockLLMClient()

    async def scenario():
        controller = make_controller(client)
        events = record_events(controller)
        session = await controller.start_interview(document, candidate_id="c1")
        assert session.questions[0].id == "q1"
        assert controller.timer_state.is_running
        await answer_all(controller)
        await controller.shutdown()
        return controller, events

    controller, events = asyncio.run(scenario())

    session = controller.session
    assert_valid_session(session)
    assert session.is_completed
    assert session.total_score == 82
    assert session.strengths == ["Clear", "Accurate", "Concise"]
    assert [a.score for a in session.answers] == [8] * 6
    assert all(a.time_spent == 0 for a in session.answers)
    assert not controller.is_active

    profile = controller.state.candidates.profiles[0]
    assert (profile.id, profile.name, profile.total_sessions, profile.average_score) == ("c1", "Jane Marie Doe", 1, 82)

    assert "Score: 8/10" in client.calls("final")[0]["prompt"]
    assert len(of_type(events, EventType.ANSWER_EVALUATED)) == 6
    completed = of_type(events, EventType.INTERVIEW_COMPLETED)
    assert len(completed) == 1 and completed[0].data["total_score"] == 82
    assert controller.metrics.get_metrics()["fallbacks_used"] == 0


def test_start_validation(document):
    async def scenario():
        controller = make_controller()
        with pytest.raises(InterviewError, match="upload a resume"):
            await controller.start_interview(None, candidate_id="c1")
        with pytest.raises(InterviewError, match="sign in"):
            await controller.start_interview(document)
        await controller.start_interview(document, candidate_id="c1")
        with pytest.raises(InterviewError, match="already in progress"):
            await controller.start_interview(document, candidate_id="c1")
        await controller.shutdown()

    asyncio.run(scenario())


def test_submit_without_active_question_is_noop():
    async def scenario():
        controller = make_controller()
        assert await controller.submit_answer("hello") is None
        with pytest.raises(InterviewError, match="no interview to complete"):
            await controller.complete_interview()

    asyncio.run(scenario())


def test_expiry_auto_submits_staged_answer(document):
    client = MockLLMClient({"questions": [questions_json(time_limit=2)]})

    async def scenario():
        controller = make_controller(client, tick=FAST)
        events = record_events(controller)
        await controller.start_interview(document, candidate_id="c1")
        controller.stage_answer("Closures capture the enclosing scope.")
        await asyncio.sleep(FAST * 12)
        await controller.shutdown()
        return controller, events

    controller, events = asyncio.run(scenario())

    answer = controller.session.answers[0]
    assert answer.text == "Closures capture the enclosing scope."
    assert answer.time_spent == 2
    assert answer.score == 8
    submitted = of_type(events, EventType.ANSWER_SUBMITTED)
    assert submitted[0].data["auto_submitted"] is True


def test_expiry_with_nothing_staged_keeps_question_open(document):
    client = MockLLMClient({"questions": [questions_json(time_limit=2)]})

    async def scenario():
        controller = make_controller(client, tick=FAST)
        events = record_events(controller)
        await controller.start_interview(document, candidate_id="c1")
        await asyncio.sleep(FAST * 12)
        assert controller.session.answers == []
        assert controller.current_question.id == "q1"
        answer = await controller.submit_answer("Late answer")
        await controller.shutdown()
        return answer, events

    answer, events = asyncio.run(scenario())

    assert answer.time_spent == 2
    timed_out = of_type(events, EventType.QUESTION_TIMED_OUT)
    assert [e.data["question_id"] for e in timed_out][:1] == ["q1"]
    assert of_type(events, EventType.ANSWER_SUBMITTED)[0].data["auto_submitted"] is False


def test_evaluation_for_reset_session_is_dropped(document):
    client = BlockingLLMClient()

    async def scenario():
        controller = make_controller(client)
        events = record_events(controller)
        await controller.start_interview(document, candidate_id="c1")
        await controller.submit_answer("First answer")
        assert await asyncio.to_thread(client.started.wait, 5)

        controller.reset()
        fresh = await controller.start_interview(document, candidate_id="c1")
        client.release()
        await controller.shutdown()
        return controller, fresh, events

    controller, fresh, events = asyncio.run(scenario())

    assert controller.session.id == fresh.id
    assert controller.session.answers == []
    assert of_type(events, EventType.ANSWER_EVALUATED) == []


def test_model_outage_completes_with_fallbacks(document):
    client = FailingLLMClient()

    async def scenario():
        controller = make_controller(client)
        await controller.start_interview(document, candidate_id="c1")
        await answer_all(controller)
        await controller.shutdown()
        return controller

    controller = asyncio.run(scenario())

    session = controller.session
    assert [q.text for q in session.questions][0] == "What is the difference between props and state in React?"
    assert [a.score for a in session.answers] == [6, 6, 5, 5, 4, 4]
    assert session.total_score == 50
    assert "unavailable" in session.summary
    assert controller.metrics.get_metrics()["fallbacks_used"] == 9


def test_pause_and_resume_keep_remaining_time(document):
    async def scenario():
        controller = make_controller(tick=FAST)
        events = record_events(controller)
        await controller.start_interview(document, candidate_id="c1")
        await asyncio.sleep(FAST * 6)

        controller.pause()
        remaining = controller.timer_state.time_remaining
        assert not controller.is_active
        controller.stage_answer("ignored while paused")
        assert controller.staged_answer == ""
        assert await controller.submit_answer("ignored") is None
        with pytest.raises(InterviewError, match="Resume the interview"):
            await controller.complete_interview()

        assert await controller.resume()
        resumed_remaining = controller.timer_state.time_remaining
        await controller.shutdown()
        return remaining, resumed_remaining, events

    remaining, resumed_remaining, events = asyncio.run(scenario())

    assert remaining < 60
    assert resumed_remaining == remaining
    assert len(of_type(events, EventType.INTERVIEW_RESUMED)) == 1


def test_rehydrated_session_resumes_where_it_left_off(document, tmp_path):
    state_path = str(tmp_path / "state.json")

    async def first_run():
        controller = make_controller(state_store=StateStore(state_path))
        await controller.start_interview(document, candidate_id="c1")
        await controller.submit_answer("one")
        await controller.submit_answer("two")
        await controller.shutdown()

    async def second_run():
        controller = make_controller(state_store=StateStore(state_path),
                                     profile_store=ProfileStore(str(tmp_path / "profiles")))
        assert controller.has_resumable_session()
        assert not controller.is_active
        assert controller.session.current_question_index == 2
        assert [a.score for a in controller.session.answers] == [8, 8]

        assert await controller.resume()
        await answer_all(controller)
        await controller.shutdown()
        return controller

    asyncio.run(first_run())
    controller = asyncio.run(second_run())

    assert controller.session.is_completed
    assert len(controller.session.answers) == 6
    assert StateStore(state_path).load().interview.current_session.is_completed
    assert ProfileStore(str(tmp_path / "profiles")).profiles["c1"].total_sessions == 1


def test_resume_with_all_answers_completes(tmp_path):
    store = StateStore(str(tmp_path / "state.json"))
    state = root_reducer(AppState(), Action(r.START_FULFILLED, make_session()))
    for question_id in ("q1", "q2", "q3"):
        state = root_reducer(state, Action(r.ANSWER_SUBMITTED, make_answer(question_id)))
    store.save(state)

    async def scenario():
        controller = make_controller(state_store=store)
        await controller.resume()
        return controller

    controller = asyncio.run(scenario())

    assert controller.session.is_completed
    assert controller.session.total_score == 82
    assert controller.state.candidates.profiles[0].total_sessions == 1


def test_resume_with_nothing_to_resume():
    assert asyncio.run(make_controller().resume()) is False


def test_auth_through_controller(document, tmp_path):
    identity = LocalIdentityStore(str(tmp_path / "users.json"), iterations=1000)

    async def scenario():
        controller = make_controller(identity_store=identity)
        user = controller.sign_up("jane@example.com", "secret1", name="Jane")
        session = await controller.start_interview(document)
        await controller.shutdown()
        return controller, user, session

    controller, user, session = asyncio.run(scenario())

    assert controller.state.auth.user == user
    assert session.candidate_id == user.id
    controller.sign_out()
    assert controller.check_auth_state() is None
    with pytest.raises(AuthError):
        controller.sign_in("jane@example.com", "wrong-password")
    assert controller.state.auth.error == "Invalid email or password."

    again = controller.sign_in("jane@example.com", "secret1")
    assert again.role == UserRole.INTERVIEWEE
    assert controller.state.auth.error is None


def test_auth_requires_identity_store():
    with pytest.raises(AuthError):
        make_controller().sign_in("a@b.co", "secret1")


def test_auto_submit_overtaken_by_manual_submit_is_dropped(document):
    async def scenario():
        controller = make_controller()
        events = record_events(controller)
        session = await controller.start_interview(document, candidate_id="c1")
        first = session.questions[0]
        controller.stage_answer("typed before the deadline")

        # Expiry and a manual submit land in the same loop iteration
        controller._on_timer_expired(session.id, first)
        await controller.submit_answer("manual answer for q1")
        await asyncio.sleep(0.05)
        await controller.shutdown()
        return controller, events

    controller, events = asyncio.run(scenario())

    answers = controller.session.answers
    assert [(a.question_id, a.text) for a in answers] == [("q1", "manual answer for q1")]
    assert controller.current_question.id == "q2"
    assert len(of_type(events, EventType.ANSWER_SUBMITTED)) == 1


def test_submit_for_question_that_is_no_longer_current(document):
    async def scenario():
        controller = make_controller()
        await controller.start_interview(document, candidate_id="c1")
        await controller.submit_answer("first")
        skipped = await controller.submit_answer("late", question_id="q1")
        await controller.shutdown()
        return controller, skipped

    controller, skipped = asyncio.run(scenario())

    assert skipped is None
    assert len(controller.session.answers) == 1


def test_controller_leaves_gateway_bus_alone():
    gateway = InterviewGateway(MockLLMClient())

    controller = InterviewController(gateway)

    assert gateway.event_bus is None
    assert controller.event_bus is not None


def test_controller_shares_gateway_bus():
    gateway = create_mock_gateway()

    controller = InterviewController(gateway)

    assert controller.event_bus is gateway.event_bus
