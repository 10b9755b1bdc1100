import pytest

from crisp.interview.aggregator import (
    record_session, recompute_stats, upsert_profile, find_profile, search_profiles,
    sort_profiles, score_band,
)
from crisp.interview.models import CandidateProfile

from helpers import make_session


def test_average_and_last_date():
    profiles = record_session([], "c1", make_session("s1", total_score=80, completed_at=2000))
    profiles = record_session(profiles, "c1", make_session("s2", total_score=60, completed_at=3000))

    profile = find_profile(profiles, "c1")
    assert profile.total_sessions == 2
    assert profile.average_score == 70
    assert profile.last_interview_date == 3000


def test_profile_created_from_document():
    profile = record_session([], "c1", make_session(total_score=50))[0]

    assert profile.name == "Jane Marie Doe"
    assert profile.email == "jane.doe@example.com"
    assert profile.phone == "(555) 123-4567"


def test_recording_same_session_twice_does_not_double_count():
    session = make_session(total_score=80)
    profiles = record_session([], "c1", session)

    profiles = record_session(profiles, "c1", session)

    assert profiles[0].total_sessions == 1


def test_unscored_sessions_do_not_affect_average():
    profiles = record_session([], "c1", make_session("s1", total_score=90))
    profiles = record_session(profiles, "c1", make_session("s2", created_at=5000))

    assert profiles[0].total_sessions == 2
    assert profiles[0].average_score == 90
    assert profiles[0].last_interview_date == 5000


def test_recorded_session_is_a_copy():
    session = make_session(total_score=80)
    profiles = record_session([], "c1", session)

    session.answers[0].score = 1

    assert profiles[0].sessions[0].answers[0].score == 7


def test_upsert_keeps_known_fields():
    profiles = upsert_profile([], "c1", "Jane", "jane@x.io", "555")
    profiles = record_session(profiles, "c1", make_session(total_score=80))

    profiles = upsert_profile(profiles, "c1", "", "new@x.io")

    profile = profiles[0]
    assert (profile.name, profile.email, profile.phone) == ("Jane", "new@x.io", "555")
    assert profile.total_sessions == 1


def test_recompute_on_empty_profile():
    profile = recompute_stats(CandidateProfile(id="c1", name="A", email="a@x.io", total_sessions=4))

    assert profile.total_sessions == 0
    assert profile.average_score is None
    assert profile.last_interview_date is None


@pytest.fixture
def roster():
    return [
        CandidateProfile(id="1", name="bob Stone", email="bob@corp.io", total_sessions=1, average_score=55.0,
                         last_interview_date=300),
        CandidateProfile(id="2", name="Alice Hart", email="alice@lab.io", total_sessions=3, average_score=None,
                         last_interview_date=None),
        CandidateProfile(id="3", name="Carol Diaz", email="carol@corp.io", total_sessions=2, average_score=91.5,
                         last_interview_date=100),
    ]


def test_search_matches_name_or_email(roster):
    assert [p.id for p in search_profiles(roster, "CORP")] == ["1", "3"]
    assert [p.id for p in search_profiles(roster, "hart")] == ["2"]
    assert len(search_profiles(roster, "  ")) == 3


def test_sort_puts_missing_values_last(roster):
    assert [p.id for p in sort_profiles(roster, "average_score")] == ["3", "1", "2"]
    assert [p.id for p in sort_profiles(roster, "average_score", descending=False)] == ["1", "3", "2"]
    assert [p.id for p in sort_profiles(roster, "last_interview_date")] == ["1", "3", "2"]


def test_sort_by_name_ignores_case(roster):
    assert [p.id for p in sort_profiles(roster, "name", descending=False)] == ["2", "1", "3"]


def test_sort_rejects_unknown_field(roster):
    with pytest.raises(ValueError):
        sort_profiles(roster, "email")


@pytest.mark.parametrize("score, band", [
    (None, "unscored"), (95, "excellent"), (80, "excellent"), (79.9, "good"),
    (60, "good"), (45, "average"), (39, "poor"),
])
def test_score_band(score, band):
    assert score_band(score) == band
