"""
Profile aggregation.

Folds interview sessions into per-candidate statistics. All functions are
pure: they take profiles and return new ones, so reducers can use them
directly. Statistics are always recomputed from the full session list.
"""
from dataclasses import replace
from typing import List, Optional

import numpy as np

from .models import CandidateProfile, InterviewSession

SORT_FIELDS = ("name", "total_sessions", "average_score", "last_interview_date")


def recompute_stats(profile: CandidateProfile) -> CandidateProfile:
    """Return a copy of the profile with derived fields rebuilt from its sessions."""
    scores = [s.total_score for s in profile.sessions if s.total_score is not None]
    dates = [s.last_activity for s in profile.sessions]
    return replace(
        profile,
        total_sessions=len(profile.sessions),
        average_score=float(np.mean(scores)) if scores else None,
        last_interview_date=max(dates) if dates else None,
    )


def upsert_profile(profiles: List[CandidateProfile], candidate_id: str, name: str,
                   email: str, phone: Optional[str] = None) -> List[CandidateProfile]:
    """
    Create a profile or refresh its contact fields, keeping session history.

    Empty name/email/phone values never overwrite known ones.
    """
    result = []
    found = False
    for profile in profiles:
        if profile.id == candidate_id:
            found = True
            profile = replace(
                profile,
                name=name or profile.name,
                email=email or profile.email,
                phone=phone or profile.phone,
            )
        result.append(profile)
    if not found:
        result.append(CandidateProfile(id=candidate_id, name=name or "", email=email or "", phone=phone))
    return result


def record_session(profiles: List[CandidateProfile], candidate_id: str, session: InterviewSession,
                   name: str = "", email: str = "", phone: Optional[str] = None) -> List[CandidateProfile]:
    """
    Add a session to a candidate's history and recompute their statistics.

    The profile is created when absent. A session whose id is already in the
    history replaces the recorded copy, so recording twice never double-counts.
    """
    if not any(p.id == candidate_id for p in profiles):
        document = session.document
        profiles = upsert_profile(
            profiles, candidate_id,
            name or document.name or "", email or document.email or "", phone or document.phone,
        )

    result = []
    for profile in profiles:
        if profile.id == candidate_id:
            sessions = list(profile.sessions)
            for i, existing in enumerate(sessions):
                if existing.id == session.id:
                    sessions[i] = session.copy()
                    break
            else:
                sessions.append(session.copy())
            profile = recompute_stats(replace(profile, sessions=sessions))
        result.append(profile)
    return result


def find_profile(profiles: List[CandidateProfile], candidate_id: str) -> Optional[CandidateProfile]:
    for profile in profiles:
        if profile.id == candidate_id:
            return profile
    return None


def search_profiles(profiles: List[CandidateProfile], text: str) -> List[CandidateProfile]:
    """Case-insensitive substring match on name or email."""
    needle = text.strip().lower()
    if not needle:
        return list(profiles)
    return [p for p in profiles if needle in p.name.lower() or needle in p.email.lower()]


def sort_profiles(profiles: List[CandidateProfile], field: str = "average_score",
                  descending: bool = True) -> List[CandidateProfile]:
    """
    Sort by one of SORT_FIELDS. Profiles without a value always go last.

    Raises:
        ValueError: If field is not sortable
    """
    if field not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {field!r}; choose one of {', '.join(SORT_FIELDS)}")

    def value(profile: CandidateProfile):
        v = getattr(profile, field)
        return v.lower() if isinstance(v, str) else v

    present = [p for p in profiles if value(p) is not None]
    missing = [p for p in profiles if value(p) is None]
    return sorted(present, key=value, reverse=descending) + missing


def score_band(score: Optional[float]) -> str:
    if score is None:
        return "unscored"
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "average"
    return "poor"
