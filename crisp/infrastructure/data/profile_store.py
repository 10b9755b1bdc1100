"""
Per-candidate profile files.

Each candidate profile is exported to its own JSON file so interviewer
reports can be read or shared without loading the whole application state.
"""
import os
import json
import logging
from typing import Dict, List, Optional, Any

import numpy as np

from ...interview.models import CandidateProfile

logger = logging.getLogger("profile_store")


class ProfileStore:
    """
    Manages candidate profile files in one directory, one JSON file per candidate.
    """

    def __init__(self, profiles_dir: str = "./_crisp/profiles"):
        self.profiles_dir = profiles_dir
        self.profiles: Dict[str, CandidateProfile] = {}

        os.makedirs(self.profiles_dir, exist_ok=True)
        self.load_all_profiles()

    def _get_profile_path(self, candidate_id: str) -> str:
        safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in candidate_id)
        return os.path.join(self.profiles_dir, f"{safe_id}.json")

    def load_all_profiles(self) -> None:
        """Load every profile file in the directory."""
        for filename in sorted(os.listdir(self.profiles_dir)):
            if not filename.endswith(".json"):
                continue
            profile = self._read(os.path.join(self.profiles_dir, filename))
            if profile:
                self.profiles[profile.id] = profile
        logger.info("Loaded %d candidate profiles", len(self.profiles))

    def _read(self, path: str) -> Optional[CandidateProfile]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return CandidateProfile.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to load profile %s: %s", path, e)
            return None

    def load_profile(self, candidate_id: str) -> Optional[CandidateProfile]:
        """Re-read one profile from disk, returning None when absent or unreadable."""
        path = self._get_profile_path(candidate_id)
        if not os.path.exists(path):
            return None
        profile = self._read(path)
        if profile:
            self.profiles[profile.id] = profile
        return profile

    def save_profile(self, profile: CandidateProfile) -> None:
        """Write one profile, replacing any previous export."""
        self.profiles[profile.id] = profile
        path = self._get_profile_path(profile.id)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(profile.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info("Saved profile for candidate %s (%d sessions)", profile.id, profile.total_sessions)

    def get_profile_info(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        """Summary of a candidate suitable for a report row."""
        profile = self.profiles.get(candidate_id)
        if profile is None:
            return None

        info: Dict[str, Any] = {
            "candidate_id": profile.id,
            "name": profile.name or "Unknown",
            "email": profile.email,
            "sessions": profile.total_sessions,
            "average_score": profile.average_score,
            "last_interview_date": profile.last_interview_date,
        }

        completed = [s for s in profile.sessions if s.total_score is not None]
        if completed:
            recent = completed[-3:]
            info.update({
                "recent_scores": [s.total_score for s in recent],
                "avg_recent_score": float(np.mean([s.total_score for s in recent])),
                "latest_summary": recent[-1].summary,
            })
        return info

    def list_all_profiles(self) -> List[Dict[str, Any]]:
        return [info for candidate_id in self.profiles
                if (info := self.get_profile_info(candidate_id)) is not None]
