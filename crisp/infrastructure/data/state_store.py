"""
Persisted application state.

The whole AppState is written to one JSON file after every change so an
interrupted interview can be offered for resumption on the next run.
"""
import os
import json
import logging

from ...interview.reducers import AppState

logger = logging.getLogger("state_store")


class StateStore:
    """Loads and saves AppState as JSON."""

    def __init__(self, path: str):
        self.path = path
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

    def load(self) -> AppState:
        """
        Read the saved state.

        A missing file gives a fresh state; an unreadable one is logged and
        also gives a fresh state rather than blocking start-up.
        """
        if not os.path.exists(self.path):
            logger.info("No saved state at %s, starting fresh", self.path)
            return AppState()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            state = AppState.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to load state from %s: %s", self.path, e)
            return AppState()

        session = state.interview.current_session
        logger.info("Loaded state: user=%s profiles=%d session=%s",
                    state.auth.user.email if state.auth.user else None,
                    len(state.candidates.profiles),
                    session.id if session else None)
        return state

    def save(self, state: AppState) -> None:
        """Write the state, replacing the previous file atomically."""
        tmp_path = self.path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(state.to_dict(), f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)
        logger.debug("Saved state to %s", self.path)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.info("Removed saved state %s", self.path)

    @property
    def exists(self) -> bool:
        return os.path.exists(self.path)

