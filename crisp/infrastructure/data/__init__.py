"""
Data management infrastructure for application state and candidate profiles.
"""

from .state_store import StateStore
from .profile_store import ProfileStore

__all__ = [
    'StateStore',
    'ProfileStore'
]
