"""
Account management for interviewers and interviewees.
"""

from .store import LocalIdentityStore

__all__ = ["LocalIdentityStore"]
