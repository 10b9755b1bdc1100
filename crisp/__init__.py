"""
Crisp: AI-assisted mock interviews.

Upload a résumé, answer six generated questions against the clock and get
scored feedback; interviewers browse aggregated candidate results.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.controller import InterviewController
from .interview.gateway import InterviewGateway
from .interview.models import CandidateDocument, InterviewSession, CandidateProfile

__all__ = [
    "InterviewController", "InterviewGateway",
    "CandidateDocument", "InterviewSession", "CandidateProfile",
]
