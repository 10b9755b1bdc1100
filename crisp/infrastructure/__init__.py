"""Infrastructure components for the Crisp interview engine.

This module contains low-level technical components: the Gemini REST
client, résumé readers, local accounts and JSON persistence.
"""

# LLM infrastructure
from .llm import GeminiRestClient

# Document readers
from .documents import read_document, validate_upload

__all__ = [
    # LLM client
    "GeminiRestClient",

    # Documents
    "read_document", "validate_upload",
]
