"""LLM infrastructure: Gemini REST client and JSON recovery helpers."""

from .client import GeminiRestClient, parse_json_text, strip_code_fences

__all__ = ["GeminiRestClient", "parse_json_text", "strip_code_fences"]
