"""
Gemini REST client for LLM interactions.

Talks to the Generative Language API with an API key, or to Vertex AI with
Google credentials when no key is configured.
"""
import json
import logging
import re
from typing import Optional, Dict, Any, List

import requests
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import (
    GEMINI_BASE_URL, VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT,
    MAX_OUTPUT_TOKENS, TOP_K, TOP_P, Config,
)
from ...errors import LLMError

logger = logging.getLogger("llm_client")

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?|\n?```")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model tends to wrap JSON in."""
    return _CODE_FENCE.sub("", text).strip()


class GeminiRestClient:
    """REST-based client for Gemini models."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 model: str = MODEL_NAME,
                 project: Optional[str] = None,
                 location: str = VERTEX_LOCATION,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT,
                 session: Optional[requests.Session] = None):
        if not api_key and not project:
            raise ValueError("Either api_key or project is required")
        self.api_key = api_key
        self.model = model
        self.project = project
        self.location = location
        self.credentials_json = credentials_json
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token: Optional[str] = None

    @classmethod
    def from_config(cls, config: Config) -> "GeminiRestClient":
        return cls(
            api_key=config.gemini_api_key,
            model=config.model_name,
            project=config.google_cloud_project,
            location=config.vertex_location,
            credentials_json=config.google_application_credentials,
            timeout=config.llm_timeout,
        )

    @property
    def uses_vertex(self) -> bool:
        return not self.api_key

    @property
    def endpoint(self) -> str:
        if self.uses_vertex:
            return (
                f"https://{self.location}-aiplatform.googleapis.com/v1/projects/{self.project}"
                f"/locations/{self.location}/publishers/google/models/{self.model}:generateContent"
            )
        return f"{GEMINI_BASE_URL}/{self.model}:generateContent"

    def _refresh_token(self):
        """Refresh the OAuth token for Vertex API calls."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
        else:
            creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])

        auth_req = google.auth.transport.requests.Request()
        creds.refresh(auth_req)
        self._token = creds.token

    def _request_auth(self) -> tuple:
        """Build (headers, params) for the configured authentication mode."""
        headers = {"Content-Type": "application/json"}
        params: Dict[str, str] = {}
        if self.uses_vertex:
            if not self._token:
                self._refresh_token()
            headers["Authorization"] = f"Bearer {self._token}"
        else:
            params["key"] = self.api_key
        return headers, params

    def generate_content(
        self,
        prompt_text: str,
        temperature: float = 0.7,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        top_k: Optional[int] = TOP_K,
        top_p: Optional[float] = TOP_P,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """
        Generate content for a single prompt.

        Raises:
            LLMError: On transport failure, non-2xx status or an unusable body
        """
        body: Dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt_text}],
                }
            ],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }

        if top_k is not None:
            body["generationConfig"]["topK"] = int(top_k)
        if top_p is not None:
            body["generationConfig"]["topP"] = float(top_p)
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        try:
            headers, params = self._request_auth()
            resp = self.session.post(
                self.endpoint, headers=headers, params=params, json=body, timeout=self.timeout
            )
        except (requests.RequestException, google.auth.exceptions.GoogleAuthError) as e:
            raise LLMError(f"Gemini request failed: {e}") from e

        if resp.status_code >= 400:
            raise LLMError(f"Gemini API error {resp.status_code}: {resp.text[:500]}")

        try:
            resp_json = resp.json()
        except ValueError as e:
            raise LLMError(f"Gemini returned a non-JSON body: {e}") from e

        return self._parse_response_text(resp_json)

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Extract candidates[0].content.parts[*].text from a response.

        Raises:
            LLMError: If the response carries no text part
        """
        cands = resp_json.get("candidates") if isinstance(resp_json, dict) else None
        if cands and isinstance(cands, list) and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") if isinstance(content, dict) else None
            if parts and isinstance(parts, list):
                # Find first part with "text"
                for p in parts:
                    if isinstance(p, dict) and isinstance(p.get("text"), str):
                        return p["text"]

        raise LLMError(
            "Invalid response from Gemini API: " + json.dumps(resp_json, separators=(",", ":"))[:500]
        )


def parse_json_text(text: str) -> Any:
    """
    Parse model output as JSON after stripping code fences.

    Falls back to the outermost object or array embedded in the text.

    Raises:
        LLMError: If no JSON value can be recovered
    """
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("json.loads failed: %s", e)

    # Try the bracket pair that opens first, so an object holding a list stays an object
    pairs = sorted(((cleaned.find(o), o, c) for o, c in (("[", "]"), ("{", "}"))), key=lambda p: p[0])
    for _, open_ch, close_ch in pairs:
        start = cleaned.find(open_ch)
        end = cleaned.rfind(close_ch)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError as e2:
                logger.warning("Substring parse also failed: %s", e2)

    raise LLMError(f"LLM did not return valid JSON: {text[:500]}")
