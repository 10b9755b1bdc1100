"""
Crisp Configuration System
==========================

This file contains ALL configuration for the Crisp interview engine.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError

logger = logging.getLogger("config")


# =============================================================================
# USER SETTINGS - Edit these to customize the interview
# =============================================================================

# REQUIRED: Gemini API key (or set GEMINI_API_KEY in the environment)
GEMINI_API_KEY = ""

# Optional: use Vertex AI with Google credentials instead of an API key
GOOGLE_CLOUD_PROJECT = None
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Model
MODEL_NAME = "gemini-2.0-flash"

# Interview settings
QUESTIONS_PER_INTERVIEW = 6
TIMER_TICK_SECONDS = 1.0
WORKDIR = "./_crisp"

# Logging
LOG_FILE = "./_crisp/crisp.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Generative Language API
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
VERTEX_LOCATION = "us-central1"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 2048
TOP_K = 40
TOP_P = 0.95
MIN_API_KEY_LENGTH = 20

# Per-call temperatures
ANALYSIS_TEMPERATURE = 0.3
QUESTION_TEMPERATURE = 0.7
EVALUATION_TEMPERATURE = 0.2
FINAL_EVALUATION_TEMPERATURE = 0.3

# Uploads
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
SUPPORTED_EXTENSIONS = (".pdf", ".docx")

# Persistence
STATE_FILE_NAME = "state.json"
USERS_FILE_NAME = "users.json"
PROFILES_DIR_NAME = "profiles"

# Password hashing
PBKDF2_ITERATIONS = 200_000

# Resume extraction
MAX_SKILLS = 20
MAX_EXPERIENCE = 10
MAX_EDUCATION = 5

TECH_KEYWORDS = (
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Go", "Rust", "PHP", "Ruby",
    "React", "Angular", "Vue", "Node.js", "Express", "Next.js", "Nuxt.js",
    "HTML", "CSS", "Sass", "Less", "Tailwind", "Bootstrap",
    "MongoDB", "PostgreSQL", "MySQL", "Redis", "Elasticsearch",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Jenkins", "Git",
    "REST", "GraphQL", "Microservices", "API", "JSON", "XML",
    "Agile", "Scrum", "DevOps", "CI/CD", "TDD", "BDD",
)

# Fallback answer scoring
TECHNICAL_TERMS = (
    "react", "javascript", "node", "api", "database", "component", "function",
    "variable", "async", "await", "promise", "hook", "state", "props",
)


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    gemini_api_key: Optional[str] = None
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    model_name: str = MODEL_NAME
    vertex_location: str = VERTEX_LOCATION
    llm_timeout: int = LLM_TIMEOUT
    questions_per_interview: int = QUESTIONS_PER_INTERVIEW
    timer_tick_seconds: float = TIMER_TICK_SECONDS
    workdir: str = WORKDIR
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def uses_vertex(self) -> bool:
        """True when calls go through Vertex AI instead of an API key."""
        return not self.gemini_api_key and bool(self.google_cloud_project)

    @property
    def state_file(self) -> str:
        return os.path.join(self.workdir, STATE_FILE_NAME)

    @property
    def users_file(self) -> str:
        return os.path.join(self.workdir, USERS_FILE_NAME)

    @property
    def profiles_dir(self) -> str:
        return os.path.join(self.workdir, PROFILES_DIR_NAME)


def validate_api_key(api_key: Optional[str]) -> str:
    """
    Reject a missing or obviously malformed Gemini API key before any request.

    Raises:
        ConfigError: If the key is missing or obviously malformed
    """
    if not api_key:
        raise ConfigError(
            "Gemini API key not found. Set GEMINI_API_KEY in your environment or config.py"
        )
    if len(api_key) < MIN_API_KEY_LENGTH:
        raise ConfigError("Invalid Gemini API key format: the key appears to be too short")
    if not api_key.startswith("AI"):
        logger.warning("Gemini API key format warning: keys typically start with 'AI'")
    return api_key


def get_config(require_llm: bool = True) -> Config:
    """
    Load configuration.

    Args:
        require_llm: Fail when neither an API key nor a Vertex project is set
    """
    api_key = os.getenv("GEMINI_API_KEY") or GEMINI_API_KEY or None
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
    workdir = os.getenv("CRISP_WORKDIR") or WORKDIR

    if api_key:
        validate_api_key(api_key)
    elif require_llm and not project:
        raise ConfigError(
            "Please set GEMINI_API_KEY (or GOOGLE_CLOUD_PROJECT for Vertex AI) in config.py "
            "or as an environment variable"
        )

    return Config(
        gemini_api_key=api_key,
        google_cloud_project=project,
        google_application_credentials=credentials,
        model_name=os.getenv("CRISP_MODEL") or MODEL_NAME,
        workdir=workdir,
        log_file=os.path.join(workdir, os.path.basename(LOG_FILE)),
        log_level=os.getenv("CRISP_LOG_LEVEL") or LOG_LEVEL,
    )
