"""
Heuristic résumé field extraction.

Pattern matching over already-extracted text. Every field is best effort:
a missing email or an empty skills list is a normal outcome, and the output
only has to be good enough to seed interview questions.
"""
import os
import re
import logging
from typing import List, Optional

from ..config import TECH_KEYWORDS, MAX_SKILLS, MAX_EXPERIENCE, MAX_EDUCATION
from ..infrastructure.documents import read_document
from .models import CandidateDocument

logger = logging.getLogger("extraction")

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(\+?1[-.\s]?)?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})")
LINKEDIN_RE = re.compile(r"(?:https?://)?(?:www\.)?linkedin\.com/in/[a-zA-Z0-9-]+/?", re.IGNORECASE)
GITHUB_RE = re.compile(r"(?:https?://)?(?:www\.)?github\.com/[a-zA-Z0-9-]+/?", re.IGNORECASE)

NAME_WORD_RE = re.compile(r"^[A-Z][a-z]+$")
LETTERS_ONLY_RE = re.compile(r"^[A-Za-z\s]+$")

# A section runs from its heading to a blank line, a line starting with a capital, or the end.
_SECTION_END = r"(?=\n\n|\n[A-Z]|$)"
SKILLS_SECTION_RE = re.compile(
    r"(?:skills?|technologies?|tech stack|programming languages?)[\s\S]*?" + _SECTION_END,
    re.IGNORECASE,
)
EXPERIENCE_SECTION_RE = re.compile(
    r"(?:experience|work history|employment|professional experience)[\s\S]*?" + _SECTION_END,
    re.IGNORECASE,
)
EDUCATION_SECTION_RE = re.compile(
    r"(?:education|academic|degree|university|college|school)[\s\S]*?" + _SECTION_END,
    re.IGNORECASE,
)

JOB_TITLE_RE = re.compile(
    r"(?:software engineer|developer|programmer|analyst|consultant|manager|lead|senior|junior|intern)",
    re.IGNORECASE,
)
YEARS_RE = re.compile(r"(\d+)[\s-]*(?:years?|yrs?)[\s-]*(?:of[\s-]*)?(?:experience|exp)", re.IGNORECASE)
DEGREE_RE = re.compile(r"(?:bachelor|master|phd|associate|diploma|certificate|degree)", re.IGNORECASE)
SKILL_SPLIT_RE = re.compile(r"[,;•\n]")

_NAME_BLOCKLIST = ("resume", "cv", "curriculum")


def _keyword_pattern(keyword: str) -> re.Pattern:
    # \b only works next to word characters, so "C++" and "C#" need lookarounds
    escaped = re.escape(keyword)
    left = r"\b" if keyword[0].isalnum() else r"(?<!\w)"
    right = r"\b" if keyword[-1].isalnum() else r"(?!\w)"
    return re.compile(left + escaped + right, re.IGNORECASE)


_TECH_PATTERNS = [(keyword, _keyword_pattern(keyword)) for keyword in TECH_KEYWORDS]


def _first_match(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(0) if match else None


def extract_name(lines: List[str]) -> Optional[str]:
    """Pick a short line of capitalised words, else a name-like first line."""
    if not lines:
        return None

    for line in lines:
        words = line.split(" ")
        lowered = line.lower()
        if (2 <= len(words) <= 4
                and all(NAME_WORD_RE.match(word) for word in words)
                and len(line) < 50
                and not any(blocked in lowered for blocked in _NAME_BLOCKLIST)):
            return line

    first_line = lines[0]
    lowered = first_line.lower()
    if (len(first_line) < 50
            and LETTERS_ONLY_RE.match(first_line)
            and "resume" not in lowered
            and "cv" not in lowered):
        return first_line
    return None


def extract_skills(text: str) -> List[str]:
    """Known technologies mentioned anywhere, plus entries of a skills section."""
    skills: List[str] = []

    for keyword, pattern in _TECH_PATTERNS:
        if pattern.search(text):
            skills.append(keyword)

    section = _first_match(SKILLS_SECTION_RE, text)
    if section:
        for token in SKILL_SPLIT_RE.split(section):
            skill = token.strip()
            if 1 < len(skill) < 50 and "skill" not in skill.lower() and skill not in skills:
                skills.append(skill)

    return skills[:MAX_SKILLS]


def extract_experience(text: str) -> List[str]:
    """Job-title lines from the experience section and an 'N years' summary."""
    experience: List[str] = []

    section = _first_match(EXPERIENCE_SECTION_RE, text)
    if section:
        for line in section.split("\n"):
            if len(line.strip()) > 10 and JOB_TITLE_RE.search(line) and len(line) < 100:
                experience.append(line.strip())

    years = YEARS_RE.search(text)
    if years:
        experience.append(f"{years.group(1)} years of experience")

    return experience[:MAX_EXPERIENCE]


def extract_education(text: str) -> List[str]:
    """Degree lines from the education section."""
    education: List[str] = []

    section = _first_match(EDUCATION_SECTION_RE, text)
    if section:
        for line in section.split("\n"):
            if len(line.strip()) > 5 and DEGREE_RE.search(line) and len(line) < 100:
                education.append(line.strip())

    return education[:MAX_EDUCATION]


def extract_candidate_fields(text: str, file_name: str = "") -> CandidateDocument:
    """
    Turn raw résumé text into a CandidateDocument.

    Args:
        text: Plain text produced by a document reader
        file_name: Name of the uploaded file, kept for display

    Returns:
        CandidateDocument with whatever fields could be found
    """
    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]

    document = CandidateDocument(
        raw_text=text,
        file_name=file_name,
        name=extract_name(lines),
        email=_first_match(EMAIL_RE, text),
        phone=_first_match(PHONE_RE, text),
        linkedin=_first_match(LINKEDIN_RE, text),
        github=_first_match(GITHUB_RE, text),
        skills=tuple(extract_skills(text)),
        experience=tuple(extract_experience(text)),
        education=tuple(extract_education(text)),
    )
    logger.info(
        "Extracted resume fields: name=%s email=%s skills=%d experience=%d education=%d",
        document.name, document.email, len(document.skills),
        len(document.experience), len(document.education),
    )
    return document


def parse_resume(path: str) -> CandidateDocument:
    """Read a PDF/DOCX résumé and extract its fields."""
    text = read_document(path)
    return extract_candidate_fields(text, file_name=os.path.basename(path))
