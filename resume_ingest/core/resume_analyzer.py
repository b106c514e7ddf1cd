"""
Heuristic field extraction from plain resume text.

analyze_resume_text() is a pure function: the same text always yields the same
record, and malformed or empty input yields an empty record rather than an
error. Extraction is best effort. Each section contributes at most one
structured entry.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from resume_ingest.core.config import DEFAULT_MAX_SKILLS
from resume_ingest.core.schemas import (
    ContactInfo,
    EducationEntry,
    ExperienceEntry,
    ProjectEntry,
    ResumeRecord,
)
from resume_ingest.core.section_splitter import (
    CERTIFICATE_LABELS,
    EDUCATION_LABELS,
    EXPERIENCE_LABELS,
    PROJECT_LABELS,
    SKILLS_LABELS,
    SUMMARY_LABELS,
    find_section,
)
from resume_ingest.core.text_normalization import normalize_line, split_lines

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 30
MAX_TITLE_LENGTH = 50
MAX_SKILL_LENGTH = 50
TITLE_LOOKAHEAD = 4

NAME_FORBIDDEN_RE = re.compile(r"[@:/()]")
CONTACT_KEYWORDS = ("联系", "电话", "邮箱", "contact", "phone", "email")

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
# Mainland mobile (optional +86 / 0086 prefix), or landline with optional area code
PHONE_RE = re.compile(r"(?:(?:\+|00)86)?1[3-9]\d{9}|(?:0\d{2,3}-?)?[1-9]\d{6,7}")
URL_RE = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)"
)
GITHUB_RE = re.compile(r"github\.com/[A-Za-z0-9_-]+", re.IGNORECASE)

SKILL_SPLIT_RE = re.compile(r"[,，、;；\s]+")

COMMON_SKILLS = (
    "JavaScript", "TypeScript", "Python", "Java", "PHP", "Ruby", "Swift",
    "React", "Vue", "Angular", "Node.js", "Express", "Django", "Flask", "Spring",
    "HTML", "CSS", "SASS", "LESS", "Bootstrap", "Tailwind",
    "SQL", "MySQL", "PostgreSQL", "MongoDB", "Redis", "Oracle",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "CI/CD",
    "Git", "SVN", "Agile", "Scrum", "Jira", "TDD", "BDD",
)
# Tokens whose punctuation defeats word-boundary matching; found by substring
SPECIAL_SKILLS = ("C++", "C#")


def _skill_pattern(skill: str) -> "re.Pattern[str]":
    # ASCII-only boundaries so "熟悉Python开发" still matches Python
    return re.compile(rf"(?<![A-Za-z0-9_]){re.escape(skill)}(?![A-Za-z0-9_])", re.IGNORECASE)


COMMON_SKILL_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = tuple(
    (skill, _skill_pattern(skill)) for skill in COMMON_SKILLS
)


# ============================================================================
# Name / title
# ============================================================================

def _is_name_candidate(line: str) -> bool:
    return len(line) < MAX_NAME_LENGTH and not NAME_FORBIDDEN_RE.search(line)


def _is_title_candidate(line: str, name: str) -> bool:
    if len(line) >= MAX_TITLE_LENGTH or NAME_FORBIDDEN_RE.search(line):
        return False
    low = line.lower()
    if any(k in low for k in CONTACT_KEYWORDS):
        return False
    return line != name


def extract_name_and_title(lines: Sequence[str]) -> Tuple[str, str]:
    """
    Guess name and title from the top of the resume.

    Name: the first line when it is short (< 30 chars) and free of @ : / ( ),
    otherwise the second line under the same test.
    Title: the first of lines 2-5 that is short (< 50 chars), free of the same
    characters and of contact keywords, and not equal to the name.
    """
    name = ""
    if lines:
        if _is_name_candidate(lines[0]):
            name = lines[0]
        elif len(lines) > 1 and _is_name_candidate(lines[1]):
            name = lines[1]

    title = ""
    for line in lines[1:1 + TITLE_LOOKAHEAD]:
        if _is_title_candidate(line, name):
            title = line
            break
    return name, title


# ============================================================================
# Contact
# ============================================================================

def _first_match(pattern: "re.Pattern[str]", text: str) -> str:
    m = pattern.search(text)
    return m.group(0) if m else ""


def extract_contact(text: str) -> ContactInfo:
    """Independent first-match scans for email, phone, website and GitHub profile."""
    if not text:
        return ContactInfo()

    website = ""
    for m in URL_RE.finditer(text):
        if "github" not in m.group(0).lower():
            website = m.group(0)
            break

    github = _first_match(GITHUB_RE, text)
    return ContactInfo(
        email=_first_match(EMAIL_RE, text),
        phone=_first_match(PHONE_RE, text),
        website=website,
        github=f"https://{github}" if github else "",
    )


# ============================================================================
# Sections
# ============================================================================

def _section_lines(text: str, labels: Sequence[str]) -> List[str]:
    body = find_section(text, labels)
    return [ln for ln in (normalize_line(x) for x in split_lines(body)) if ln]


def extract_skills(text: str) -> List[str]:
    """
    Skills from the skills section, or from a keyword scan when there is none.

    Section entries are split on commas, enumeration commas, semicolons and
    whitespace; entries of 1-49 characters are kept in order. The list is not
    capped here.
    """
    if not text:
        return []

    body = find_section(text, SKILLS_LABELS)
    if body.strip():
        skills = []
        for token in SKILL_SPLIT_RE.split(body):
            token = normalize_line(token)
            if 0 < len(token) < MAX_SKILL_LENGTH:
                skills.append(token)
        return skills

    found = [skill for skill, pattern in COMMON_SKILL_PATTERNS if pattern.search(text)]
    found.extend(skill for skill in SPECIAL_SKILLS if skill in text)
    return found


def extract_education(text: str) -> List[EducationEntry]:
    lines = _section_lines(text, EDUCATION_LABELS)
    if len(lines) < 2:
        return []
    return [EducationEntry(school=lines[0], degree=lines[1], description="\n".join(lines[2:]))]


def extract_experience(text: str) -> List[ExperienceEntry]:
    lines = _section_lines(text, EXPERIENCE_LABELS)
    if len(lines) < 2:
        return []
    return [ExperienceEntry(company=lines[0], position=lines[1], description="\n".join(lines[2:]))]


def extract_projects(text: str) -> List[ProjectEntry]:
    lines = _section_lines(text, PROJECT_LABELS)
    if not lines:
        return []
    return [ProjectEntry(name=lines[0], description="\n".join(lines[1:]))]


def extract_summary(text: str) -> str:
    lines = _section_lines(text, SUMMARY_LABELS)
    return lines[0] if lines else ""


def extract_certificates(text: str) -> List[str]:
    return _section_lines(text, CERTIFICATE_LABELS)


# ============================================================================
# Record
# ============================================================================

def analyze_resume_text(text: Optional[str], max_skills: int = DEFAULT_MAX_SKILLS) -> ResumeRecord:
    """
    Build a ResumeRecord from plain resume text.

    Never raises on malformed input; missing fields stay empty.
    """
    if not text or not text.strip():
        return ResumeRecord()

    lines = split_lines(text)
    name, title = extract_name_and_title(lines)
    skills = extract_skills(text)

    record = ResumeRecord(
        name=name,
        title=title,
        summary=extract_summary(text),
        contact=extract_contact(text),
        skills=skills[:max_skills],
        education=extract_education(text),
        experience=extract_experience(text),
        projects=extract_projects(text),
        certificates=extract_certificates(text),
    )
    logger.debug(
        "Analyzed resume: name=%r, title=%r, %d skill(s), %d education, %d experience, %d project(s)",
        record.name, record.title, len(record.skills),
        len(record.education), len(record.experience), len(record.projects),
    )
    return record
