"""
Labeled-section splitting for plain resume text.

A section starts at the first line naming one of its labels and ends just
before the next line that both looks like a heading and names a label known
to the splitter. Requiring both keeps short CJK content lines (a school name,
a degree) from being mistaken for headings, while headings the splitter does
not know about are still bounded by the ones it does.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


# ============================================================================
# Heading shape
# ============================================================================

MAX_HEADER_LENGTH = 30

CAPS_OR_CJK_RE = re.compile(r"^[A-Z\s\u4e00-\u9fa5]+$")
COMPOUND_HEADER_RE = re.compile(
    r"^[A-Z\u4e00-\u9fa5][a-z\u4e00-\u9fa5]*\s*[&/|]\s*[A-Z\u4e00-\u9fa5]"
)
HEADER_COLONS = (":", "：")


def looks_like_header(line: str) -> bool:
    """
    Formatting cues that a line is a section heading.

    - short (< 30 chars) and only capitals / CJK / spaces: "EDUCATION", "工作经历"
    - ends with a colon: "Skills:", "技能："
    - compound heading: "Education & Experience"
    """
    t = (line or "").strip()
    if not t:
        return False
    if len(t) < MAX_HEADER_LENGTH and CAPS_OR_CJK_RE.match(t):
        return True
    if t.endswith(HEADER_COLONS):
        return True
    return bool(COMPOUND_HEADER_RE.match(t))


# ============================================================================
# Label table
# ============================================================================

SUMMARY_LABELS = ("个人简介", "自我介绍", "自我评价", "简介", "summary", "about me")
SKILLS_LABELS = ("技能", "专业技能", "技术栈", "专业技术", "skills", "technical skills")
EDUCATION_LABELS = ("教育", "教育背景", "教育经历", "学历", "education")
EXPERIENCE_LABELS = ("工作经验", "工作经历", "职业经历", "实习经历", "experience", "employment")
PROJECT_LABELS = ("项目经历", "项目经验", "项目", "projects")
CERTIFICATE_LABELS = ("证书", "资格证书", "certificates", "certifications")

# Headings with no record field; known so they still end the section above them
OTHER_LABELS = ("荣誉", "获奖", "奖项", "兴趣爱好", "联系方式", "awards", "honors", "interests", "hobbies", "contact")

SECTION_LABELS: Dict[str, Tuple[str, ...]] = {
    "summary": SUMMARY_LABELS,
    "skills": SKILLS_LABELS,
    "education": EDUCATION_LABELS,
    "experience": EXPERIENCE_LABELS,
    "projects": PROJECT_LABELS,
    "certificates": CERTIFICATE_LABELS,
    "other": OTHER_LABELS,
}


def _contains_any(line: str, synonyms: Iterable[str]) -> bool:
    low = line.lower()
    return any(s.lower() in low for s in synonyms)


class LabeledSectionSplitter:
    """Find section bodies in resume text from a table of field -> label synonyms."""

    def __init__(self, labels: Optional[Dict[str, Sequence[str]]] = None):
        self.labels: Dict[str, Tuple[str, ...]] = {
            field: tuple(syns) for field, syns in (labels or SECTION_LABELS).items()
        }
        self._all_labels: Tuple[str, ...] = tuple(
            s for syns in self.labels.values() for s in syns
        )

    def is_boundary(self, line: str) -> bool:
        """A line ends a section when it looks like a heading and names a known label."""
        return looks_like_header(line) and _contains_any(line, self._all_labels)

    def _header_index(self, lines: List[str], synonyms: Sequence[str]) -> int:
        for i, line in enumerate(lines):
            if _contains_any(line.strip(), synonyms):
                return i
        return -1

    def find_section(self, text: str, synonyms: Sequence[str]) -> str:
        """
        Return the body of the first section headed by any of synonyms.

        The header is the first line containing a synonym (case-insensitive).
        The body runs from the next line up to the next boundary line, or to
        the end of the text. If the body repeats the header on its first line,
        that line is dropped. Returns "" when no header is found.
        """
        if not text:
            return ""
        lines = re.split(r"\r?\n", text)
        start = self._header_index(lines, synonyms)
        if start == -1:
            return ""

        end = len(lines)
        for i in range(start + 1, len(lines)):
            if self.is_boundary(lines[i].strip()):
                end = i
                break

        body_lines = lines[start + 1:end]
        section_text = "\n".join(body_lines)
        if len(body_lines) > 1 and _contains_any(body_lines[0], synonyms):
            cleaned = "\n".join(body_lines[1:]).strip()
            return cleaned or section_text
        return section_text

    def split(self, text: str) -> Dict[str, str]:
        """Section body for every configured field ("" when absent)."""
        return {field: self.find_section(text, syns) for field, syns in self.labels.items()}


DEFAULT_SPLITTER = LabeledSectionSplitter()


def find_section(text: str, synonyms: Sequence[str]) -> str:
    return DEFAULT_SPLITTER.find_section(text, synonyms)
