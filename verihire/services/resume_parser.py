"""Résumé text parser.

Turns already-extracted résumé text into structured work-history,
education and skill entities.  Line-oriented, single pass with a section
cursor; never raises and always yields at least one work entry so later
stages have something to book.

Work-section matchers are tried in a fixed priority order:

  (a) "Title at Company" / "Title | Company"
  (b) "Company - Title"
  (c) standalone company name
  (d) known job title
  (e) date range, attached to the current entry
  (f) description continuation

(a)-(c) start a new entry, flushing the one in progress.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from verihire.core.constants import (
    COMPANY_SUFFIXES,
    DEFAULT_DEGREE,
    DEFAULT_FIELD,
    DEFAULT_GRADUATION_YEARS_BACK,
    EDUCATION_SECTION_KEYWORDS,
    GENERIC_TITLE_PREFIXES,
    KNOWN_TITLES,
    MAX_HEADING_WORDS,
    MIN_DESCRIPTION_LENGTH,
    PLACEHOLDER_COMPANY,
    PLACEHOLDER_DESCRIPTION,
    PLACEHOLDER_POSITION,
    PRESENT_MARKERS,
    SKILLS_SECTION_KEYWORDS,
    TITLE_SUFFIXES,
    WORK_SECTION_KEYWORDS,
)
from verihire.models.resume import Education, ParsedResume, WorkHistoryEntry

logger = logging.getLogger(__name__)


class _Section(str, Enum):
    none = "none"
    work = "work"
    education = "education"
    skills = "skills"


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

_PHONE_RES = (
    re.compile(r"\+\d{1,3}[-.\s]?\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"),  # +1-123-456-7890
    re.compile(r"\(\d{3}\)\s?\d{3}[-.\s]?\d{4}\b"),  # (123) 456-7890
    re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"),  # 123-456-7890
)

_NAME_RE = re.compile(r"^([A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,3})$")

_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?"
)
_DATE_RANGE_RE = re.compile(
    rf"(?:{_MONTH}\s+)?(?P<start>(?:19|20)\d{{2}})\s*(?:[-–—]|to)\s*"
    rf"(?:{_MONTH}\s+)?(?P<end>(?:19|20)\d{{2}}|{'|'.join(PRESENT_MARKERS)})\b",
    re.IGNORECASE,
)

_COMPANY_CHARS = r"[A-Z][A-Za-z0-9&.,'\- ]"
_TITLE_AT_COMPANY_RE = re.compile(rf"^(?P<position>.+?)\s+(?:at|@)\s+(?P<company>{_COMPANY_CHARS}{{1,60}})$")
_TITLE_PIPE_COMPANY_RE = re.compile(rf"^(?P<position>[^|]+?)\s*\|\s*(?P<company>{_COMPANY_CHARS}{{1,60}})$")
_COMPANY_DASH_TITLE_RE = re.compile(
    rf"^(?P<company>{_COMPANY_CHARS}{{0,60}}?)(?:\s*[–—]\s*|\s+-\s+)(?P<position>.+)$"
)
_STANDALONE_COMPANY_RE = re.compile(rf"^{_COMPANY_CHARS}{{1,59}}$")
_LOCATION_RE = re.compile(r"^(?:Remote|[A-Z][a-zA-Z .]{1,30},\s*[A-Z][a-zA-Z .]{1,30})$")

_INSTITUTION_RE = re.compile(
    r"^(?P<institution>(?:[A-Z][\w&.'-]*\s+){0,6}?"
    r"(?:University|College|Institute|School|Academy)"
    r"(?:\s+of\s+[A-Z][\w&.'-]*(?:\s+[A-Z][\w&.'-]*){0,4})?)"
)
_DEGREE_RE = re.compile(
    r"\b(?P<degree>(?:Bachelor|Master|Doctor|Associate)(?:'s)?"
    r"(?:\s+(?:of|in)\s+(?:Science|Arts|Engineering|Business Administration|Philosophy))?"
    r"|B\.S\.?|B\.A\.?|M\.S\.?|M\.A\.?|BSc|MSc|MBA|Ph\.?D\.?)"
    r"(?:\s+(?:in|of)\s+(?P<field>[A-Z][A-Za-z& ]{1,60}?))?(?=\s*(?:$|[,;|(–—-]|(?:19|20)\d{2}))"
)
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

_SKILL_SPLIT_RE = re.compile(r"[,|•·;/]")
_BULLET_RE = re.compile(r"^[-*•·]\s*")

_ALL_HEADING_KEYWORDS = WORK_SECTION_KEYWORDS + EDUCATION_SECTION_KEYWORDS + SKILLS_SECTION_KEYWORDS
_HEADING_VOCABULARY: frozenset[str] = frozenset(
    word for phrase in _ALL_HEADING_KEYWORDS for word in phrase.split()
) | {
    "history", "and", "relevant", "summary", "key", "other", "additional",
    "certifications", "training", "highlights", "competencies", "core",
}


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


class _WorkDraft(BaseModel):
    company: str | None = None
    position: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    location: str | None = None
    description: list[str] = Field(default_factory=list)

    def has_identity(self) -> bool:
        return bool(self.company or self.position)

    def is_title_only(self) -> bool:
        return bool(self.position) and not (
            self.company or self.start_date or self.location or self.description
        )


class _EducationDraft(BaseModel):
    institution: str
    degree: str | None = None
    field: str | None = None
    graduation_year: str | None = None


# ---------------------------------------------------------------------------
# Line classifiers
# ---------------------------------------------------------------------------


def _heading_section(line: str) -> _Section | None:
    """Return the section a heading line opens, or None for content lines."""
    words = re.sub(r"[^a-z&\s]", " ", line.lower()).split()
    if not words or len(words) > MAX_HEADING_WORDS:
        return None
    if not all(word in _HEADING_VOCABULARY or word == "&" for word in words):
        return None
    phrase = " ".join(words)
    for section, keywords in (
        (_Section.skills, SKILLS_SECTION_KEYWORDS),
        (_Section.education, EDUCATION_SECTION_KEYWORDS),
        (_Section.work, WORK_SECTION_KEYWORDS),
    ):
        if any(keyword in phrase for keyword in keywords):
            return section
    return None


def _looks_like_title(text: str) -> bool:
    text = text.strip()
    if not text or len(text.split()) > 6:
        return False
    lowered = text.lower()
    for title in KNOWN_TITLES:
        if re.match(rf"{re.escape(title.lower())}\b", lowered):
            return True
    for prefix in GENERIC_TITLE_PREFIXES:
        if re.match(rf"{re.escape(prefix.lower())}\b", lowered):
            return True
    last_word = text.split()[-1]
    return last_word in TITLE_SUFFIXES


def _looks_like_company(text: str) -> bool:
    text = text.strip()
    if not _STANDALONE_COMPANY_RE.match(text) or text.endswith("."):
        return False
    if _LOCATION_RE.match(text) or _looks_like_title(text):
        return False
    words = text.replace(",", " ").split()
    if not words or len(words) > 6:
        return False
    if words[-1] in COMPANY_SUFFIXES:
        return True
    return all(word[0].isupper() or word in {"&", "of", "and", "the"} for word in words)


def _capitalised(text: str) -> bool:
    words = text.replace(",", " ").split()
    return bool(words) and all(
        word[0].isupper() or word[0].isdigit() or word in {"&", "of", "and", "the", "at"}
        for word in words
    )


def _plausible_pair(company: str, position: str) -> bool:
    """Reject prose that merely contains " at " or " - "."""
    if not company or not position:
        return False
    if len(company.split()) > 6 or len(position.split()) > 8:
        return False
    return _capitalised(company) and (_looks_like_title(position) or _capitalised(position))


def _is_description(line: str) -> bool:
    return len(line) > MIN_DESCRIPTION_LENGTH and not re.match(r"^[A-Z\s]+$", line)


def _normalize_end(raw: str) -> str:
    return "present" if raw.lower() in PRESENT_MARKERS else raw


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class ResumeParser:
    """Structures résumé text.  ``reference_year`` pins placeholder dates."""

    def __init__(self, reference_year: int | None = None) -> None:
        self.reference_year = reference_year or date.today().year

    # -- public ---------------------------------------------------------

    def parse(self, text: str) -> ParsedResume:
        """Parse *text*; malformed input degrades to placeholders."""
        try:
            lines = [line.strip() for line in (text or "").splitlines()]
            lines = [line for line in lines if line]
            work, education, skills = self._walk_sections(lines)
            return ParsedResume(
                name=self.extract_name(lines),
                email=self.extract_email(lines),
                phone=self.extract_phone(lines),
                work_experience=self._fill_placeholders(work),
                education=education,
                skills=skills,
            )
        except Exception as exc:
            logger.warning(
                "resume_parse_degraded",
                extra={
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
            )
            return ParsedResume(work_experience=self._fill_placeholders([]))

    @staticmethod
    def extract_name(lines: list[str]) -> str | None:
        """First of the top five lines shaped like 2-4 capitalised words.

        Only the header is searched: the first section heading ends it.
        """
        for line in lines[:5]:
            if _heading_section(line) is not None:
                break
            if "@" in line or "http" in line or re.search(r"\d{3}", line):
                continue
            if _LOCATION_RE.match(line):
                continue
            match = _NAME_RE.match(line)
            if match:
                return match.group(1)
        return None

    @staticmethod
    def extract_email(lines: list[str]) -> str | None:
        for line in lines:
            match = _EMAIL_RE.search(line)
            if match:
                return match.group(0)
        return None

    @staticmethod
    def extract_phone(lines: list[str]) -> str | None:
        for line in lines:
            for pattern in _PHONE_RES:
                match = pattern.search(line)
                if match:
                    return match.group(0)
        return None

    # -- section walk ---------------------------------------------------

    def _walk_sections(
        self, lines: list[str]
    ) -> tuple[list[_WorkDraft], list[Education], list[str]]:
        section = _Section.none
        work: list[_WorkDraft] = []
        education: list[_EducationDraft] = []
        skills: list[str] = []
        current: _WorkDraft | None = None
        pending_dates: tuple[str, str] | None = None

        def flush() -> None:
            nonlocal current
            if current is not None and current.has_identity():
                work.append(current)
            current = None

        for line in lines:
            heading = _heading_section(line)
            if heading is not None:
                if section == _Section.work and heading != _Section.work:
                    flush()
                section = heading
                continue

            if section == _Section.work:
                current, pending_dates = self._consume_work_line(
                    line, current, pending_dates, flush
                )
            elif section == _Section.education:
                self._consume_education_line(line, education)
            elif section == _Section.skills:
                self._consume_skills_line(line, skills)

        flush()
        return work, [self._finish_education(d) for d in education], skills

    def _consume_work_line(
        self,
        line: str,
        current: _WorkDraft | None,
        pending_dates: tuple[str, str] | None,
        flush,
    ) -> tuple[_WorkDraft | None, tuple[str, str] | None]:
        dates: tuple[str, str] | None = None
        rest = line
        date_match = _DATE_RANGE_RE.search(line)
        if date_match:
            dates = (date_match.group("start"), _normalize_end(date_match.group("end")))
            rest = (line[: date_match.start()] + line[date_match.end():]).strip(" ,;|()[]-–—")

        started = self._match_new_entry(rest) if rest else None
        if started is not None:
            if (
                current is not None
                and current.is_title_only()
                and started.company
                and not started.position
            ):
                # "Title" line followed by its "Company" line
                current.company = started.company
                started = current
            else:
                flush()
            if dates:
                started.start_date, started.end_date = dates
            elif pending_dates and not started.start_date:
                started.start_date, started.end_date = pending_dates
                pending_dates = None
            return started, pending_dates

        # (d) known title
        if rest and _looks_like_title(rest):
            if current is None:
                current = _WorkDraft(position=rest)
            elif not current.position:
                current.position = rest
            else:
                # Second role at the same employer
                company = current.company
                flush()
                current = _WorkDraft(company=company, position=rest)
            if dates and not current.start_date:
                current.start_date, current.end_date = dates
            return current, pending_dates

        if rest and _LOCATION_RE.match(rest):
            if current is not None and not current.location:
                current.location = rest
            return current, pending_dates

        # (e) date range
        if dates and not rest:
            if current is None:
                return current, dates
            if not current.start_date:
                current.start_date, current.end_date = dates
            return current, pending_dates

        # (f) description continuation
        if current is not None and _is_description(line):
            current.description.append(line)
        return current, pending_dates

    @staticmethod
    def _match_new_entry(text: str) -> _WorkDraft | None:
        for pattern in (_TITLE_AT_COMPANY_RE, _TITLE_PIPE_COMPANY_RE):
            match = pattern.match(text)
            if match:
                company = match.group("company").strip(" ,")
                position = match.group("position").strip(" ,")
                if _plausible_pair(company, position):
                    return _WorkDraft(company=company, position=position)

        match = _COMPANY_DASH_TITLE_RE.match(text)
        if match:
            company = match.group("company").strip(" ,")
            position = match.group("position").strip(" ,")
            if _looks_like_title(company) and not _looks_like_title(position):
                company, position = position, company
            if _plausible_pair(company, position):
                return _WorkDraft(company=company, position=position)

        if len(text) < 60 and _looks_like_company(text):
            return _WorkDraft(company=text.strip(" ,"))
        return None

    @staticmethod
    def _consume_education_line(line: str, education: list[_EducationDraft]) -> None:
        match = _INSTITUTION_RE.match(line)
        if match:
            draft = _EducationDraft(institution=match.group("institution").strip())
            education.append(draft)
            rest = line[match.end():]
        elif education:
            draft = education[-1]
            rest = line
        else:
            return

        degree_match = _DEGREE_RE.search(rest)
        if degree_match and not draft.degree:
            draft.degree = degree_match.group("degree").strip()
            if degree_match.group("field") and not draft.field:
                draft.field = degree_match.group("field").strip()
        years = _YEAR_RE.findall(rest)
        if years and not draft.graduation_year:
            draft.graduation_year = years[-1]

    @staticmethod
    def _consume_skills_line(line: str, skills: list[str]) -> None:
        body = _BULLET_RE.sub("", line)
        if ":" in body:
            body = body.split(":", 1)[1]
        for token in _SKILL_SPLIT_RE.split(body):
            skill = token.strip(" .")
            if skill and len(skill) <= 40 and skill.lower() not in {s.lower() for s in skills}:
                skills.append(skill)

    # -- post-pass ------------------------------------------------------

    def _finish_education(self, draft: _EducationDraft) -> Education:
        return Education(
            institution=draft.institution,
            degree=draft.degree or DEFAULT_DEGREE,
            field=draft.field or DEFAULT_FIELD,
            graduation_year=draft.graduation_year
            or str(self.reference_year - DEFAULT_GRADUATION_YEARS_BACK),
        )

    def _fill_placeholders(self, drafts: list[_WorkDraft]) -> list[WorkHistoryEntry]:
        """Fill missing fields with dates staggered by entry index."""
        if not drafts:
            return [
                WorkHistoryEntry(
                    company=PLACEHOLDER_COMPANY,
                    position=PLACEHOLDER_POSITION,
                    start_date=str(self.reference_year - 2),
                    end_date=str(self.reference_year - 1),
                    description=PLACEHOLDER_DESCRIPTION,
                )
            ]

        entries: list[WorkHistoryEntry] = []
        for index, draft in enumerate(drafts):
            years_back = 2 + index * 2
            start = draft.start_date or str(self.reference_year - (years_back + 1))
            end = draft.end_date or str(self.reference_year - years_back)
            if end.isdigit() and start.isdigit() and int(end) < int(start):
                end = start
            entries.append(
                WorkHistoryEntry(
                    company=draft.company or PLACEHOLDER_COMPANY,
                    position=draft.position or PLACEHOLDER_POSITION,
                    start_date=start,
                    end_date=end,
                    description=" ".join(draft.description) or PLACEHOLDER_DESCRIPTION,
                    location=draft.location,
                )
            )
        return entries


def parse_resume(text: str, reference_year: int | None = None) -> ParsedResume:
    """Module-level shortcut for ``ResumeParser(reference_year).parse(text)``."""
    return ResumeParser(reference_year).parse(text)
