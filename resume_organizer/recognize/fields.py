from __future__ import annotations

import re

from resume_organizer.schemas.resume import RecognizedFields

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
# Optional +1 country code, optional (area) code, 3-3-4 grouping.
PHONE_RE = re.compile(r"(?:\+?1[-. ]?)?\(?\d{3}\)?[-. ]?\d{3}[-. ]?\d{4}")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
NAME_EXCLUDED_SUBSTRINGS = ("@", "http")
# Case-sensitive substring match, so "CVS Health" and "Emailing" are excluded too.
NAME_EXCLUDED_MARKERS = ("Phone", "Email", "Resume", "CV")


def find_email(text: str) -> str | None:
    match = EMAIL_RE.search(text or "")
    return match.group(0) if match else None


def find_phone(text: str) -> str | None:
    match = PHONE_RE.search(text or "")
    return match.group(0) if match else None


def has_name_length(line: str) -> bool:
    return NAME_MIN_LENGTH < len(line) < NAME_MAX_LENGTH


def has_contact_substring(line: str) -> bool:
    return any(marker in line for marker in NAME_EXCLUDED_SUBSTRINGS)


def has_excluded_marker(line: str) -> bool:
    return any(marker in line for marker in NAME_EXCLUDED_MARKERS)


def is_name_candidate(line: str) -> bool:
    stripped = line.strip()
    return (
        has_name_length(stripped)
        and not has_contact_substring(stripped)
        and not has_excluded_marker(stripped)
    )


def find_name(text: str) -> str | None:
    for raw_line in (text or "").split("\n"):
        line = raw_line.strip()
        if is_name_candidate(line):
            return line
    return None


def recognize_fields(text: str) -> RecognizedFields:
    return RecognizedFields(
        name=find_name(text),
        email=find_email(text),
        phone=find_phone(text),
    )
