from .fields import (
    EMAIL_RE,
    PHONE_RE,
    find_email,
    find_name,
    find_phone,
    is_name_candidate,
    recognize_fields,
)
from .merge import merge_fields, parse_tags, resolve_email, resolve_name, resolve_phone

__all__ = [
    "EMAIL_RE",
    "PHONE_RE",
    "find_email",
    "find_name",
    "find_phone",
    "is_name_candidate",
    "recognize_fields",
    "merge_fields",
    "parse_tags",
    "resolve_name",
    "resolve_email",
    "resolve_phone",
]
