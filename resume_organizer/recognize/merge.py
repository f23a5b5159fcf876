from __future__ import annotations

from resume_organizer.schemas.resume import MergedFields, RecognizedFields, UserSuppliedFields

DEFAULT_NAME = "Unknown"
DEFAULT_EMAIL = ""
DEFAULT_PHONE = ""


def _present(value: str | None) -> str:
    return (value or "").strip()


def resolve_field(recognized: str | None, user_supplied: str | None, default: str) -> str:
    """Recognized value first, then the caller's value, then the fixed default."""
    if _present(recognized):
        return recognized  # type: ignore[return-value]
    supplied = _present(user_supplied)
    if supplied:
        return supplied
    return default


def resolve_name(recognized: RecognizedFields, user_supplied: UserSuppliedFields) -> str:
    return resolve_field(recognized.name, user_supplied.name, DEFAULT_NAME)


def resolve_email(recognized: RecognizedFields, user_supplied: UserSuppliedFields) -> str:
    return resolve_field(recognized.email, user_supplied.email, DEFAULT_EMAIL)


def resolve_phone(recognized: RecognizedFields, user_supplied: UserSuppliedFields) -> str:
    return resolve_field(recognized.phone, user_supplied.phone, DEFAULT_PHONE)


def parse_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    values = [item.strip() for item in raw.split(",")]
    return [item for item in values if item]


def merge_fields(recognized: RecognizedFields, user_supplied: UserSuppliedFields) -> MergedFields:
    return MergedFields(
        name=resolve_name(recognized, user_supplied),
        email=resolve_email(recognized, user_supplied),
        phone=resolve_phone(recognized, user_supplied),
        tags=list(user_supplied.tags),
    )
