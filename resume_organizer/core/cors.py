from __future__ import annotations

from resume_organizer.core.config import Settings


def cors_allowed_origins(config: Settings) -> list[str]:
    return list(config.cors_allowed_origins)
