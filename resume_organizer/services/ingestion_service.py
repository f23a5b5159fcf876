from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from resume_organizer.core.config import DEFAULT_MAX_UPLOAD_BYTES
from resume_organizer.errors import (
    PersistenceFailure,
    RecordNotFound,
    ResumeOrganizerError,
    ValidationError,
)
from resume_organizer.parsing.parse import SUPPORTED_EXTENSIONS, extension_from_filename, extract_text
from resume_organizer.recognize.fields import recognize_fields
from resume_organizer.recognize.merge import merge_fields
from resume_organizer.schemas.resume import ResumeRecord, UserSuppliedFields

logger = logging.getLogger(__name__)

TextExtractor = Callable[[bytes, str], str]


class BlobStorage(Protocol):
    def store(self, content: bytes, suggested_name: str) -> str: ...

    def delete(self, stored_file_name: str) -> bool: ...

    def exists(self, stored_file_name: str) -> bool: ...


class RecordStorage(Protocol):
    def insert(self, record: ResumeRecord) -> str: ...

    def find_by_id(self, resume_id: str) -> ResumeRecord | None: ...

    def find_all(self, search: str | None = None, tag: str | None = None) -> list[ResumeRecord]: ...

    def delete_by_id(self, resume_id: str) -> bool: ...

    def distinct_tags(self) -> list[str]: ...


@dataclass(frozen=True)
class UploadedFile:
    content: bytes
    filename: str
    size: int

    @property
    def extension(self) -> str:
        return extension_from_filename(self.filename)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_upload(uploaded_file: UploadedFile | None, max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> str:
    """Check presence, extension and size before any decode work. Returns the extension."""
    if uploaded_file is None or not uploaded_file.filename:
        raise ValidationError("No file uploaded")

    extension = uploaded_file.extension
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValidationError("Only PDF and DOCX files are allowed!")

    size = max(uploaded_file.size, len(uploaded_file.content))
    if size > max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum allowed size is {max_upload_bytes // (1024 * 1024)} MB."
        )
    if size == 0:
        raise ValidationError("Uploaded file is empty")
    return extension


class IngestionPipeline:
    def __init__(
        self,
        blob_store: BlobStorage,
        record_store: RecordStorage,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        extractor: TextExtractor = extract_text,
    ):
        self.blob_store = blob_store
        self.record_store = record_store
        self.max_upload_bytes = max_upload_bytes
        self.extractor = extractor

    def ingest(self, uploaded_file: UploadedFile | None, user_supplied: UserSuppliedFields) -> ResumeRecord:
        extension = validate_upload(uploaded_file, self.max_upload_bytes)

        text = self.extractor(uploaded_file.content, extension)
        recognized = recognize_fields(text)
        merged = merge_fields(recognized, user_supplied)

        stored_file_name = self.blob_store.store(uploaded_file.content, uploaded_file.filename)
        uploaded_at = _utc_now()
        try:
            record = ResumeRecord(
                name=merged.name,
                email=merged.email,
                phone=merged.phone,
                tags=merged.tags,
                stored_file_name=stored_file_name,
                original_file_name=user_supplied.original_file_name or uploaded_file.filename,
                file_type=extension,
                uploaded_at=uploaded_at,
                created_at=uploaded_at,
                updated_at=uploaded_at,
            )
            resume_id = self.record_store.insert(record)
        except ResumeOrganizerError:
            self._discard_blob(stored_file_name)
            raise
        except Exception as exc:
            self._discard_blob(stored_file_name)
            raise PersistenceFailure(f"Failed to save resume record: {exc}") from exc

        logger.info(
            "resume_ingested id=%s type=%s recognized=%s tags=%s",
            resume_id,
            extension,
            sorted(field for field, value in recognized.model_dump().items() if value),
            len(merged.tags),
        )
        return record.model_copy(update={"id": resume_id})

    def _discard_blob(self, stored_file_name: str) -> None:
        try:
            self.blob_store.delete(stored_file_name)
        except Exception as exc:
            logger.warning("orphan_blob_cleanup_failed name=%s error=%s", stored_file_name, exc)

    def delete(self, resume_id: str) -> ResumeRecord:
        record = self.record_store.find_by_id(resume_id)
        if record is None:
            raise RecordNotFound()

        if self.blob_store.exists(record.stored_file_name):
            self.blob_store.delete(record.stored_file_name)
        else:
            logger.warning("resume_blob_missing id=%s name=%s", resume_id, record.stored_file_name)

        if not self.record_store.delete_by_id(resume_id):
            raise RecordNotFound()
        logger.info("resume_deleted id=%s", resume_id)
        return record
