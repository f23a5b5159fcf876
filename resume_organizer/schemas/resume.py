from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

FileType = Literal[".pdf", ".docx"]


class RecognizedFields(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class UserSuppliedFields(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    tags: list[str] = Field(default_factory=list)
    original_file_name: str = ""


class MergedFields(BaseModel):
    name: str
    email: str
    phone: str
    tags: list[str] = Field(default_factory=list)


class ResumeRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str | None = None
    name: str = Field(min_length=1)
    email: str = ""
    phone: str = ""
    tags: list[str] = Field(default_factory=list)
    stored_file_name: str = Field(alias="storedFileName", min_length=1)
    original_file_name: str = Field(alias="originalFileName", min_length=1)
    file_type: FileType = Field(alias="fileType")
    uploaded_at: datetime = Field(alias="uploadedAt")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("name", "phone")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("tags")
    @classmethod
    def _strip_tags(cls, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value]


class UploadResponse(BaseModel):
    message: str
    resume: ResumeRecord


class MessageResponse(BaseModel):
    message: str
