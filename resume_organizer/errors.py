from __future__ import annotations


class ResumeOrganizerError(RuntimeError):
    status_code = 500
    public_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, *, public_message: str | None = None):
        super().__init__(message or public_message or self.public_message)
        if public_message:
            self.public_message = public_message

    @property
    def detail(self) -> str:
        """Message safe to return to API callers."""
        if self.status_code < 500:
            return str(self)
        return self.public_message


class ValidationError(ResumeOrganizerError):
    status_code = 400
    public_message = "Invalid upload."


class UnsupportedFormat(ResumeOrganizerError):
    status_code = 400
    public_message = "Only PDF and DOCX files are allowed!"


class ExtractionFailure(ResumeOrganizerError):
    public_message = "Unable to extract text from this file. It may be corrupt or password protected."


class StorageFailure(ResumeOrganizerError):
    public_message = "Error uploading resume"


class PersistenceFailure(ResumeOrganizerError):
    public_message = "Error saving resume"


class RecordNotFound(ResumeOrganizerError):
    status_code = 404
    public_message = "Resume not found"
