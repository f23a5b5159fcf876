from __future__ import annotations

import logging
from io import BytesIO
from zipfile import BadZipFile, ZipFile

import defusedxml.ElementTree as ET
from docx import Document
from docx.oxml.ns import qn
from docx.text.paragraph import Paragraph
from pypdf import PdfReader

from resume_organizer.errors import ExtractionFailure, UnsupportedFormat

logger = logging.getLogger(__name__)

PDF_EXTENSION = ".pdf"
DOCX_EXTENSION = ".docx"
SUPPORTED_EXTENSIONS = (PDF_EXTENSION, DOCX_EXTENSION)

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
WORD_PARAGRAPH = f"{{{WORD_NAMESPACE}}}p"
WORD_TEXT = f"{{{WORD_NAMESPACE}}}t"


def normalize_extension(declared_type: str | None) -> str:
    value = (declared_type or "").strip().lower()
    if not value:
        return ""
    if "." in value:
        value = value.rsplit(".", 1)[-1]
    return f".{value}" if value else ""


def extension_from_filename(filename: str | None) -> str:
    name = (filename or "").strip()
    if "." not in name:
        return ""
    return normalize_extension(name)


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
    except BadZipFile:
        return False
    return any(name.startswith(prefixes) for name in names)


def validate_signature(content: bytes, extension: str) -> None:
    """Reject payloads whose leading bytes do not match the declared type."""
    if extension == PDF_EXTENSION:
        if not content.startswith(PDF_MAGIC):
            raise ExtractionFailure("File signature does not match .pdf content.")
        return
    if extension == DOCX_EXTENSION:
        if not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",)):
            raise ExtractionFailure("File signature does not match .docx content.")


def _extract_pdf_text(content: bytes) -> str:
    reader = PdfReader(BytesIO(content))
    page_chunks: list[str] = []
    for page in reader.pages:
        page_chunks.append(page.extract_text() or "")
    return "\n".join(page_chunks)


def _paragraph_runs_text(element) -> list[str]:
    runs: list[str] = []
    for child in element:
        # Text-box paragraphs are emitted on their own.
        if child.tag == WORD_PARAGRAPH:
            continue
        if child.tag == WORD_TEXT:
            if child.text:
                runs.append(child.text)
            continue
        runs.extend(_paragraph_runs_text(child))
    return runs


def _extract_docx_text_fallback(content: bytes) -> str:
    with ZipFile(BytesIO(content)) as archive:
        raw = archive.read("word/document.xml")
    root = ET.fromstring(raw)
    paragraphs = ["".join(_paragraph_runs_text(paragraph)) for paragraph in root.iter(WORD_PARAGRAPH)]
    return "\n".join(paragraphs)


def _extract_docx_text(content: bytes) -> str:
    try:
        document = Document(BytesIO(content))
    except Exception as exc:
        logger.info("docx_reader_fallback reason=%s", exc)
        return _extract_docx_text_fallback(content)
    # Body paragraphs, table cells (nested tables too) and text boxes, in document order.
    body = document.element.body
    return "\n".join(Paragraph(element, document).text for element in body.iter(qn("w:p")))


def extract_text(content: bytes, declared_type: str) -> str:
    """Convert raw document bytes into plain text.

    ``declared_type`` is the file extension (``.pdf``/``.docx``, dot optional).
    Raises ``UnsupportedFormat`` for any other type and ``ExtractionFailure``
    when the document cannot be decoded.
    """
    extension = normalize_extension(declared_type)
    if extension == ".doc":
        raise UnsupportedFormat("Legacy .doc is not supported. Convert to .docx.")
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormat(
            f"Unsupported file type '{extension or declared_type}'. Only PDF and DOCX files are allowed!"
        )

    validate_signature(content, extension)

    try:
        if extension == PDF_EXTENSION:
            return _extract_pdf_text(content)
        return _extract_docx_text(content)
    except Exception as exc:
        logger.warning("text_extraction_failed type=%s error=%s", extension, exc)
        label = "PDF" if extension == PDF_EXTENSION else "Word document"
        raise ExtractionFailure(f"Unable to extract text from this {label}.") from exc
