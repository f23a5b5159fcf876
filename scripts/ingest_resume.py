from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_organizer.core.config import settings  # noqa: E402
from resume_organizer.core.lifespan import build_pipeline  # noqa: E402
from resume_organizer.errors import ResumeOrganizerError  # noqa: E402
from resume_organizer.parsing.parse import extract_text  # noqa: E402
from resume_organizer.recognize.fields import recognize_fields  # noqa: E402
from resume_organizer.recognize.merge import parse_tags  # noqa: E402
from resume_organizer.schemas.resume import UserSuppliedFields  # noqa: E402
from resume_organizer.services.ingestion_service import UploadedFile, validate_upload  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Ingest a PDF/DOCX resume into the local resume store.")
    parser.add_argument("path", help="Path to a .pdf or .docx file")
    parser.add_argument("--name", default=None, help="Fallback candidate name")
    parser.add_argument("--email", default=None, help="Fallback email address")
    parser.add_argument("--phone", default=None, help="Fallback phone number")
    parser.add_argument("--tags", default=None, help="Comma-separated tags")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only extract and recognize fields; nothing is stored.",
    )
    args = parser.parse_args()

    path = Path(args.path)
    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return 2

    content = path.read_bytes()
    uploaded = UploadedFile(content=content, filename=path.name, size=len(content))

    try:
        if args.dry_run:
            extension = validate_upload(uploaded, settings.max_upload_bytes)
            recognized = recognize_fields(extract_text(content, extension))
            print(json.dumps(recognized.model_dump(), indent=2, ensure_ascii=False))
            return 0

        pipeline = build_pipeline(settings)
        try:
            record = pipeline.ingest(
                uploaded,
                UserSuppliedFields(
                    name=args.name,
                    email=args.email,
                    phone=args.phone,
                    tags=parse_tags(args.tags),
                    original_file_name=path.name,
                ),
            )
        finally:
            pipeline.record_store.close()
    except ResumeOrganizerError as exc:
        print(f"Ingestion failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(record.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
