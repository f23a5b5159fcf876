import asyncio
import logging

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import FileResponse, JSONResponse

from resume_organizer.core.rate_limit import rate_limit
from resume_organizer.errors import RecordNotFound, ResumeOrganizerError
from resume_organizer.recognize.merge import parse_tags
from resume_organizer.schemas.resume import MessageResponse, ResumeRecord, UploadResponse, UserSuppliedFields
from resume_organizer.services.ingestion_service import IngestionPipeline, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter()

READ_CHUNK_BYTES = 1024 * 64


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


async def _read_upload(file: UploadFile, max_upload_bytes: int) -> UploadedFile:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_upload_bytes:
            # Oversized uploads are rejected by validation; the rest is never buffered.
            break
        chunks.append(chunk)
    return UploadedFile(content=b"".join(chunks), filename=file.filename or "", size=total)


@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
@rate_limit()
async def upload_resume(
    request: Request,
    resume: UploadFile | None = File(default=None),
    name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    phone: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    _ = request
    uploaded = await _read_upload(resume, pipeline.max_upload_bytes) if resume is not None else None
    user_supplied = UserSuppliedFields(
        name=name,
        email=email,
        phone=phone,
        tags=parse_tags(tags),
        original_file_name=uploaded.filename if uploaded else "",
    )
    try:
        record = await asyncio.to_thread(pipeline.ingest, uploaded, user_supplied)
    except ResumeOrganizerError:
        raise
    except Exception as exc:
        logger.error("resume_upload_failed error=%s", exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Error uploading resume"},
        )
    return UploadResponse(message="Resume uploaded successfully", resume=record)


@router.get("/resumes", response_model=list[ResumeRecord])
def list_resumes(
    search: str | None = Query(default=None, max_length=200),
    tag: str | None = Query(default=None, max_length=100),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    return pipeline.record_store.find_all(search=search, tag=tag)


@router.get("/resumes/{resume_id}", response_model=ResumeRecord)
def get_resume(resume_id: str, pipeline: IngestionPipeline = Depends(get_pipeline)):
    record = pipeline.record_store.find_by_id(resume_id)
    if record is None:
        raise RecordNotFound()
    return record


@router.delete("/resumes/{resume_id}", response_model=MessageResponse)
def delete_resume(resume_id: str, pipeline: IngestionPipeline = Depends(get_pipeline)):
    pipeline.delete(resume_id)
    return MessageResponse(message="Resume deleted successfully")


@router.get("/tags", response_model=list[str])
def list_tags(pipeline: IngestionPipeline = Depends(get_pipeline)):
    return pipeline.record_store.distinct_tags()


files_router = APIRouter()


@files_router.get("/uploads/{stored_file_name}")
def download_file(stored_file_name: str, pipeline: IngestionPipeline = Depends(get_pipeline)):
    blob_store = pipeline.blob_store
    if not blob_store.exists(stored_file_name):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "File not found"})
    return FileResponse(blob_store.path_for(stored_file_name))
