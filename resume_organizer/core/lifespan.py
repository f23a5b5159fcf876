from contextlib import asynccontextmanager
import logging

from resume_organizer.services.ingestion_service import IngestionPipeline
from resume_organizer.storage.blob_store import LocalBlobStore
from resume_organizer.storage.record_store import ResumeStore

logger = logging.getLogger(__name__)


def build_pipeline(config) -> IngestionPipeline:
    blob_store = LocalBlobStore(config.upload_dir)
    record_store = ResumeStore(config.resume_db_path)
    return IngestionPipeline(blob_store, record_store, max_upload_bytes=config.max_upload_bytes)


@asynccontextmanager
async def lifespan(app):
    config = app.state.settings
    pipeline = build_pipeline(config)
    pipeline.record_store.init()
    app.state.pipeline = pipeline
    logger.info(
        "resume_store_ready db=%s uploads=%s",
        config.resume_db_path,
        config.upload_dir,
    )
    yield
    pipeline.record_store.close()
