import os
from datetime import datetime
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..errors import DocumentProcessingError, ExtractionError
from ..services import record_service
from ..services.document_processor import ProcessedDocument

router = APIRouter(prefix="/documents", tags=["documents"])

class DocumentStatusResponse(BaseModel):
    id: str
    file_name: str
    document_type: str
    upload_date: Optional[datetime] = None
    status: str
    status_details: Optional[str] = None
    progress: int

    class Config:
        from_attributes = True

@router.get("/status", response_model=List[DocumentStatusResponse])
async def get_document_status(db: Session = Depends(get_db)):
    """Processing status of every uploaded document."""
    return record_service.list_documents(db)

async def process_upload(
    db: Session,
    file: UploadFile,
    document_type: str,
    process: Callable[[bytes, str], ProcessedDocument],
) -> ProcessedDocument:
    """Validate an upload, run the processing pipeline and track its status.

    Processing failures are reported as 422 and recorded as a failed
    document; they never produce a validation result.
    """
    file_name = file.filename or "upload"
    file_ext = os.path.splitext(file_name)[1].lower().lstrip('.')
    if file_ext not in settings.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"File type '{file_ext}' not allowed. Allowed types: {', '.join(sorted(settings.ALLOWED_EXTENSIONS))}"
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="File content is required")
    if len(content) > settings.MAX_CONTENT_LENGTH:
        raise HTTPException(status_code=413, detail="File exceeds the maximum upload size")

    status = record_service.start_document(db, file_name, document_type)
    try:
        processed = await run_in_threadpool(process, content, file_name)
    except (DocumentProcessingError, ExtractionError) as e:
        logger.error(f"Error processing {document_type.lower()} '{file_name}': {str(e)}")
        record_service.fail_document(db, status, str(e))
        raise HTTPException(status_code=422, detail=f"Failed to process document: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error processing {document_type.lower()} '{file_name}': {str(e)}")
        record_service.fail_document(db, status, str(e))
        raise HTTPException(status_code=500, detail=f"Internal server error during {document_type.lower()} upload")

    record_service.finish_document(db, status)
    return processed
