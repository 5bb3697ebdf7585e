from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field
from loguru import logger
from ..database import get_db
from ..errors import InvalidStatusError, RecordNotFoundError
from ..models.comparison import ComparisonResult, ComparisonSettings
from ..models.document_models import BoundingBox, PositionedToken
from ..services import record_service
from ..services.comparison_service import revalidate_invoices, validate_invoice
from ..services.evidence import find_evidence
from .deps import get_comparison_settings

router = APIRouter(prefix="/validations", tags=["validations"])

class ValidationRequest(BaseModel):
    invoice_id: str
    contract_id: Optional[str] = None  # defaults to the invoice's linked contract

class BatchValidationRequest(BaseModel):
    pairs: List[ValidationRequest]

class EvidenceRequest(BaseModel):
    tokens: List[PositionedToken]
    search_text: str
    page: int = Field(ge=1)

class ValidationSummary(BaseModel):
    id: str
    invoice_id: str
    contract_id: str
    vendor_name: Optional[str] = None
    overall_status: str
    overall_match: bool
    confidence: float
    total_variance: float
    potential_savings: float
    exception_count: int
    total_line_items: int
    compliant_line_items: int
    validated_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ExceptionRecordResponse(BaseModel):
    id: str
    summary: str
    exception_type: str
    exception_category: str
    severity: str
    message: str
    page_number: Optional[int] = None
    field_name: Optional[str] = None
    expected_value: Optional[str] = None
    actual_value: Optional[str] = None
    variance_amount: float
    root_cause: Optional[str] = None
    recommendation: Optional[str] = None
    resolved: bool
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class StatusUpdate(BaseModel):
    status: Literal["Approved", "Rejected"]

class ExceptionUpdate(BaseModel):
    resolved: bool = True

def _resolve_contract_id(db: Session, request: ValidationRequest) -> str:
    if request.contract_id:
        return request.contract_id
    invoice = record_service.get_invoice(db, request.invoice_id)
    if not invoice.contract_id:
        raise HTTPException(
            status_code=400,
            detail=f"Invoice {request.invoice_id} is not linked to a contract; contract_id is required",
        )
    return invoice.contract_id

@router.post("/", response_model=ComparisonResult)
async def validate(
    request: ValidationRequest,
    db: Session = Depends(get_db),
    comparison_settings: ComparisonSettings = Depends(get_comparison_settings),
):
    """Validate a stored invoice against a stored contract."""
    try:
        contract_id = _resolve_contract_id(db, request)
        return await validate_invoice(db, request.invoice_id, contract_id, comparison_settings)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/batch", response_model=List[ComparisonResult])
async def validate_batch(
    request: BatchValidationRequest,
    db: Session = Depends(get_db),
    comparison_settings: ComparisonSettings = Depends(get_comparison_settings),
):
    """Revalidate several invoice/contract pairs."""
    try:
        pairs = [(pair.invoice_id, _resolve_contract_id(db, pair)) for pair in request.pairs]
        return await revalidate_invoices(db, pairs, comparison_settings)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/evidence", response_model=BoundingBox)
async def locate_evidence(request: EvidenceRequest):
    """Bounding box of the text best matching ``search_text`` on a page."""
    return find_evidence(request.tokens, request.search_text, request.page)

@router.get("/", response_model=List[ValidationSummary])
async def get_validations(db: Session = Depends(get_db)):
    """Get all stored validations, newest first."""
    validations = record_service.list_validations(db)
    logger.info(f"Retrieved {len(validations)} validations from database")
    return validations

@router.get("/{validation_id}", response_model=ComparisonResult)
async def get_validation(validation_id: str, db: Session = Depends(get_db)):
    """Full comparison result of a stored validation."""
    try:
        return record_service.validation_result(record_service.get_validation(db, validation_id))
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Validation not found")

@router.get("/{validation_id}/exceptions", response_model=List[ExceptionRecordResponse])
async def get_validation_exceptions(validation_id: str, db: Session = Depends(get_db)):
    """Exception records of a stored validation."""
    try:
        return record_service.get_validation(db, validation_id).exceptions
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Validation not found")

@router.patch("/{validation_id}/status", response_model=ValidationSummary)
async def update_validation_status(validation_id: str, update: StatusUpdate, db: Session = Depends(get_db)):
    """Approve or reject a stored validation."""
    try:
        return record_service.set_validation_status(db, validation_id, update.status)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Validation not found")
    except InvalidStatusError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.patch("/{validation_id}/exceptions/{exception_id}", response_model=ExceptionRecordResponse)
async def update_exception(
    validation_id: str,
    exception_id: str,
    update: ExceptionUpdate,
    db: Session = Depends(get_db),
):
    """Mark an exception of a stored validation as resolved, or reopen it."""
    try:
        return record_service.resolve_exception(db, validation_id, exception_id, update.resolved)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
