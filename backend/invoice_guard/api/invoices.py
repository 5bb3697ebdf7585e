from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel
from loguru import logger
from ..database import get_db
from ..errors import RecordNotFoundError
from ..models.document_models import InvoiceLineItem
from ..models.records import InvoiceRecord
from ..services import record_service
from ..services.document_processor import DocumentProcessor
from .deps import get_document_processor
from .documents import process_upload

router = APIRouter(prefix="/invoices", tags=["invoices"])

class InvoiceResponse(BaseModel):
    id: str
    contract_id: Optional[str] = None
    invoice_number: str
    vendor_name: str
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    line_items: List[InvoiceLineItem]
    total_amount: float
    confidence: float
    file_name: Optional[str] = None
    created_at: Optional[datetime] = None

def to_response(record: InvoiceRecord) -> InvoiceResponse:
    data = record_service.invoice_data(record)
    return InvoiceResponse(
        id=record.id,
        contract_id=record.contract_id,
        invoice_number=data.invoice_number,
        vendor_name=data.vendor_name,
        invoice_date=data.invoice_date,
        due_date=data.due_date,
        line_items=data.line_items,
        total_amount=data.total_amount,
        confidence=data.confidence,
        file_name=record.file_name,
        created_at=record.created_at,
    )

@router.get("/", response_model=List[InvoiceResponse])
async def get_invoices(db: Session = Depends(get_db)):
    """Get all invoices with their extracted data."""
    return [to_response(invoice) for invoice in record_service.list_invoices(db)]

@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: str, db: Session = Depends(get_db)):
    """Get a specific invoice by ID."""
    try:
        return to_response(record_service.get_invoice(db, invoice_id))
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Invoice not found")

@router.post("/upload", response_model=InvoiceResponse, status_code=201)
async def upload_invoice(
    file: UploadFile = File(...),
    contract_id: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    processor: DocumentProcessor = Depends(get_document_processor),
):
    """Upload an invoice PDF, optionally linked to a contract."""
    if contract_id:
        try:
            record_service.get_contract(db, contract_id)
        except RecordNotFoundError:
            raise HTTPException(status_code=404, detail="Contract not found")

    processed = await process_upload(db, file, "Invoice", processor.process_invoice)
    record = record_service.create_invoice(
        db, processed.data, processed.tokens, file_name=file.filename, contract_id=contract_id or None
    )
    logger.info(f"Invoice uploaded and processed: {record.id}")
    return to_response(record)

@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str, db: Session = Depends(get_db)):
    """Delete an invoice and its validations."""
    try:
        record_service.delete_invoice(db, invoice_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return {"message": "Invoice deleted successfully"}
