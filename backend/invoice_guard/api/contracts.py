from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel
from loguru import logger
from ..database import get_db
from ..errors import RecordNotFoundError
from ..models.document_models import BillableItem
from ..models.records import ContractRecord
from ..services import record_service
from ..services.document_processor import DocumentProcessor
from .deps import get_document_processor
from .documents import process_upload

router = APIRouter(prefix="/contracts", tags=["contracts"])

class ContractResponse(BaseModel):
    id: str
    contract_number: Optional[str] = None
    vendor_name: str
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    payment_terms: Optional[str] = None
    penalty_clauses: List[str] = []
    compliance_requirements: List[str] = []
    billable_items: List[BillableItem]
    confidence: float
    file_name: Optional[str] = None
    created_at: Optional[datetime] = None

class ContractUpdate(BaseModel):
    vendor_name: Optional[str] = None
    payment_terms: Optional[str] = None

def to_response(record: ContractRecord) -> ContractResponse:
    data = record_service.contract_data(record)
    return ContractResponse(
        id=record.id,
        contract_number=record.contract_number,
        vendor_name=data.vendor_name,
        effective_date=data.effective_date,
        expiration_date=data.expiration_date,
        payment_terms=data.payment_terms,
        penalty_clauses=data.penalty_clauses,
        compliance_requirements=data.compliance_requirements,
        billable_items=data.billable_items,
        confidence=data.confidence,
        file_name=record.file_name,
        created_at=record.created_at,
    )

@router.get("/", response_model=List[ContractResponse])
async def get_contracts(db: Session = Depends(get_db)):
    """Get all contracts."""
    contracts = record_service.list_contracts(db)
    logger.info(f"Retrieved {len(contracts)} contracts from database")
    return [to_response(contract) for contract in contracts]

@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(contract_id: str, db: Session = Depends(get_db)):
    """Get a specific contract by ID."""
    try:
        return to_response(record_service.get_contract(db, contract_id))
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Contract not found")

@router.post("/upload", response_model=ContractResponse, status_code=201)
async def upload_contract(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    processor: DocumentProcessor = Depends(get_document_processor),
):
    """Upload a contract PDF, extract its billable items and store it."""
    processed = await process_upload(db, file, "Contract", processor.process_contract)
    record = record_service.create_contract(db, processed.data, processed.tokens, file_name=file.filename)
    logger.info(f"Contract uploaded and processed: {record.id}")
    return to_response(record)

@router.put("/{contract_id}", response_model=ContractResponse)
async def update_contract(contract_id: str, update: ContractUpdate, db: Session = Depends(get_db)):
    """Correct the vendor name or payment terms of an existing contract."""
    try:
        record = record_service.update_contract(
            db, contract_id, vendor_name=update.vendor_name, payment_terms=update.payment_terms
        )
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Contract not found")
    return to_response(record)

@router.delete("/{contract_id}")
async def delete_contract(contract_id: str, db: Session = Depends(get_db)):
    """Delete a contract and its validations."""
    try:
        record_service.delete_contract(db, contract_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Contract not found")
    return {"message": "Contract deleted successfully"}
