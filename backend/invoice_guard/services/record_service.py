"""
Record-store access for contracts, invoices, validations and document status.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from ..errors import InvalidStatusError, RecordNotFoundError
from ..models.comparison import ComparisonResult
from ..models.document_models import ExtractedContractData, ExtractedInvoiceData, PositionedToken
from ..models.records import (
    ContractRecord,
    DocumentMetadata,
    ExceptionRecord,
    InvoiceRecord,
    ValidationRecord,
)
from .record_mapping import APPROVED, REJECTED, exception_to_record_fields, summary_to_record_fields


def _new_id() -> str:
    return str(uuid.uuid4())


def _dump_tokens(tokens: List[PositionedToken]) -> list:
    return [token.model_dump() for token in tokens]


# --- Contracts ---

def create_contract(
    db: Session,
    data: ExtractedContractData,
    tokens: List[PositionedToken],
    file_name: Optional[str] = None,
) -> ContractRecord:
    record = ContractRecord(
        id=_new_id(),
        contract_number=data.contract_id,
        vendor_name=data.vendor_name,
        effective_date=data.effective_date,
        expiration_date=data.expiration_date,
        payment_terms=data.payment_terms,
        confidence=data.confidence,
        data=data.model_dump(mode="json"),
        tokens=_dump_tokens(tokens),
        file_name=file_name,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Contract stored: {record.id} ({len(data.billable_items)} billable items)")
    return record


def get_contract(db: Session, contract_id: str) -> ContractRecord:
    record = db.get(ContractRecord, contract_id)
    if record is None:
        raise RecordNotFoundError("Contract", contract_id)
    return record


def list_contracts(db: Session) -> List[ContractRecord]:
    return db.query(ContractRecord).order_by(ContractRecord.created_at.desc()).all()


def delete_contract(db: Session, contract_id: str) -> None:
    record = get_contract(db, contract_id)
    for validation in db.query(ValidationRecord).filter(ValidationRecord.contract_id == contract_id).all():
        db.delete(validation)
    db.delete(record)
    db.commit()
    logger.info(f"Contract deleted: {contract_id}")


def update_contract(
    db: Session,
    contract_id: str,
    vendor_name: Optional[str] = None,
    payment_terms: Optional[str] = None,
) -> ContractRecord:
    """Correct the vendor or payment terms of a stored contract.

    Billable items are left as extracted; re-upload the document to change them.
    """
    record = get_contract(db, contract_id)
    data = dict(record.data)
    if vendor_name is not None:
        record.vendor_name = vendor_name
        data["vendor_name"] = vendor_name
    if payment_terms is not None:
        record.payment_terms = payment_terms
        data["payment_terms"] = payment_terms
    record.data = data
    db.commit()
    db.refresh(record)
    logger.info(f"Contract updated: {contract_id}")
    return record


def contract_data(record: ContractRecord) -> ExtractedContractData:
    """Stored contract payload, identified by its record ID."""
    return ExtractedContractData.model_validate(record.data).model_copy(update={"contract_id": record.id})


# --- Invoices ---

def create_invoice(
    db: Session,
    data: ExtractedInvoiceData,
    tokens: List[PositionedToken],
    file_name: Optional[str] = None,
    contract_id: Optional[str] = None,
) -> InvoiceRecord:
    if contract_id is not None:
        get_contract(db, contract_id)
    record = InvoiceRecord(
        id=_new_id(),
        contract_id=contract_id,
        invoice_number=data.invoice_number,
        vendor_name=data.vendor_name,
        total_amount=data.total_amount,
        confidence=data.confidence,
        data=data.model_dump(mode="json"),
        tokens=_dump_tokens(tokens),
        file_name=file_name,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Invoice stored: {record.id} ({len(data.line_items)} line items)")
    return record


def get_invoice(db: Session, invoice_id: str) -> InvoiceRecord:
    record = db.get(InvoiceRecord, invoice_id)
    if record is None:
        raise RecordNotFoundError("Invoice", invoice_id)
    return record


def list_invoices(db: Session) -> List[InvoiceRecord]:
    return db.query(InvoiceRecord).order_by(InvoiceRecord.created_at.desc()).all()


def delete_invoice(db: Session, invoice_id: str) -> None:
    record = get_invoice(db, invoice_id)
    for validation in db.query(ValidationRecord).filter(ValidationRecord.invoice_id == invoice_id).all():
        db.delete(validation)
    db.delete(record)
    db.commit()
    logger.info(f"Invoice deleted: {invoice_id}")


def invoice_data(record: InvoiceRecord) -> ExtractedInvoiceData:
    return ExtractedInvoiceData.model_validate(record.data).model_copy(update={"invoice_id": record.id})


def load_tokens(record) -> List[PositionedToken]:
    return [PositionedToken.model_validate(token) for token in (record.tokens or [])]


# --- Validations ---

def save_validation(db: Session, result: ComparisonResult, vendor_name: Optional[str] = None) -> ValidationRecord:
    """Persist a comparison, replacing any earlier one for the same pair."""
    previous = (
        db.query(ValidationRecord)
        .filter(
            ValidationRecord.invoice_id == result.invoice_id,
            ValidationRecord.contract_id == result.contract_id,
        )
        .all()
    )
    for record in previous:
        logger.info(f"Superseding validation {record.id} for invoice {result.invoice_id}")
        db.delete(record)

    validation = ValidationRecord(
        id=_new_id(),
        result=result.model_dump(mode="json"),
        **summary_to_record_fields(result, vendor_name),
    )
    validation.exceptions = [
        ExceptionRecord(id=_new_id(), **exception_to_record_fields(exception))
        for exception in result.exceptions
    ]
    db.add(validation)
    db.commit()
    db.refresh(validation)
    return validation


def get_validation(db: Session, validation_id: str) -> ValidationRecord:
    record = db.get(ValidationRecord, validation_id)
    if record is None:
        raise RecordNotFoundError("Validation", validation_id)
    return record


def list_validations(db: Session) -> List[ValidationRecord]:
    return db.query(ValidationRecord).order_by(ValidationRecord.validated_at.desc()).all()


def validation_result(record: ValidationRecord) -> ComparisonResult:
    return ComparisonResult.model_validate(record.result)


def set_validation_status(db: Session, validation_id: str, status: str) -> ValidationRecord:
    """Record a reviewer's decision. Only Approved and Rejected can be set;
    Under Review is the state a comparison with exceptions starts in."""
    if status not in (APPROVED, REJECTED):
        raise InvalidStatusError(f"Status must be '{APPROVED}' or '{REJECTED}', got '{status}'")
    record = get_validation(db, validation_id)
    previous = record.overall_status
    record.overall_status = status
    record.reviewed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(record)
    logger.info(f"Validation {validation_id} status changed: {previous} -> {status}")
    return record


def resolve_exception(db: Session, validation_id: str, exception_id: str, resolved: bool = True) -> ExceptionRecord:
    record = db.get(ExceptionRecord, exception_id)
    if record is None or record.validation_id != validation_id:
        raise RecordNotFoundError("Exception", exception_id)
    record.resolved = resolved
    record.resolved_at = datetime.now(timezone.utc) if resolved else None
    db.commit()
    db.refresh(record)
    logger.info(f"Exception {exception_id} of validation {validation_id} marked resolved={resolved}")
    return record


# --- Document metadata ---

def start_document(db: Session, file_name: str, document_type: str) -> DocumentMetadata:
    record = DocumentMetadata(
        id=_new_id(),
        file_name=file_name,
        document_type=document_type,
        status="Processing",
        progress=10,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def finish_document(db: Session, record: DocumentMetadata, details: Optional[str] = None) -> DocumentMetadata:
    record.status = "Completed"
    record.status_details = details
    record.progress = 100
    db.commit()
    db.refresh(record)
    return record


def fail_document(db: Session, record: DocumentMetadata, details: str) -> DocumentMetadata:
    record.status = "Failed"
    record.status_details = details
    db.commit()
    db.refresh(record)
    return record


def list_documents(db: Session) -> List[DocumentMetadata]:
    return db.query(DocumentMetadata).order_by(DocumentMetadata.upload_date.desc()).all()
