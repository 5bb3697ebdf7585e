from sqlalchemy import Column, String, Float, Integer, DateTime, Date, ForeignKey, JSON, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base

class ContractRecord(Base):
    __tablename__ = "contracts"

    id = Column(String(36), primary_key=True, index=True)
    contract_number = Column(String(255), index=True)  # contract_id as extracted
    vendor_name = Column(String(255), index=True)
    effective_date = Column(Date, nullable=True)
    expiration_date = Column(Date, nullable=True)
    payment_terms = Column(Text, nullable=True)
    confidence = Column(Float, nullable=False, default=0.0)
    data = Column(JSON, nullable=False)  # ExtractedContractData
    tokens = Column(JSON, nullable=False, default=list)  # PositionedToken stream
    file_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    invoices = relationship("InvoiceRecord", back_populates="contract")

class InvoiceRecord(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, index=True)
    contract_id = Column(String(36), ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True)
    invoice_number = Column(String(255), index=True)
    vendor_name = Column(String(255), index=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    confidence = Column(Float, nullable=False, default=0.0)
    data = Column(JSON, nullable=False)  # ExtractedInvoiceData
    tokens = Column(JSON, nullable=False, default=list)
    file_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    contract = relationship("ContractRecord", back_populates="invoices")

class ValidationRecord(Base):
    __tablename__ = "invoice_validations"

    id = Column(String(36), primary_key=True, index=True)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), index=True)
    contract_id = Column(String(36), ForeignKey("contracts.id", ondelete="CASCADE"), index=True)
    vendor_name = Column(String(255), nullable=True)
    overall_status = Column(String(32), nullable=False)
    overall_match = Column(Boolean, nullable=False)
    confidence = Column(Float, nullable=False)
    total_variance = Column(Float, nullable=False, default=0.0)
    potential_savings = Column(Float, nullable=False, default=0.0)
    exception_count = Column(Integer, nullable=False, default=0)
    total_line_items = Column(Integer, nullable=False, default=0)
    compliant_line_items = Column(Integer, nullable=False, default=0)
    result = Column(JSON, nullable=False)  # full ComparisonResult
    validated_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)  # set by a reviewer decision

    exceptions = relationship("ExceptionRecord", back_populates="validation", cascade="all, delete-orphan")

class ExceptionRecord(Base):
    __tablename__ = "validation_exceptions"

    id = Column(String(36), primary_key=True, index=True)
    validation_id = Column(String(36), ForeignKey("invoice_validations.id", ondelete="CASCADE"), index=True)
    summary = Column(Text, nullable=False)
    exception_type = Column(String(64), nullable=False)
    exception_category = Column(String(64), nullable=False)
    severity = Column(String(16), nullable=False)
    message = Column(Text, nullable=False)
    page_number = Column(Integer, nullable=True)
    field_name = Column(Text, nullable=True)
    expected_value = Column(String(64), nullable=True)
    actual_value = Column(String(64), nullable=True)
    variance_amount = Column(Float, nullable=False, default=0.0)
    root_cause = Column(Text, nullable=True)
    recommendation = Column(Text, nullable=True)
    resolved = Column(Boolean, default=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    validation = relationship("ValidationRecord", back_populates="exceptions")

class DocumentMetadata(Base):
    __tablename__ = "document_metadata"

    id = Column(String(36), primary_key=True, index=True)
    file_name = Column(String(255), nullable=False)
    document_type = Column(String(32), nullable=False)  # Contract | Invoice
    upload_date = Column(DateTime(timezone=True), server_default=func.now())
    status = Column(String(32), nullable=False, default="Processing")  # Processing | Completed | Failed
    status_details = Column(Text, nullable=True)
    progress = Column(Integer, nullable=False, default=0)
