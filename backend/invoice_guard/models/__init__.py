# This file makes Python treat the 'models' directory as a package.
# SQLAlchemy tables live in .records and are imported from there directly.

from .document_models import (
    BillableItem,
    BoundingBox,
    ExtractedContractData,
    ExtractedInvoiceData,
    InvoiceLineItem,
    PositionedToken,
)
from .comparison import (
    ComparisonResult,
    ComparisonSettings,
    ExceptionType,
    ProofData,
    Severity,
    ValidationException,
    VarianceCalculation,
)

__all__ = [
    "BillableItem",
    "BoundingBox",
    "ComparisonResult",
    "ComparisonSettings",
    "ExceptionType",
    "ExtractedContractData",
    "ExtractedInvoiceData",
    "InvoiceLineItem",
    "PositionedToken",
    "ProofData",
    "Severity",
    "ValidationException",
    "VarianceCalculation",
]
