"""
Mapping of comparison output onto record-store fields.
"""

from typing import Any, Dict, Optional

from ..models.comparison import ComparisonResult, ExceptionType, ValidationException

_DISPLAY_TYPES = {
    ExceptionType.PRICE_MISMATCH: "Price Mismatch",
    ExceptionType.QUANTITY_EXCEEDED: "Quantity Exceeded",
    ExceptionType.UNAUTHORIZED_ITEM: "Business Rule",
    ExceptionType.EXPIRED_CONTRACT: "Expired Contract",
    ExceptionType.INFO: "Informational",
}

_CATEGORIES = {
    ExceptionType.PRICE_MISMATCH: "Out of Range",
    ExceptionType.QUANTITY_EXCEEDED: "Out of Range",
    ExceptionType.UNAUTHORIZED_ITEM: "Permission Denied",
    ExceptionType.EXPIRED_CONTRACT: "Missing Data",
}

_RECOMMENDATIONS = {
    ExceptionType.PRICE_MISMATCH: (
        "Review contract pricing terms and invoice unit price. "
        "Contact vendor if overcharge is confirmed."
    ),
    ExceptionType.QUANTITY_EXCEEDED: (
        "Verify purchase order against invoice quantity. "
        "Check for partial shipments or billing errors."
    ),
    ExceptionType.UNAUTHORIZED_ITEM: (
        "Confirm if item should be added to the contract or if it was billed in error."
    ),
    ExceptionType.EXPIRED_CONTRACT: (
        "Invoice is for a contract that has expired. Check for a contract renewal or extension."
    ),
}

_ROOT_CAUSES = {
    ExceptionType.PRICE_MISMATCH: "Invoice unit price is above the contracted rate.",
    ExceptionType.QUANTITY_EXCEEDED: "Invoiced quantity is above the contracted quantity.",
    ExceptionType.UNAUTHORIZED_ITEM: "Billed item has no priced term in the contract.",
    ExceptionType.EXPIRED_CONTRACT: "Invoice date falls outside the contract period.",
}

APPROVED = "Approved"
UNDER_REVIEW = "Under Review"
REJECTED = "Rejected"


def display_type(exception_type: ExceptionType) -> str:
    return _DISPLAY_TYPES.get(exception_type, "General Exception")


def category_for(exception_type: ExceptionType) -> str:
    return _CATEGORIES.get(exception_type, "General")


def recommendation_for(exception_type: ExceptionType) -> str:
    return _RECOMMENDATIONS.get(exception_type, "Manual review required.")


def root_cause_for(exception_type: ExceptionType) -> str:
    return _ROOT_CAUSES.get(exception_type, "Data mismatch between invoice and contract.")


def exception_to_record_fields(exception: ValidationException) -> Dict[str, Any]:
    """Fields of a ``validation_exceptions`` row for one exception."""
    return {
        "summary": f"{exception.type.value}: {exception.description}",
        "exception_type": display_type(exception.type),
        "exception_category": category_for(exception.type),
        "severity": exception.severity.value,
        "message": exception.description,
        "page_number": exception.line_item.page_number,
        "field_name": exception.line_item.description,
        "expected_value": (
            f"{exception.contract_term.unit_price:.2f}" if exception.contract_term else "N/A"
        ),
        "actual_value": f"{exception.line_item.unit_price:.2f}",
        "variance_amount": round(exception.variance, 2),
        "root_cause": root_cause_for(exception.type),
        "recommendation": recommendation_for(exception.type),
        "resolved": False,
    }


def summary_to_record_fields(result: ComparisonResult, vendor_name: Optional[str] = None) -> Dict[str, Any]:
    """Fields of an ``invoice_validations`` row for one comparison."""
    return {
        "invoice_id": result.invoice_id,
        "contract_id": result.contract_id,
        "vendor_name": vendor_name,
        "overall_status": APPROVED if result.overall_match else UNDER_REVIEW,
        "overall_match": result.overall_match,
        "confidence": result.confidence,
        "total_variance": round(result.total_variance, 2),
        "potential_savings": round(result.potential_savings, 2),
        "exception_count": len(result.exceptions),
        "total_line_items": result.total_line_items,
        "compliant_line_items": result.compliant_line_items,
    }
