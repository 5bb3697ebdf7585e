from typing import NamedTuple, Optional

from ..models.comparison import ComparisonSettings, ExceptionType, Severity
from ..models.document_models import BillableItem, InvoiceLineItem
from .variance import VarianceOutcome


class Classification(NamedTuple):
    type: ExceptionType
    severity: Severity
    variance: float
    variance_percent: Optional[float]
    description: str


def classify_unmatched(line_item: InvoiceLineItem, term: Optional[BillableItem] = None) -> Classification:
    """No usable contract term: the whole line total is unexplained spend.

    ``term`` is set when a contract item matched but carries no valid price.
    """
    if term is None:
        description = f'Item "{line_item.description}" not found in contract'
    else:
        description = (
            f'Item "{line_item.description}" matched contract term "{term.description}" '
            f"which has no valid unit price ({term.unit_price:.2f})"
        )
    return Classification(
        type=ExceptionType.UNAUTHORIZED_ITEM,
        severity=Severity.WARNING,
        variance=line_item.total_price,
        variance_percent=None,
        description=description,
    )


def classify_price_mismatch(outcome: VarianceOutcome, settings: ComparisonSettings) -> Classification:
    severity = (
        Severity.CRITICAL
        if round(outcome.overcharge, 6) > settings.critical_overcharge_threshold
        else Severity.WARNING
    )
    return Classification(
        type=ExceptionType.PRICE_MISMATCH,
        severity=severity,
        variance=outcome.overcharge,
        variance_percent=outcome.variance_percent,
        description=(
            f"Price exceeds contract by {outcome.variance_percent:.1f}% "
            f"(${outcome.price_difference:.2f}/unit)"
        ),
    )
