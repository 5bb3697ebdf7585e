from typing import NamedTuple, Optional

from ..models.comparison import ComparisonSettings
from ..models.document_models import BillableItem, InvoiceLineItem


class VarianceOutcome(NamedTuple):
    price_difference: float
    variance_percent: float
    overcharge: float
    within_tolerance: bool


def has_valid_contract_price(term: BillableItem) -> bool:
    return term.unit_price > 0


def evaluate_variance(
    line_item: InvoiceLineItem,
    term: BillableItem,
    settings: ComparisonSettings,
) -> Optional[VarianceOutcome]:
    """Price variance of a line item against its matched contract term.

    Returns None when the contract price is not positive; such a term cannot
    be evaluated and the caller treats the item as unmatched. Undercharges
    are within tolerance: only billing above contract is flagged.
    """
    if not has_valid_contract_price(term):
        return None

    price_difference = line_item.unit_price - term.unit_price
    # rounding absorbs float noise such as 4.76 - 4.75 == 0.0100000000000002
    if round(price_difference, 6) <= settings.price_tolerance:
        return VarianceOutcome(price_difference, 0.0, 0.0, True)

    variance_percent = price_difference / term.unit_price * 100
    overcharge = price_difference * line_item.quantity
    return VarianceOutcome(price_difference, variance_percent, overcharge, False)
