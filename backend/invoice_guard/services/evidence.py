"""
Proof/audit builder.

Locates the text of a line item or contract term in a document's positioned
token stream and assembles the side-by-side ``ProofData`` shown for each
exception. Everything here is a pure function of its inputs.
"""

from typing import List, Optional, Sequence

from ..models.comparison import ProofData, VarianceCalculation
from ..models.document_models import BillableItem, BoundingBox, InvoiceLineItem, PositionedToken

NO_CONTRACT_MATCH_TEXT = "No matching term found in contract"


def _matched_run_length(page_tokens: Sequence[PositionedToken], start: int, words: Sequence[str]) -> int:
    """Number of consecutive tokens from ``start`` that contain the search
    words in order. The run stops at the first token that misses."""
    count = 0
    while (
        count < len(words)
        and start + count < len(page_tokens)
        and words[count] in page_tokens[start + count].text.lower()
    ):
        count += 1
    return count


def _union_box(run: Sequence[PositionedToken]) -> BoundingBox:
    first, last = run[0], run[-1]
    return BoundingBox(
        x=first.x,
        y=first.y,
        width=(last.x + last.width) - first.x,
        height=max(token.height for token in run),
    )


def find_evidence(tokens: Sequence[PositionedToken], search_text: str, page: int) -> BoundingBox:
    """Bounding box of the longest token run on ``page`` matching ``search_text``.

    Each search word must be a case-insensitive substring of the next token,
    with no gaps. Whitespace-only tokens are dropped before the search, so
    they neither break a run nor count toward it. Returns a zero-area box
    when nothing on the page matches.
    """
    words = search_text.lower().split()
    if not words:
        return BoundingBox()

    page_tokens: List[PositionedToken] = [
        token for token in tokens if token.page == page and token.text.strip()
    ]

    best_start, best_count = 0, 0
    for start in range(len(page_tokens)):
        count = _matched_run_length(page_tokens, start, words)
        if count > best_count:
            best_start, best_count = start, count
            if best_count == len(words):
                break

    if best_count == 0:
        return BoundingBox()
    return _union_box(page_tokens[best_start:best_start + best_count])


def _format_money(value: float) -> str:
    return f"${value:,.2f}"


def _invoice_text(line_item: InvoiceLineItem) -> str:
    return (
        f"{line_item.description}\n"
        f"Quantity: {line_item.quantity:g}\n"
        f"Unit Price: {_format_money(line_item.unit_price)}\n"
        f"Total: {_format_money(line_item.total_price)}"
    )


def _contract_text(term: BillableItem) -> str:
    text = f"{term.description}\nUnit Price: {_format_money(term.unit_price)} per {term.unit}"
    if term.conditions:
        text += f"\n{term.conditions}"
    return text


def build_proof(
    line_item: InvoiceLineItem,
    term: Optional[BillableItem],
    invoice_tokens: Sequence[PositionedToken],
    contract_tokens: Sequence[PositionedToken],
) -> ProofData:
    """Proof record for one flagged line item.

    Without a contract term the contract side is empty and the whole line
    total counts as overcharge.
    """
    invoice_highlight = find_evidence(invoice_tokens, line_item.description, line_item.page_number)

    if term is None:
        return ProofData(
            contract_page_number=0,
            contract_text=NO_CONTRACT_MATCH_TEXT,
            contract_highlight=BoundingBox(),
            invoice_page_number=line_item.page_number,
            invoice_text=_invoice_text(line_item),
            invoice_highlight=invoice_highlight,
            variance_calculation=VarianceCalculation(
                contract_price=0.0,
                invoice_price=line_item.unit_price,
                difference=line_item.unit_price,
                quantity=line_item.quantity,
                total_overcharge=line_item.total_price,
            ),
        )

    difference = line_item.unit_price - term.unit_price
    return ProofData(
        contract_page_number=term.page_number,
        contract_text=_contract_text(term),
        contract_highlight=find_evidence(contract_tokens, term.description, term.page_number),
        invoice_page_number=line_item.page_number,
        invoice_text=_invoice_text(line_item),
        invoice_highlight=invoice_highlight,
        variance_calculation=VarianceCalculation(
            contract_price=term.unit_price,
            invoice_price=line_item.unit_price,
            difference=difference,
            quantity=line_item.quantity,
            total_overcharge=difference * line_item.quantity,
        ),
    )
