import asyncio
from typing import List, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from ..models.comparison import ComparisonResult, ComparisonSettings, ValidationException
from ..models.document_models import ExtractedContractData, ExtractedInvoiceData, PositionedToken
from . import record_service
from .classifier import classify_price_mismatch, classify_unmatched
from .evidence import build_proof
from .matching import MatchStrategy, find_matching_item
from .variance import evaluate_variance


def compare(
    invoice_data: ExtractedInvoiceData,
    contract_data: ExtractedContractData,
    invoice_tokens: Sequence[PositionedToken] = (),
    contract_tokens: Sequence[PositionedToken] = (),
    settings: Optional[ComparisonSettings] = None,
    strategy: Optional[MatchStrategy] = None,
) -> ComparisonResult:
    """Validate every invoice line item against the contract's billable items.

    Each line item ends up either compliant or with exactly one exception,
    in invoice order. Findings are reported in the result, never raised.
    """
    settings = settings or ComparisonSettings()
    exceptions: List[ValidationException] = []
    total_variance = 0.0
    compliant = 0

    for line_item in invoice_data.line_items:
        term = find_matching_item(line_item.description, contract_data.billable_items, strategy)
        outcome = evaluate_variance(line_item, term, settings) if term is not None else None

        if outcome is None:
            classification = classify_unmatched(line_item, term)
            if settings.include_unauthorized_in_savings:
                total_variance += classification.variance
            proof_term = None
        elif outcome.within_tolerance:
            logger.debug(f"Line item '{line_item.description}' compliant with '{term.description}'")
            compliant += 1
            continue
        else:
            classification = classify_price_mismatch(outcome, settings)
            total_variance += outcome.overcharge
            proof_term = term

        logger.debug(
            f"Line item '{line_item.description}' flagged: {classification.type.value} "
            f"({classification.severity.value}, variance {classification.variance:.2f})"
        )
        exceptions.append(
            ValidationException(
                type=classification.type,
                severity=classification.severity,
                line_item=line_item,
                contract_term=proof_term,
                variance=classification.variance,
                variance_percent=classification.variance_percent,
                description=classification.description,
                proof_data=build_proof(line_item, proof_term, invoice_tokens, contract_tokens),
            )
        )

    result = ComparisonResult(
        invoice_id=invoice_data.invoice_id,
        contract_id=contract_data.contract_id,
        overall_match=not exceptions,
        confidence=min(invoice_data.confidence, contract_data.confidence),
        exceptions=exceptions,
        total_variance=total_variance,
        potential_savings=total_variance,
        total_line_items=len(invoice_data.line_items),
        compliant_line_items=compliant,
        line_items=list(invoice_data.line_items),
    )
    logger.info(
        f"Compared invoice {result.invoice_id} to contract {result.contract_id}: "
        f"{len(exceptions)} exception(s), {compliant}/{result.total_line_items} compliant, "
        f"variance {total_variance:.2f}"
    )
    return result


def _load_pair(db: Session, invoice_id: str, contract_id: str):
    invoice = record_service.get_invoice(db, invoice_id)
    contract = record_service.get_contract(db, contract_id)
    return (
        record_service.invoice_data(invoice),
        record_service.contract_data(contract),
        record_service.load_tokens(invoice),
        record_service.load_tokens(contract),
    )


async def validate_invoice(
    db: Session,
    invoice_id: str,
    contract_id: str,
    settings: Optional[ComparisonSettings] = None,
) -> ComparisonResult:
    """Compare a stored invoice with a stored contract and persist the result."""
    invoice_data, contract_data, invoice_tokens, contract_tokens = _load_pair(db, invoice_id, contract_id)
    result = compare(invoice_data, contract_data, invoice_tokens, contract_tokens, settings)
    record_service.save_validation(db, result, vendor_name=invoice_data.vendor_name)
    return result


async def revalidate_invoices(
    db: Session,
    pairs: Sequence[Tuple[str, str]],
    settings: Optional[ComparisonSettings] = None,
) -> List[ComparisonResult]:
    """Revalidate several (invoice_id, contract_id) pairs.

    Records are loaded and saved on the caller's session; the comparisons
    themselves share no state and run in worker threads.
    """
    loaded = [_load_pair(db, invoice_id, contract_id) for invoice_id, contract_id in pairs]
    results = await asyncio.gather(*(
        asyncio.to_thread(compare, invoice_data, contract_data, invoice_tokens, contract_tokens, settings)
        for invoice_data, contract_data, invoice_tokens, contract_tokens in loaded
    ))
    for (invoice_data, *_), result in zip(loaded, results):
        record_service.save_validation(db, result, vendor_name=invoice_data.vendor_name)
    logger.info(f"Revalidated {len(results)} invoice/contract pair(s)")
    return list(results)
