import asyncio

import pytest

from invoice_guard.models import (
    BillableItem,
    ComparisonSettings,
    ExceptionType,
    ExtractedContractData,
    ExtractedInvoiceData,
    InvoiceLineItem,
    Severity,
)
from invoice_guard.services import record_service
from invoice_guard.services.comparison_service import compare, revalidate_invoices, validate_invoice
from invoice_guard.services.matching import TokenOverlapMatchStrategy


def _invoice(*line_items, confidence=0.9):
    return ExtractedInvoiceData(invoice_id="INV-1", invoice_number="INV-1", vendor_name="Acme",
                                line_items=list(line_items), confidence=confidence)


def _contract(*items, confidence=0.9):
    return ExtractedContractData(contract_id="C-1", vendor_name="Acme",
                                 billable_items=list(items), confidence=confidence)


class TestCompare:
    def test_mixed_invoice(self, invoice_data, contract_data, invoice_tokens, contract_tokens):
        result = compare(invoice_data, contract_data, invoice_tokens, contract_tokens)

        assert result.invoice_id == "INV-1001"
        assert result.contract_id == "CONTRACT-001"
        assert not result.overall_match
        assert result.total_line_items == 3
        assert result.compliant_line_items == 1
        assert [e.type for e in result.exceptions] == [
            ExceptionType.PRICE_MISMATCH,
            ExceptionType.UNAUTHORIZED_ITEM,
        ]

        mismatch, unauthorized = result.exceptions
        assert mismatch.variance == pytest.approx(450.0)
        assert mismatch.variance_percent == pytest.approx(9.47, abs=0.01)
        assert mismatch.severity is Severity.WARNING
        assert mismatch.contract_term.description == "Surgical Gloves, Size L"
        assert mismatch.proof_data.contract_page_number == 7
        assert mismatch.proof_data.invoice_highlight.y == 200

        assert unauthorized.variance == 100
        assert unauthorized.contract_term is None
        assert unauthorized.proof_data.contract_page_number == 0

        # unauthorized spend is not counted as savings by default
        assert result.total_variance == pytest.approx(450.0)
        assert result.potential_savings == result.total_variance
        assert result.confidence == 0.89

    def test_every_line_item_is_compliant_or_flagged_once(self, invoice_data, contract_data):
        result = compare(invoice_data, contract_data)
        flagged = result.flagged_line_items
        assert result.compliant_line_items + len(result.exceptions) == result.total_line_items
        assert len(flagged) == len({item.description for item in flagged})
        assert result.line_items == invoice_data.line_items

    def test_exceptions_follow_invoice_order(self):
        invoice = _invoice(
            InvoiceLineItem(description="Zeta Service", unit_price=10),
            InvoiceLineItem(description="Widget", quantity=2, unit_price=3),
            InvoiceLineItem(description="Alpha Service", unit_price=10),
        )
        contract = _contract(BillableItem(description="Widget", unit_price=2))
        result = compare(invoice, contract)
        assert [e.line_item.description for e in result.exceptions] == [
            "Zeta Service", "Widget", "Alpha Service",
        ]

    def test_fully_compliant_invoice(self):
        invoice = _invoice(InvoiceLineItem(description="Widget", quantity=5, unit_price=2.005))
        contract = _contract(BillableItem(description="Widget", unit_price=2.0))
        result = compare(invoice, contract)
        assert result.overall_match
        assert result.exceptions == []
        assert result.total_variance == 0.0
        assert result.compliant_line_items == 1

    def test_empty_invoice_matches(self):
        result = compare(_invoice(), _contract(BillableItem(description="Widget", unit_price=2.0)))
        assert result.overall_match
        assert result.total_line_items == 0

    def test_empty_contract_flags_everything(self):
        invoice = _invoice(InvoiceLineItem(description="Widget", quantity=2, unit_price=3))
        result = compare(invoice, _contract())
        assert [e.type for e in result.exceptions] == [ExceptionType.UNAUTHORIZED_ITEM]
        assert result.exceptions[0].variance == 6

    def test_total_variance_sums_price_overcharges(self):
        invoice = _invoice(
            InvoiceLineItem(description="Widget", quantity=10, unit_price=3.0),
            InvoiceLineItem(description="Gadget", quantity=4, unit_price=6.0),
        )
        contract = _contract(
            BillableItem(description="Widget", unit_price=2.0),
            BillableItem(description="Gadget", unit_price=5.0),
        )
        result = compare(invoice, contract)
        assert result.total_variance == pytest.approx(14.0)

    def test_include_unauthorized_in_savings(self, invoice_data, contract_data):
        settings = ComparisonSettings(include_unauthorized_in_savings=True)
        result = compare(invoice_data, contract_data, settings=settings)
        assert result.total_variance == pytest.approx(550.0)
        assert result.potential_savings == pytest.approx(550.0)

    def test_confidence_is_minimum_of_inputs(self):
        result = compare(_invoice(confidence=0.6), _contract(confidence=0.95))
        assert result.confidence == 0.6

    def test_unpriced_contract_term_is_unauthorized(self):
        invoice = _invoice(InvoiceLineItem(description="Setup Fee", unit_price=50))
        contract = _contract(BillableItem(description="Setup Fee", unit_price=0.0))
        result = compare(invoice, contract)
        (exception,) = result.exceptions
        assert exception.type is ExceptionType.UNAUTHORIZED_ITEM
        assert exception.contract_term is None
        assert exception.variance == 50
        assert '"Setup Fee"' in exception.description

    def test_critical_overcharge(self):
        invoice = _invoice(InvoiceLineItem(description="Server Rack", quantity=2, unit_price=1500))
        contract = _contract(BillableItem(description="Server Rack", unit_price=1200))
        (exception,) = compare(invoice, contract).exceptions
        assert exception.severity is Severity.CRITICAL
        assert exception.variance == 600

    def test_overcharge_of_exactly_threshold_is_warning(self):
        invoice = _invoice(InvoiceLineItem(description="Cotton Swabs", quantity=1000, unit_price=1.10))
        contract = _contract(BillableItem(description="Cotton Swabs", unit_price=0.60))
        (exception,) = compare(invoice, contract).exceptions
        assert exception.severity is Severity.WARNING

    def test_settings_change_severity(self, invoice_data, contract_data):
        settings = ComparisonSettings(critical_overcharge_threshold=100)
        result = compare(invoice_data, contract_data, settings=settings)
        assert result.exceptions[0].severity is Severity.CRITICAL

    def test_match_strategy_is_injectable(self):
        invoice = _invoice(InvoiceLineItem(description="Gloves", quantity=10, unit_price=5.0))
        contract = _contract(
            BillableItem(description="Exam Gloves", unit_price=5.0),
            BillableItem(description="Gloves", unit_price=4.0),
        )
        # first substring hit is the compliant "Exam Gloves"
        assert compare(invoice, contract).overall_match
        overlap = compare(invoice, contract, strategy=TokenOverlapMatchStrategy())
        assert overlap.exceptions[0].contract_term.description == "Gloves"

    def test_inputs_are_not_mutated(self, invoice_data, contract_data, invoice_tokens):
        before_invoice = invoice_data.model_dump()
        before_contract = contract_data.model_dump()
        tokens = list(invoice_tokens)
        compare(invoice_data, contract_data, invoice_tokens)
        assert invoice_data.model_dump() == before_invoice
        assert contract_data.model_dump() == before_contract
        assert invoice_tokens == tokens

    def test_repeat_runs_are_identical(self, invoice_data, contract_data, invoice_tokens, contract_tokens):
        first = compare(invoice_data, contract_data, invoice_tokens, contract_tokens)
        second = compare(invoice_data, contract_data, invoice_tokens, contract_tokens)
        assert first == second


class TestStoredValidation:
    def _store(self, db, contract_data, contract_tokens, invoice_data, invoice_tokens):
        contract = record_service.create_contract(db, contract_data, contract_tokens, "contract.pdf")
        invoice = record_service.create_invoice(db, invoice_data, invoice_tokens, "invoice.pdf",
                                                contract_id=contract.id)
        return contract, invoice

    def test_validate_invoice_persists_result(self, db_session, contract_data, contract_tokens,
                                              invoice_data, invoice_tokens):
        contract, invoice = self._store(db_session, contract_data, contract_tokens,
                                        invoice_data, invoice_tokens)

        result = asyncio.run(validate_invoice(db_session, invoice.id, contract.id))

        assert result.invoice_id == invoice.id
        assert result.contract_id == contract.id
        assert result.exceptions[0].proof_data.contract_highlight.y == 150

        (record,) = record_service.list_validations(db_session)
        assert record.exception_count == 2
        assert len(record.exceptions) == 2
        assert record_service.validation_result(record) == result

    def test_revalidation_supersedes_previous(self, db_session, contract_data, contract_tokens,
                                              invoice_data, invoice_tokens):
        contract, invoice = self._store(db_session, contract_data, contract_tokens,
                                        invoice_data, invoice_tokens)
        asyncio.run(validate_invoice(db_session, invoice.id, contract.id))
        results = asyncio.run(revalidate_invoices(db_session, [(invoice.id, contract.id)]))

        assert len(results) == 1
        assert len(record_service.list_validations(db_session)) == 1
