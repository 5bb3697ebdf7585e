"""
conftest.py - Test configuration and shared fixtures.

Environment is prepared in pytest_configure so invoice_guard.config picks up
a throwaway SQLite database and log file when it is first imported.
"""

import os
import tempfile

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="invoice_guard_tests_")


def pytest_configure(config):
    """Run before test collection. Point settings at temporary resources."""
    os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
    os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "test_invoice_guard.log")
    os.environ.setdefault("GEMINI_API_KEY", "test-key")
    os.environ.setdefault("LOG_LEVEL", "DEBUG")


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def contract_data():
    from invoice_guard.models import BillableItem, ExtractedContractData

    return ExtractedContractData(
        contract_id="CONTRACT-001",
        vendor_name="MediSupply Corp",
        effective_date="2025-01-01",
        expiration_date="2025-12-31",
        billable_items=[
            BillableItem(description="Surgical Gloves, Size L", unit_price=4.75, unit="box",
                         quantity=1000, page_number=7, confidence=0.98),
            BillableItem(description="N95 Respirator Masks", unit_price=1.25, unit="each",
                         page_number=7, confidence=0.96),
            BillableItem(description="Syringes, 10ml", unit_price=0.45, unit="each",
                         page_number=8, confidence=0.97),
        ],
        payment_terms="Net 30 days from invoice date",
        penalty_clauses=["Late payment: 1.5% per month"],
        compliance_requirements=["ISO 13485 certified"],
        confidence=0.89,
    )


@pytest.fixture
def invoice_data():
    from invoice_guard.models import ExtractedInvoiceData, InvoiceLineItem

    return ExtractedInvoiceData(
        invoice_id="INV-1001",
        invoice_number="INV-1001",
        vendor_name="MediSupply Corp",
        invoice_date="2025-03-01",
        due_date="2025-03-31",
        line_items=[
            InvoiceLineItem(description="Surgical Gloves, Size L", quantity=1000,
                            unit_price=5.20, total_price=5200, page_number=2),
            InvoiceLineItem(description="N95 Respirator Masks", quantity=500,
                            unit_price=1.25, total_price=625, page_number=2),
            InvoiceLineItem(description="Unlisted Service", quantity=1,
                            unit_price=100, total_price=100, page_number=3),
        ],
        confidence=0.96,
    )


def make_tokens(page, y, words, x=50.0, width=40.0, gap=5.0, height=12.0):
    from invoice_guard.models import PositionedToken

    tokens = []
    for word in words:
        tokens.append(PositionedToken(text=word, page=page, x=x, y=y, width=width, height=height))
        x += width + gap
    return tokens


@pytest.fixture
def token_factory():
    return make_tokens


@pytest.fixture
def contract_tokens():
    return (
        make_tokens(7, 100, ["Pricing", "Schedule"])
        + make_tokens(7, 150, ["Surgical", "Gloves,", "Size", "L", "$4.75", "per", "box"])
        + make_tokens(7, 170, ["N95", "Respirator", "Masks", "$1.25"])
        + make_tokens(8, 100, ["Syringes,", "10ml", "$0.45"])
    )


@pytest.fixture
def invoice_tokens():
    return (
        make_tokens(2, 200, ["Surgical", "Gloves,", "Size", "L", "1000", "$5.20", "$5,200.00"])
        + make_tokens(2, 220, ["N95", "Respirator", "Masks", "500", "$1.25", "$625.00"])
        + make_tokens(3, 90, ["Unlisted", "Service", "1", "$100.00"])
    )


# ---------------------------------------------------------------------------
# Record store and API fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db_session():
    from invoice_guard.database import Base, SessionLocal, engine, init_db

    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


class FakeProcessor:
    """DocumentProcessor stand-in returning canned extraction results."""

    def __init__(self, contract, contract_tokens, invoice, invoice_tokens):
        self.contract = contract
        self.contract_tokens = contract_tokens
        self.invoice = invoice
        self.invoice_tokens = invoice_tokens

    def _check(self, file_content):
        from invoice_guard.errors import ExtractionError

        if file_content == b"broken":
            raise ExtractionError("Failed to extract: model returned no JSON object")

    def process_contract(self, file_content, file_name):
        from invoice_guard.services.document_processor import ProcessedDocument

        self._check(file_content)
        return ProcessedDocument(data=self.contract, tokens=self.contract_tokens, full_text="contract")

    def process_invoice(self, file_content, file_name):
        from invoice_guard.services.document_processor import ProcessedDocument

        self._check(file_content)
        return ProcessedDocument(data=self.invoice, tokens=self.invoice_tokens, full_text="invoice")


@pytest.fixture
def fake_processor(contract_data, contract_tokens, invoice_data, invoice_tokens):
    return FakeProcessor(contract_data, contract_tokens, invoice_data, invoice_tokens)


@pytest.fixture
def client(fake_processor):
    from fastapi.testclient import TestClient

    from invoice_guard import create_app
    from invoice_guard.api.deps import get_document_processor
    from invoice_guard.database import Base, engine

    app = create_app()
    app.dependency_overrides[get_document_processor] = lambda: fake_processor
    with TestClient(app) as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine)
