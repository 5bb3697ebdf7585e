"""
Processing faults.

These are distinct from ``ValidationException`` entries, which are business
findings of a successful comparison and are never raised.
"""


class InvoiceGuardError(Exception):
    """Base class for invoice-guard faults."""


class DocumentProcessingError(InvoiceGuardError):
    """A document could not be read or indexed."""


class ExtractionError(InvoiceGuardError):
    """The structured extractor failed or returned an unusable payload."""


class RecordNotFoundError(InvoiceGuardError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} with ID {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class InvalidStatusError(InvoiceGuardError):
    """A review decision outside the allowed validation statuses."""
