from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .document_models import BillableItem, BoundingBox, InvoiceLineItem


class ExceptionType(str, Enum):
    PRICE_MISMATCH = "price_mismatch"
    UNAUTHORIZED_ITEM = "unauthorized_item"
    # Reserved for quantity-cap and contract-validity rules
    QUANTITY_EXCEEDED = "quantity_exceeded"
    EXPIRED_CONTRACT = "expired_contract"
    INFO = "info"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ComparisonSettings(BaseModel):
    """Tolerance and severity policy for one comparison run."""
    model_config = ConfigDict(frozen=True)

    price_tolerance: float = Field(default=0.01, ge=0)
    critical_overcharge_threshold: float = Field(default=500.0, ge=0)
    include_unauthorized_in_savings: bool = False


class VarianceCalculation(BaseModel):
    model_config = ConfigDict(frozen=True)

    contract_price: float
    invoice_price: float
    difference: float
    quantity: float
    total_overcharge: float


class ProofData(BaseModel):
    """Side-by-side evidence for one exception. Derived, safe to regenerate."""
    model_config = ConfigDict(frozen=True)

    contract_page_number: int = 0
    contract_text: str = ""
    contract_highlight: BoundingBox = Field(default_factory=BoundingBox)
    invoice_page_number: int
    invoice_text: str
    invoice_highlight: BoundingBox = Field(default_factory=BoundingBox)
    variance_calculation: VarianceCalculation


class ValidationException(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ExceptionType
    severity: Severity
    line_item: InvoiceLineItem
    contract_term: Optional[BillableItem] = None
    variance: float = 0.0
    variance_percent: Optional[float] = None
    description: str
    proof_data: ProofData


class ComparisonResult(BaseModel):
    invoice_id: str
    contract_id: str
    overall_match: bool
    confidence: float
    exceptions: List[ValidationException] = Field(default_factory=list)
    total_variance: float = 0.0
    potential_savings: float = 0.0
    total_line_items: int = 0
    compliant_line_items: int = 0
    line_items: List[InvoiceLineItem] = Field(default_factory=list)

    @property
    def flagged_line_items(self) -> List[InvoiceLineItem]:
        return [exception.line_item for exception in self.exceptions]
