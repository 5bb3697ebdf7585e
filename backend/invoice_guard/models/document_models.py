from typing import List, Optional, Any
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.strptime(text[:10], "%Y-%m-%d").date()
        except ValueError:
            return None
    return None


class BillableItem(BaseModel):
    """A priced term from a contract. Immutable once extracted."""
    model_config = ConfigDict(frozen=True)

    description: str
    unit_price: float = Field(ge=0)
    unit: str = "each"
    quantity: Optional[float] = Field(default=None, ge=0)
    conditions: Optional[str] = None
    page_number: int = Field(default=1, ge=1)
    confidence: float = Field(default=1.0, ge=0, le=1)

    @field_validator("unit", mode="before")
    @classmethod
    def default_unit(cls, value):
        return value or "each"


class InvoiceLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    quantity: float = Field(default=1.0, ge=0)
    unit_price: float = Field(ge=0)
    total_price: float = Field(default=0.0, ge=0)
    page_number: int = Field(default=1, ge=1)

    @model_validator(mode="before")
    @classmethod
    def fill_total_from_unit_price_and_quantity(cls, values: Any) -> Any:
        if isinstance(values, dict) and values.get("total_price") is None:
            values = dict(values)
            try:
                q = float(values.get("quantity") if values.get("quantity") is not None else 1.0)
                up = float(values.get("unit_price") or 0.0)
                values["total_price"] = round(q * up, 2)
            except (ValueError, TypeError):
                # leave it to field validation to reject the bad numbers
                pass
        return values


class ExtractedContractData(BaseModel):
    contract_id: str
    vendor_name: str = "Unknown Vendor"
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    billable_items: List[BillableItem] = Field(default_factory=list)
    payment_terms: Optional[str] = None
    penalty_clauses: List[str] = Field(default_factory=list)
    compliance_requirements: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=1)

    @field_validator("effective_date", "expiration_date", mode="before")
    @classmethod
    def parse_contract_date(cls, value):
        return _parse_date(value)

    @field_validator("vendor_name", mode="before")
    @classmethod
    def set_default_vendor_name(cls, value):
        return value or "Unknown Vendor"

    @field_validator("penalty_clauses", "compliance_requirements", mode="before")
    @classmethod
    def none_to_empty_list(cls, value):
        return value if value is not None else []


class ExtractedInvoiceData(BaseModel):
    invoice_id: str
    invoice_number: str = "Unknown"
    vendor_name: str = "Unknown Vendor"
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    line_items: List[InvoiceLineItem] = Field(default_factory=list)
    total_amount: float = 0.0
    confidence: float = Field(ge=0, le=1)

    @field_validator("invoice_date", "due_date", mode="before")
    @classmethod
    def parse_date(cls, value):
        return _parse_date(value)

    @field_validator("vendor_name", mode="before")
    @classmethod
    def set_default_vendor_name(cls, value):
        return value or "Unknown Vendor"

    @model_validator(mode="after")
    def calculate_total_from_items_if_zero(self) -> "ExtractedInvoiceData":
        if not self.total_amount and self.line_items:
            self.total_amount = round(sum(item.total_price for item in self.line_items), 2)
        return self


class PositionedToken(BaseModel):
    """One text fragment of a PDF page with its origin and extent."""
    model_config = ConfigDict(frozen=True)

    text: str
    page: int = Field(ge=1)
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0


class BoundingBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.width == 0 and self.height == 0
