from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Rounding slack allowed between grand_total and total_amount + taxes
TOTAL_TOLERANCE = 0.01

NO_PUMP = "None"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    PARTIALLY_PAID = "Partially Paid"


class InventoryCategory(str, Enum):
    PUMP = "Pump"
    MOTOR = "Motor"
    PIPE = "Pipe"
    VALVE = "Valve"
    ELECTRICAL = "Electrical"
    ACCESSORY = "Accessory"


class DispatchChannel(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    SMS = "sms"


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class InventoryItemIn(BaseModel):
    """Inventory item as entered by an operator (no id yet)"""
    name: str = Field(..., min_length=1)
    category: InventoryCategory
    quantity: int = Field(0, ge=0, description="Units on hand")
    price: float = Field(..., ge=0, description="Unit price in rupees")
    reorder_level: int = Field(0, ge=0, description="Low-stock threshold")
    unit: str = Field("piece")
    description: Optional[str] = None
    last_restocked_date: datetime = Field(default_factory=_utcnow)


class InventoryItem(InventoryItemIn):
    id: str

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_level


class BillTemplate(BaseModel):
    """Company identity and boilerplate printed on every invoice"""
    company_name: str = "Borewell Services & Equipment"
    company_address: str = "123 Water Street, Groundwater City"
    company_phone: str = "+91 98765 43210"
    company_email: str = "info@borewellservices.com"
    company_website: str = "www.borewellservices.com"
    company_logo: str = ""
    footer: str = "Thank you for your business!"
    terms_and_conditions: List[str] = Field(default_factory=lambda: [
        "Payment is due within 15 days of invoice date.",
        "Warranty period for pump equipment is 12 months from date of installation.",
        "Service warranty is valid for 90 days.",
    ])


class ServiceSelection(BaseModel):
    """The priced part of a service job"""
    service_type: str = Field(..., min_length=1)
    borewell_depth: Optional[float] = Field(None, ge=0, description="Depth in feet")
    pump_type: Optional[str] = None
    pump_model: Optional[str] = None
    accessories: List[str] = Field(default_factory=list)

    @field_validator("accessories")
    @classmethod
    def dedupe_accessories(cls, value: List[str]) -> List[str]:
        return _unique(value)

    @model_validator(mode="after")
    def check_pump_model(self) -> "ServiceSelection":
        # A bare pump type would match whichever model of that type comes first in inventory
        if self.has_pump and not (self.pump_model or "").strip():
            raise ValueError(f"pump_model is required when pump_type is {self.pump_type!r}")
        return self

    @property
    def has_pump(self) -> bool:
        return bool(self.pump_type) and self.pump_type != NO_PUMP

    @property
    def pump_name(self) -> str:
        return f"{self.pump_type or ''} {self.pump_model or ''}".strip()


class CustomerIntake(ServiceSelection):
    """Customer intake form: contact details plus the service selection"""
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    address: str = ""
    email: Optional[str] = None
    service_date: date = Field(default_factory=date.today)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    # Manually entered pre-tax amount; replaces the computed base when set
    total_amount: Optional[float] = Field(None, ge=0)


class BillBreakdown(BaseModel):
    base_amount: float
    tax_amount: float
    grand_total: float


class StockViolation(BaseModel):
    item_name: str
    kind: str = Field(..., description="pump or accessory")
    reason: str = Field(..., description="missing or out_of_stock")

    @property
    def message(self) -> str:
        if self.reason == "missing":
            return f"{self.item_name} is not in inventory"
        return f"{self.item_name} is out of stock"


class CustomerRecord(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    address: str = ""
    email: Optional[str] = None
    service_date: date
    service_type: str
    borewell_depth: Optional[float] = Field(None, ge=0)
    pump_type: Optional[str] = None
    pump_model: Optional[str] = None
    accessories: List[str] = Field(default_factory=list)
    total_amount: float = Field(..., ge=0)
    taxes: float = Field(..., ge=0)
    grand_total: float = Field(..., ge=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    bill_id: str = ""
    amount_in_words: str = ""
    qr_code_url: str = ""
    tax_overridden: bool = False
    override_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    @field_validator("accessories")
    @classmethod
    def dedupe_accessories(cls, value: List[str]) -> List[str]:
        return _unique(value)

    @model_validator(mode="after")
    def check_grand_total(self) -> "CustomerRecord":
        if abs(self.grand_total - (self.total_amount + self.taxes)) > TOTAL_TOLERANCE:
            raise ValueError("grand_total must equal total_amount + taxes")
        return self


class BillEdit(BaseModel):
    """Post-hoc bill correction entered by an operator"""
    total_amount: float = Field(..., ge=0)
    taxes: float = Field(..., ge=0)
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    override_reason: Optional[str] = None


class DispatchResult(BaseModel):
    success: bool
    channel: str
    attempted: bool = False  # Whether the messaging gateway was called
    recipient: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
