"""
Billing computation for service jobs.

Prices the selected pump, accessories and drilling depth against the current
inventory, applies GST, and validates stock before an intake is committed.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from ..exceptions import InvalidAmountError
from ..models import (
    BillBreakdown,
    BillEdit,
    CustomerRecord,
    InventoryItem,
    ServiceSelection,
    StockViolation,
)
from .bill_ids import DEFAULT_QR_ENDPOINT, generate_qr_payload_url
from .number_to_words import convert_to_words

logger = logging.getLogger(__name__)


class InventoryLookup(Protocol):
    def find_by_name(self, name: str) -> Optional[InventoryItem]:
        ...


@dataclass(frozen=True)
class PricingPolicy:
    """Rates used by the pricing calculator"""

    tax_rate: float = 0.18
    depth_rate_per_foot: float = 30.0
    fallback_price: float = 0.0
    installation_service_type: str = "Borewell Installation"


DEFAULT_POLICY = PricingPolicy()


def compute_tax_breakdown(base_amount: float, tax_rate: float = DEFAULT_POLICY.tax_rate) -> BillBreakdown:
    """Apply the tax rate to a pre-tax amount."""
    if base_amount < 0:
        raise InvalidAmountError(f"Base amount must not be negative, got {base_amount}")
    base_amount = round(base_amount, 2)
    tax_amount = round(base_amount * tax_rate, 2)
    return BillBreakdown(
        base_amount=base_amount,
        tax_amount=tax_amount,
        grand_total=round(base_amount + tax_amount, 2),
    )


def _unit_price(name: str, inventory: InventoryLookup, policy: PricingPolicy) -> float:
    item = inventory.find_by_name(name)
    if item is None:
        logger.warning(f"⚠️ No price found for '{name}', using fallback {policy.fallback_price}")
        return policy.fallback_price
    return item.price


def compute_base_amount(selection: ServiceSelection, inventory: InventoryLookup,
                        policy: PricingPolicy = DEFAULT_POLICY) -> float:
    base = 0.0
    if selection.has_pump:
        base += _unit_price(selection.pump_name, inventory, policy)
    for accessory in selection.accessories:
        base += _unit_price(accessory, inventory, policy)
    if (selection.service_type == policy.installation_service_type
            and selection.borewell_depth and selection.borewell_depth > 0):
        base += selection.borewell_depth * policy.depth_rate_per_foot
    return round(base, 2)


def compute_bill(selection: ServiceSelection, inventory: InventoryLookup,
                 policy: PricingPolicy = DEFAULT_POLICY) -> BillBreakdown:
    """
    Price a service selection.

    Safe to call on every form change: reads the inventory but never
    modifies it. Out-of-stock items are priced like any other.

    Args:
        selection: Service type, depth, pump and accessories
        inventory: Price lookup by item name
        policy: Tax, depth and fallback rates

    Returns:
        Base amount, tax and grand total
    """
    return compute_tax_breakdown(compute_base_amount(selection, inventory, policy), policy.tax_rate)


def validate_stock(selection: ServiceSelection, inventory: InventoryLookup) -> List[StockViolation]:
    """Return every selected pump/accessory that cannot be supplied from stock."""
    wanted = []
    if selection.has_pump:
        wanted.append((selection.pump_name, "pump"))
    wanted.extend((accessory, "accessory") for accessory in selection.accessories)

    violations = []
    for name, kind in wanted:
        item = inventory.find_by_name(name)
        if item is None:
            violations.append(StockViolation(item_name=name, kind=kind, reason="missing"))
        elif item.quantity <= 0:
            violations.append(StockViolation(item_name=name, kind=kind, reason="out_of_stock"))
    return violations


def apply_bill_edit(customer: CustomerRecord, edit: BillEdit,
                    tax_rate: float = DEFAULT_POLICY.tax_rate,
                    qr_endpoint_template: str = DEFAULT_QR_ENDPOINT) -> CustomerRecord:
    """
    Apply a manual bill correction.

    The grand total is always recomputed from the edited amount and tax.
    A tax that differs from the standard rate is kept but flagged as an
    override on the record.
    """
    expected_tax = round(edit.total_amount * tax_rate, 2)
    overridden = abs(edit.taxes - expected_tax) > 0.01
    if overridden:
        logger.warning(
            f"⚠️ Tax override on customer {customer.id}: {edit.taxes} instead of {expected_tax}"
            f" (reason: {edit.override_reason or 'not given'})"
        )

    grand_total = round(edit.total_amount + edit.taxes, 2)
    changes = {
        "total_amount": edit.total_amount,
        "taxes": edit.taxes,
        "grand_total": grand_total,
        "amount_in_words": convert_to_words(grand_total),
        "tax_overridden": overridden,
        "override_reason": edit.override_reason if overridden else None,
    }
    if customer.bill_id:
        changes["qr_code_url"] = generate_qr_payload_url(
            customer.bill_id, customer.id, grand_total, endpoint_template=qr_endpoint_template
        )
    if edit.payment_status is not None:
        changes["payment_status"] = edit.payment_status
    if edit.payment_method is not None:
        changes["payment_method"] = edit.payment_method
    if edit.notes is not None:
        changes["notes"] = edit.notes
    return CustomerRecord.model_validate({**customer.model_dump(), **changes})
