"""
Customer intake: turns a submitted service form into a stored, billed record.
"""

import logging
from collections import Counter
from typing import Optional

from ..core.bill_ids import DEFAULT_QR_ENDPOINT, generate_bill_id, generate_qr_payload_url
from ..core.number_to_words import convert_to_words
from ..core.pricing import DEFAULT_POLICY, PricingPolicy, compute_bill, compute_tax_breakdown, validate_stock
from ..exceptions import StockValidationError
from ..models import BillBreakdown, CustomerIntake, CustomerRecord, StockViolation
from .customer_store import CustomerStore
from .inventory_store import InventoryStore

logger = logging.getLogger(__name__)


def quote_intake(intake: CustomerIntake, inventory: InventoryStore,
                 policy: PricingPolicy = DEFAULT_POLICY) -> BillBreakdown:
    """Bill for an intake form; a manually entered amount replaces the computed base."""
    if intake.total_amount is not None:
        return compute_tax_breakdown(intake.total_amount, policy.tax_rate)
    return compute_bill(intake, inventory, policy)


def _stock_needed(intake: CustomerIntake, inventory: InventoryStore) -> Counter:
    names = ([intake.pump_name] if intake.has_pump else []) + list(intake.accessories)
    needed = Counter()
    for name in names:
        item = inventory.find_by_name(name)
        if item is not None:
            needed[item.id] += 1
    return needed


def register_customer(intake: CustomerIntake, customers: CustomerStore, inventory: InventoryStore,
                      policy: PricingPolicy = DEFAULT_POLICY,
                      qr_endpoint_template: str = DEFAULT_QR_ENDPOINT) -> CustomerRecord:
    """
    Validate stock, bill and store a new customer, then take the used items out of stock.

    Raises:
        StockValidationError: With every blocking item; nothing is stored
    """
    violations = validate_stock(intake, inventory)
    needed = _stock_needed(intake, inventory)
    for item_id, count in needed.items():
        item = inventory.get(item_id)
        if 0 < item.quantity < count:
            violations.append(StockViolation(item_name=item.name, kind="item", reason="out_of_stock"))
    if violations:
        logger.warning(f"⚠️ Intake for {intake.name} blocked: {[v.message for v in violations]}")
        raise StockValidationError(violations)

    bill = quote_intake(intake, inventory, policy)
    customer_id = customers.new_id()
    bill_id = generate_bill_id()
    record = customers.add({
        **intake.model_dump(exclude={"total_amount"}),
        "id": customer_id,
        "total_amount": bill.base_amount,
        "taxes": bill.tax_amount,
        "grand_total": bill.grand_total,
        "bill_id": bill_id,
        "amount_in_words": convert_to_words(bill.grand_total),
        "qr_code_url": generate_qr_payload_url(
            bill_id, customer_id, bill.grand_total, endpoint_template=qr_endpoint_template
        ),
    })

    for item_id, count in needed.items():
        inventory.decrease_stock(item_id, count)

    logger.info(f"🧾 Registered {record.name}: bill {bill_id}, grand total {bill.grand_total}")
    return record
