"""
Dashboard figures computed from customer and inventory records.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..models import CustomerRecord, InventoryItem, PaymentStatus

RECENT_CUSTOMERS = 5


def total_revenue(customers: Iterable[CustomerRecord]) -> float:
    return round(sum(c.grand_total for c in customers), 2)


def _count_by(values: Iterable[str]) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return [{"name": name, "value": count} for name, count in counts.items()]


def service_type_breakdown(customers: Iterable[CustomerRecord]) -> List[Dict[str, Any]]:
    return _count_by(c.service_type for c in customers)


def payment_status_breakdown(customers: Iterable[CustomerRecord]) -> List[Dict[str, Any]]:
    return _count_by(c.payment_status.value for c in customers)


def monthly_revenue(customers: Iterable[CustomerRecord]) -> List[Dict[str, Any]]:
    """Grand totals per service month ("Jan".."Dec"), in first-seen order."""
    months: Dict[str, float] = {}
    for c in customers:
        month = c.service_date.strftime("%b")
        months[month] = round(months.get(month, 0.0) + c.grand_total, 2)
    return [{"month": month, "amount": amount} for month, amount in months.items()]


def recent_customers(customers: Iterable[CustomerRecord], limit: int = RECENT_CUSTOMERS) -> List[CustomerRecord]:
    return sorted(customers, key=lambda c: c.created_at, reverse=True)[:limit]


def dashboard_summary(customers: List[CustomerRecord],
                      inventory: Optional[List[InventoryItem]] = None) -> Dict[str, Any]:
    inventory = inventory or []
    return {
        "total_revenue": total_revenue(customers),
        "pending_payments": sum(1 for c in customers if c.payment_status == PaymentStatus.PENDING),
        "completed_services": len(customers),
        "low_stock_items": sum(1 for item in inventory if item.is_low_stock),
        "recent_customers": recent_customers(customers),
        "service_types": service_type_breakdown(customers),
        "payment_statuses": payment_status_breakdown(customers),
        "monthly_revenue": monthly_revenue(customers),
    }
