"""
In-memory customer and service job records.
"""

import csv
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import RecordNotFoundError
from ..models import CustomerRecord

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "Borewell_Customers.csv"

INITIAL_CUSTOMERS = [
    {
        "id": "1",
        "name": "John Doe",
        "phone": "9876543210",
        "address": "123 Main St, City",
        "email": "john@example.com",
        "service_date": "2023-05-15",
        "service_type": "Borewell Installation",
        "borewell_depth": 200,
        "pump_type": "Submersible",
        "pump_model": "HP-2000",
        "accessories": ["Pipe", "Cable", "Control Panel"],
        "total_amount": 25000,
        "taxes": 4500,
        "grand_total": 29500,
        "payment_status": "Paid",
        "payment_method": "Cash",
        "notes": "Installation completed successfully",
        "bill_id": "BW-10001-0001",
        "amount_in_words": "Twenty Nine Thousand Five Hundred Rupees Only",
        "created_at": "2023-05-15T10:30:00Z",
    },
]


class CustomerStore:
    """Customer collection; callers always receive copies of stored records."""

    def __init__(self, customers: Optional[List[Dict[str, Any]]] = None, seed: bool = False):
        self._customers: Dict[str, CustomerRecord] = {}
        for data in (INITIAL_CUSTOMERS if seed and customers is None else customers or []):
            record = CustomerRecord.model_validate(data)
            self._customers[record.id] = record

    def _get(self, customer_id: str) -> CustomerRecord:
        record = self._customers.get(customer_id)
        if record is None:
            raise RecordNotFoundError(f"Customer not found: {customer_id}")
        return record

    def get(self, customer_id: str) -> CustomerRecord:
        return self._get(customer_id).model_copy(deep=True)

    def find(self, customer_id: str) -> Optional[CustomerRecord]:
        record = self._customers.get(customer_id)
        return record.model_copy(deep=True) if record else None

    def list(self) -> List[CustomerRecord]:
        return [record.model_copy(deep=True) for record in self._customers.values()]

    def new_id(self) -> str:
        return uuid.uuid4().hex[:12]

    def add(self, data: Dict[str, Any]) -> CustomerRecord:
        """Validate and store a new record, assigning id and created_at when absent."""
        data = dict(data)
        data.setdefault("id", self.new_id())
        data.setdefault("created_at", datetime.now(timezone.utc))
        record = CustomerRecord.model_validate(data)
        self._customers[record.id] = record
        logger.info(f"✅ Customer added: {record.name} ({record.id})")
        return record.model_copy(deep=True)

    def update(self, customer_id: str, changes: Dict[str, Any]) -> CustomerRecord:
        """Apply a partial update; the merged record must still satisfy the totals check."""
        current = self._get(customer_id)
        changes = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
        record = CustomerRecord.model_validate({**current.model_dump(), **changes})
        self._customers[customer_id] = record
        logger.info(f"Customer updated: {record.name} ({customer_id})")
        return record.model_copy(deep=True)

    def replace(self, record: CustomerRecord) -> CustomerRecord:
        self._get(record.id)
        self._customers[record.id] = record.model_copy(deep=True)
        return record

    def delete(self, customer_id: str) -> None:
        record = self._get(customer_id)
        del self._customers[customer_id]
        logger.info(f"Customer deleted: {record.name} ({customer_id})")

    def export_to_csv(self, path: Union[str, Path] = EXPORT_FILENAME) -> Path:
        """Write every record to a CSV file, one row per customer."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fields = list(CustomerRecord.model_fields)
        with open(path, "w", newline="", encoding="utf-8") as f:
            self.write_csv(f, fields)
        logger.info(f"📊 Exported {len(self._customers)} customers to {path}")
        return path

    def write_csv(self, stream, fields: Optional[List[str]] = None) -> None:
        fields = fields or list(CustomerRecord.model_fields)
        writer = csv.DictWriter(stream, fieldnames=fields)
        writer.writeheader()
        for record in self._customers.values():
            row = record.model_dump(mode="json")
            row["accessories"] = ", ".join(record.accessories)
            writer.writerow({field: row.get(field) for field in fields})
