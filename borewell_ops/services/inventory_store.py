"""
In-memory inventory of pumps, motors, pipes, valves and electrical parts.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..exceptions import InsufficientStockError, RecordNotFoundError
from ..models import InventoryCategory, InventoryItem, InventoryItemIn

logger = logging.getLogger(__name__)

INITIAL_INVENTORY = [
    {
        "id": "1",
        "name": "Submersible Pump HP-2000",
        "category": "Pump",
        "quantity": 5,
        "price": 15000,
        "reorder_level": 2,
        "unit": "piece",
        "description": "2HP submersible pump for deep borewells",
        "last_restocked_date": "2023-01-15T10:30:00Z",
    },
    {
        "id": "2",
        "name": "Control Panel 3-Phase",
        "category": "Electrical",
        "quantity": 8,
        "price": 3500,
        "reorder_level": 3,
        "unit": "piece",
        "description": "Control panel for 3-phase borewell motors",
        "last_restocked_date": "2023-03-20T10:30:00Z",
    },
    {
        "id": "3",
        "name": "PVC Pipe 2-inch",
        "category": "Pipe",
        "quantity": 30,
        "price": 350,
        "reorder_level": 10,
        "unit": "meter",
        "description": "2-inch diameter PVC pipe for borewell",
        "last_restocked_date": "2023-04-05T10:30:00Z",
    },
    {
        "id": "4",
        "name": "Check Valve 2-inch",
        "category": "Valve",
        "quantity": 12,
        "price": 850,
        "reorder_level": 5,
        "unit": "piece",
        "description": "2-inch non-return valve for borewell",
        "last_restocked_date": "2023-02-18T10:30:00Z",
    },
    {
        "id": "5",
        "name": "3HP Motor",
        "category": "Motor",
        "quantity": 4,
        "price": 7500,
        "reorder_level": 2,
        "unit": "piece",
        "description": "3HP motor for submersible pumps",
        "last_restocked_date": "2023-01-10T10:30:00Z",
    },
    {
        "id": "6",
        "name": "Electrical Cable 2.5mm",
        "category": "Electrical",
        "quantity": 200,
        "price": 45,
        "reorder_level": 50,
        "unit": "meter",
        "description": "2.5mm electrical cable for borewell connections",
        "last_restocked_date": "2023-03-25T10:30:00Z",
    },
]


def _tokens(name: str) -> set:
    return set(name.lower().split())


def name_matches(query: str, item_name: str) -> bool:
    """True when every word of the query appears in the item name."""
    wanted = _tokens(query)
    return bool(wanted) and wanted <= _tokens(item_name)


class InventoryStore:
    """Inventory collection; callers always receive copies of stored items."""

    def __init__(self, items: Optional[List[Dict[str, Any]]] = None, seed: bool = False):
        self._items: Dict[str, InventoryItem] = {}
        for data in (INITIAL_INVENTORY if seed and items is None else items or []):
            item = InventoryItem.model_validate(data)
            self._items[item.id] = item

    def _get(self, item_id: str) -> InventoryItem:
        item = self._items.get(item_id)
        if item is None:
            raise RecordNotFoundError(f"Inventory item not found: {item_id}")
        return item

    def get(self, item_id: str) -> InventoryItem:
        return self._get(item_id).model_copy(deep=True)

    def list(self) -> List[InventoryItem]:
        return [item.model_copy(deep=True) for item in self._items.values()]

    def add(self, data: InventoryItemIn) -> InventoryItem:
        item = InventoryItem(id=uuid.uuid4().hex[:12], **data.model_dump())
        self._items[item.id] = item
        logger.info(f"✅ Inventory item added: {item.name} ({item.quantity} {item.unit})")
        return item.model_copy(deep=True)

    def update(self, item_id: str, changes: Dict[str, Any]) -> InventoryItem:
        current = self._get(item_id)
        changes = {k: v for k, v in changes.items() if k != "id"}
        item = InventoryItem.model_validate({**current.model_dump(), **changes})
        self._items[item_id] = item
        logger.info(f"Inventory item updated: {item.name}")
        return item.model_copy(deep=True)

    def delete(self, item_id: str) -> None:
        item = self._get(item_id)
        del self._items[item_id]
        logger.info(f"Inventory item deleted: {item.name}")

    def get_by_category(self, category: InventoryCategory) -> List[InventoryItem]:
        category = InventoryCategory(category)
        return [item.model_copy(deep=True) for item in self._items.values() if item.category == category]

    def get_low_stock(self) -> List[InventoryItem]:
        return [item.model_copy(deep=True) for item in self._items.values() if item.is_low_stock]

    def find_by_name(self, name: str) -> Optional[InventoryItem]:
        """
        Look up an item by a catalog name such as "Submersible HP-2000" or "Cable".

        An exact (case-insensitive) name wins; otherwise the first item whose
        name contains every word of the query.
        """
        wanted = name.strip().lower()
        if not wanted:
            return None
        for item in self._items.values():
            if item.name.lower() == wanted:
                return item.model_copy(deep=True)
        for item in self._items.values():
            if name_matches(name, item.name):
                return item.model_copy(deep=True)
        return None

    def decrease_stock(self, item_id: str, quantity: int = 1) -> InventoryItem:
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        item = self._get(item_id)
        if item.quantity < quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {item.name}",
                details={"item_id": item_id, "available": item.quantity, "requested": quantity},
            )
        item = self.update(item_id, {"quantity": item.quantity - quantity})
        if item.is_low_stock:
            logger.warning(f"⚠️ Low stock alert: {item.name} is at or below reorder level ({item.quantity} left)")
        return item

    def restock(self, item_id: str, quantity: int) -> InventoryItem:
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        item = self._get(item_id)
        return self.update(item_id, {
            "quantity": item.quantity + quantity,
            "last_restocked_date": datetime.now(timezone.utc),
        })
