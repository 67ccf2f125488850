import csv
import io
import logging

import pytest
from pydantic import ValidationError

from borewell_ops.exceptions import InsufficientStockError, RecordNotFoundError
from borewell_ops.models import InventoryItemIn
from borewell_ops.services.customer_store import CustomerStore
from borewell_ops.services.inventory_store import InventoryStore, name_matches
from borewell_ops.services.template_store import BillTemplateStore


class TestInventoryStore:
    """Unit tests for the inventory collection"""

    @pytest.fixture
    def inventory(self):
        return InventoryStore(seed=True)

    def test_seeded_items(self, inventory):
        assert len(inventory.list()) == 6
        assert inventory.get("1").name == "Submersible Pump HP-2000"

    def test_empty_without_seed(self):
        assert InventoryStore().list() == []

    def test_add_assigns_id(self, inventory):
        item = inventory.add(InventoryItemIn(name="Starter DOL", category="Electrical", quantity=3, price=1200))
        assert item.id
        assert inventory.get(item.id).name == "Starter DOL"

    def test_update_and_delete(self, inventory):
        assert inventory.update("4", {"price": 900}).price == 900
        inventory.delete("4")
        with pytest.raises(RecordNotFoundError):
            inventory.get("4")

    def test_update_rejects_negative_quantity(self, inventory):
        with pytest.raises(ValidationError):
            inventory.update("4", {"quantity": -1})
        assert inventory.get("4").quantity == 12

    def test_returns_copies(self, inventory):
        item = inventory.get("1")
        item.quantity = 0
        assert inventory.get("1").quantity == 5

    def test_get_by_category(self, inventory):
        names = {item.name for item in inventory.get_by_category("Electrical")}
        assert names == {"Control Panel 3-Phase", "Electrical Cable 2.5mm"}

    def test_find_by_name_exact_match_first(self, inventory):
        assert inventory.find_by_name("pvc pipe 2-inch").id == "3"

    def test_find_by_name_word_match(self, inventory):
        assert inventory.find_by_name("Submersible HP-2000").id == "1"
        assert inventory.find_by_name("Control Panel").id == "2"
        assert inventory.find_by_name("Cable").id == "6"
        assert inventory.find_by_name("Starter") is None
        assert inventory.find_by_name("  ") is None

    def test_name_matches(self):
        assert name_matches("Check Valve", "Check Valve 2-inch")
        assert not name_matches("Gate Valve", "Check Valve 2-inch")
        assert not name_matches("", "Check Valve 2-inch")

    def test_decrease_stock(self, inventory):
        assert inventory.decrease_stock("3", 5).quantity == 25

    def test_decrease_stock_below_zero_rejected(self, inventory):
        with pytest.raises(InsufficientStockError) as exc_info:
            inventory.decrease_stock("5", 10)
        assert exc_info.value.details["available"] == 4
        assert inventory.get("5").quantity == 4

    def test_low_stock_alert(self, inventory, caplog):
        assert inventory.get_low_stock() == []
        with caplog.at_level(logging.WARNING):
            inventory.decrease_stock("5", 2)
        assert "Low stock alert" in caplog.text
        assert [item.id for item in inventory.get_low_stock()] == ["5"]

    def test_restock(self, inventory):
        before = inventory.get("5").last_restocked_date
        item = inventory.restock("5", 6)
        assert item.quantity == 10
        assert item.last_restocked_date > before

    def test_restock_requires_positive_quantity(self, inventory):
        with pytest.raises(ValueError):
            inventory.restock("5", 0)


class TestCustomerStore:
    """Unit tests for the customer collection"""

    @pytest.fixture
    def customers(self):
        return CustomerStore(seed=True)

    @pytest.fixture
    def new_customer(self):
        return {
            "name": "Asha Rao",
            "phone": "9000000001",
            "service_date": "2024-02-10",
            "service_type": "Pump Repair",
            "total_amount": 1000,
            "taxes": 180,
            "grand_total": 1180,
        }

    def test_seeded_customer(self, customers):
        customer = customers.get("1")
        assert customer.name == "John Doe"
        assert customer.accessories == ["Pipe", "Cable", "Control Panel"]

    def test_add_assigns_id_and_created_at(self, customers, new_customer):
        record = customers.add(new_customer)
        assert record.id and record.id != "1"
        assert record.created_at.tzinfo is not None
        assert len(customers.list()) == 2

    def test_add_rejects_inconsistent_totals(self, customers, new_customer):
        new_customer["grand_total"] = 2000
        with pytest.raises(ValidationError):
            customers.add(new_customer)
        assert len(customers.list()) == 1

    def test_update_keeps_total_invariant(self, customers):
        with pytest.raises(ValidationError):
            customers.update("1", {"taxes": 0})
        assert customers.get("1").taxes == 4500

    def test_update_ignores_id(self, customers):
        record = customers.update("1", {"id": "99", "notes": "Follow-up due"})
        assert record.id == "1"
        assert record.notes == "Follow-up due"

    def test_accessories_deduplicated(self, customers, new_customer):
        new_customer["accessories"] = ["Pipe", "Pipe", " Cable "]
        assert customers.add(new_customer).accessories == ["Pipe", "Cable"]

    def test_delete(self, customers):
        customers.delete("1")
        assert customers.find("1") is None
        with pytest.raises(RecordNotFoundError):
            customers.delete("1")

    def test_export_to_csv(self, customers, tmp_path):
        path = customers.export_to_csv(tmp_path / "exports" / "customers.csv")
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]["name"] == "John Doe"
        assert rows[0]["accessories"] == "Pipe, Cable, Control Panel"
        assert rows[0]["payment_status"] == "Paid"

    def test_write_csv_selected_fields(self, customers):
        buf = io.StringIO()
        customers.write_csv(buf, ["id", "grand_total"])
        assert buf.getvalue().splitlines() == ["id,grand_total", "1,29500.0"]


class TestBillTemplateStore:
    """Unit tests for the bill template settings"""

    def test_defaults(self):
        template = BillTemplateStore().get()
        assert template.company_name == "Borewell Services & Equipment"
        assert len(template.terms_and_conditions) == 3

    def test_update(self):
        store = BillTemplateStore()
        store.update(company_name="Deep Water Drillers", footer="Visit again")
        template = store.get()
        assert template.company_name == "Deep Water Drillers"
        assert template.footer == "Visit again"

    def test_update_unknown_field(self):
        with pytest.raises(ValueError):
            BillTemplateStore().update(colour="blue")

    def test_get_returns_copy(self):
        store = BillTemplateStore()
        store.get().terms_and_conditions.append("Extra")
        assert len(store.get().terms_and_conditions) == 3

    def test_reset(self):
        store = BillTemplateStore()
        store.update(company_name="Other")
        assert store.reset().company_name == "Borewell Services & Equipment"
