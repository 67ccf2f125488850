import re

import pytest

from borewell_ops.core.pricing import PricingPolicy
from borewell_ops.exceptions import StockValidationError
from borewell_ops.models import CustomerIntake
from borewell_ops.services.customer_store import CustomerStore
from borewell_ops.services.intake import quote_intake, register_customer
from borewell_ops.services.inventory_store import InventoryStore


class TestCustomerIntake:
    """Unit tests for registering a customer from the intake form"""

    @pytest.fixture
    def customers(self):
        return CustomerStore()

    @pytest.fixture
    def inventory(self):
        return InventoryStore(seed=True)

    @pytest.fixture
    def intake(self):
        return CustomerIntake(
            name="Ravi Kumar",
            phone="9123456780",
            email="ravi@example.com",
            address="12 Lake Road",
            service_type="Borewell Installation",
            borewell_depth=200,
            pump_type="Submersible",
            pump_model="HP-2000",
            accessories=["Pipe", "Cable", "Control Panel"],
        )

    def test_register_bills_and_stores(self, intake, customers, inventory):
        record = register_customer(intake, customers, inventory)
        assert record.total_amount == 24895
        assert record.taxes == 4481.1
        assert record.grand_total == 29376.1
        assert record.amount_in_words == (
            "Twenty Nine Thousand Three Hundred Seventy Six Rupees and Ten Paise Only"
        )
        assert re.match(r"^BW-\d{5}-\d{4}$", record.bill_id)
        assert record.bill_id in record.qr_code_url
        assert customers.get(record.id) == record

    def test_register_decrements_stock(self, intake, customers, inventory):
        register_customer(intake, customers, inventory)
        assert inventory.get("1").quantity == 4
        assert inventory.get("2").quantity == 7
        assert inventory.get("3").quantity == 29
        assert inventory.get("6").quantity == 199

    def test_out_of_stock_blocks_intake(self, intake, customers, inventory):
        inventory.update("1", {"quantity": 0})
        with pytest.raises(StockValidationError) as exc_info:
            register_customer(intake, customers, inventory)
        assert "Submersible HP-2000" in str(exc_info.value)
        assert customers.list() == []
        assert inventory.get("3").quantity == 30

    def test_missing_items_block_intake(self, intake, customers, inventory):
        intake.accessories.append("Motor Guard")
        with pytest.raises(StockValidationError) as exc_info:
            register_customer(intake, customers, inventory)
        assert [v.reason for v in exc_info.value.violations] == ["missing"]

    def test_repeated_item_needs_enough_stock(self, customers, inventory):
        inventory.update("3", {"quantity": 1})
        intake = CustomerIntake(name="Meena", service_type="Maintenance",
                                accessories=["Pipe", "PVC Pipe"])
        with pytest.raises(StockValidationError):
            register_customer(intake, customers, inventory)
        assert inventory.get("3").quantity == 1

    def test_manual_amount_replaces_computed_base(self, intake, customers, inventory):
        intake.total_amount = 10000
        record = register_customer(intake, customers, inventory)
        assert (record.total_amount, record.taxes, record.grand_total) == (10000, 1800, 11800)

    def test_qr_endpoint_template(self, intake, customers, inventory):
        record = register_customer(intake, customers, inventory,
                                   qr_endpoint_template="https://verify.test/qr?d={payload}")
        assert record.qr_code_url.startswith("https://verify.test/qr?d=")

    def test_quote_uses_policy(self, intake, inventory):
        bill = quote_intake(intake, inventory, PricingPolicy(tax_rate=0.0))
        assert bill.grand_total == bill.base_amount == 24895
        assert inventory.get("1").quantity == 5
