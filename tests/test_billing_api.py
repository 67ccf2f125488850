from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from borewell_ops.config import Settings
from borewell_ops.models import DispatchChannel
from borewell_ops.services.billing_api import create_app
from borewell_ops.services.customer_store import CustomerStore
from borewell_ops.services.inventory_store import InventoryStore

INTAKE = {
    "name": "Ravi Kumar",
    "phone": "9123456780",
    "email": "ravi@example.com",
    "service_type": "Borewell Installation",
    "borewell_depth": 200,
    "pump_type": "Submersible",
    "pump_model": "HP-2000",
    "accessories": ["Pipe", "Cable", "Control Panel"],
}


class TestBillingApi:
    """Integration tests for the billing HTTP API"""

    @pytest.fixture
    def settings(self):
        return Settings(_env_file=None, ADMIN_API_KEY="admin-secret", EMBED_QR_IMAGE=False,
                        PUBLIC_BASE_URL="")

    @pytest.fixture
    def email_gateway(self):
        gateway = Mock()
        gateway.send = AsyncMock(return_value={"success": True, "to": "john@example.com"})
        return gateway

    @pytest.fixture
    def client(self, settings, email_gateway):
        app = create_app(
            settings=settings,
            customers=CustomerStore(seed=True),
            inventory=InventoryStore(seed=True),
            gateways={DispatchChannel.EMAIL: email_gateway},
        )
        return TestClient(app)

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_list_and_get_customers(self, client):
        assert [c["name"] for c in client.get("/customers").json()] == ["John Doe"]
        assert client.get("/customers/1").json()["bill_id"] == "BW-10001-0001"

    def test_unknown_customer(self, client):
        response = client.get("/customers/missing")
        assert response.status_code == 404
        assert "missing" in response.json()["reason"]

    def test_register_customer(self, client):
        response = client.post("/customers", json=INTAKE)
        assert response.status_code == 201
        body = response.json()
        assert body["grand_total"] == 29376.1
        assert body["bill_id"].startswith("BW-")
        assert client.get("/inventory/1").json()["quantity"] == 4

    def test_register_out_of_stock(self, client):
        client.patch("/inventory/1", json={"quantity": 0})
        response = client.post("/customers", json=INTAKE)
        assert response.status_code == 409
        assert "out of stock" in response.json()["reason"]
        assert len(client.get("/customers").json()) == 1

    def test_invalid_intake(self, client):
        response = client.post("/customers", json={"name": "No Service"})
        assert response.status_code == 422

    def test_quote(self, client):
        response = client.post("/bills/quote", json=INTAKE)
        assert response.json() == {"base_amount": 24895.0, "tax_amount": 4481.1, "grand_total": 29376.1}
        assert client.get("/inventory/1").json()["quantity"] == 5

    def test_edit_bill(self, client):
        response = client.put("/customers/1/bill", json={"total_amount": 30000, "taxes": 5400})
        assert response.status_code == 200
        body = response.json()
        assert body["grand_total"] == 35400
        assert body["amount_in_words"] == "Thirty Five Thousand Four Hundred Rupees Only"
        assert client.get("/customers/1").json()["grand_total"] == 35400

    def test_patch_customer(self, client):
        response = client.patch("/customers/1", json={"payment_status": "Pending"})
        assert response.json()["payment_status"] == "Pending"

    def test_patch_amounts_rejected(self, client):
        response = client.patch("/customers/1", json={"grand_total": 1})
        assert response.status_code == 400

    def test_delete_customer(self, client):
        assert client.delete("/customers/1").status_code == 204
        assert client.get("/customers/1").status_code == 404

    def test_export_csv(self, client):
        response = client.get("/customers/export.csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "John Doe" in response.text

    def test_invoice_pdf(self, client):
        response = client.get("/customers/1/invoice.pdf")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="Invoice-1.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_send_invoice(self, client, email_gateway):
        response = client.post("/customers/1/send", params={"channel": "email"})
        assert response.status_code == 200
        assert response.json()["success"] is True
        email_gateway.send.assert_awaited_once()

    def test_send_without_gateway(self, client):
        response = client.post("/customers/1/send", params={"channel": "sms"})
        assert response.status_code == 400
        assert response.json()["attempted"] is False

    def test_send_invalid_channel(self, client):
        response = client.post("/customers/1/send", params={"channel": "fax"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid messaging channel selected"

    def test_send_gateway_failure(self, client, email_gateway):
        email_gateway.send.return_value = {"success": False, "error": "Email not configured"}
        response = client.post("/customers/1/send", params={"channel": "email"})
        assert response.status_code == 502
        assert response.json()["error"] == "Email not configured"

    def test_send_unknown_customer(self, client):
        response = client.post("/customers/missing/send", params={"channel": "email"})
        assert response.status_code == 404

    def test_inventory_endpoints(self, client):
        created = client.post("/inventory", json={
            "name": "Starter DOL", "category": "Electrical", "quantity": 1, "price": 1200, "reorder_level": 2,
        })
        assert created.status_code == 201
        item_id = created.json()["id"]
        assert [i["id"] for i in client.get("/inventory/low-stock").json()] == [item_id]
        assert len(client.get("/inventory", params={"category": "Electrical"}).json()) == 3
        assert client.post(f"/inventory/{item_id}/restock", json={"quantity": 5}).json()["quantity"] == 6
        assert client.delete(f"/inventory/{item_id}").status_code == 204
        assert client.get(f"/inventory/{item_id}").status_code == 404

    def test_inventory_bad_category(self, client):
        assert client.get("/inventory", params={"category": "Furniture"}).status_code == 400

    def test_bill_template_requires_admin_key(self, client):
        assert client.put("/settings/bill-template", json={"company_name": "X"}).status_code == 403
        response = client.put("/settings/bill-template", json={"company_name": "Deep Water Drillers"},
                              headers={"X-API-Key": "admin-secret"})
        assert response.status_code == 200
        assert client.get("/settings/bill-template").json()["company_name"] == "Deep Water Drillers"

    def test_bill_template_unknown_field(self, client):
        response = client.put("/settings/bill-template", json={"colour": "blue"},
                              headers={"X-API-Key": "admin-secret"})
        assert response.status_code == 400

    def test_bill_template_disabled_without_admin_key(self):
        app = create_app(settings=Settings(_env_file=None, ADMIN_API_KEY=None), customers=CustomerStore(),
                         inventory=InventoryStore(), gateways={})
        response = TestClient(app).put("/settings/bill-template", json={"company_name": "X"})
        assert response.status_code == 404

    def test_stats(self, client):
        body = client.get("/stats").json()
        assert body["total_revenue"] == 29500
        assert body["completed_services"] == 1
        assert body["recent_customers"][0]["name"] == "John Doe"
        assert body["monthly_revenue"] == [{"month": "May", "amount": 29500}]

    def test_pump_without_model_rejected(self, client):
        intake = {k: v for k, v in INTAKE.items() if k != "pump_model"}
        response = client.post("/customers", json=intake)
        assert response.status_code == 422
        assert len(client.get("/customers").json()) == 1

    def test_export_invoice_to_output_dir(self, tmp_path):
        output_dir = tmp_path / "invoices"
        app = create_app(settings=Settings(_env_file=None, INVOICE_OUTPUT_DIR=str(output_dir)),
                         customers=CustomerStore(seed=True), inventory=InventoryStore(seed=True), gateways={})
        response = TestClient(app).post("/customers/1/invoice/export")

        assert response.status_code == 200
        saved = output_dir / "Invoice-1.pdf"
        assert response.json() == {"path": str(saved)}
        assert saved.read_bytes().startswith(b"%PDF")
