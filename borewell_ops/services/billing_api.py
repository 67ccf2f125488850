from __future__ import annotations

import asyncio
import io
import logging
from typing import Any, Dict, List, Mapping, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, Field, ValidationError

from ..adapters.external_services import build_gateways
from ..adapters.qr_renderer import fetch_qr_image
from ..config import Settings, get_settings
from ..core.invoice_builder import build_invoice
from ..core.invoice_dispatch import MessagingGateway, send_invoice
from ..core.pricing import apply_bill_edit
from ..core.statistics import dashboard_summary
from ..exceptions import (
    InsufficientStockError,
    InvalidAmountError,
    InvoiceBuildError,
    RecordNotFoundError,
    StockValidationError,
)
from ..models import (
    BillBreakdown,
    BillEdit,
    BillTemplate,
    CustomerIntake,
    CustomerRecord,
    DispatchChannel,
    DispatchResult,
    InventoryItem,
    InventoryItemIn,
)
from .customer_store import CustomerStore
from .intake import quote_intake, register_customer
from .inventory_store import InventoryStore
from .template_store import BillTemplateStore

logger = logging.getLogger(__name__)


class RestockIn(BaseModel):
    quantity: int = Field(..., gt=0)


def _error(status_code: int, exc: object, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "reason": str(exc), "details": details or {}},
    )


def create_app(settings: Optional[Settings] = None,
               customers: Optional[CustomerStore] = None,
               inventory: Optional[InventoryStore] = None,
               templates: Optional[BillTemplateStore] = None,
               gateways: Optional[Mapping[DispatchChannel, MessagingGateway]] = None) -> FastAPI:
    """
    Build the billing API over in-memory stores.

    Stores and gateways default to ones built from settings; tests pass
    their own.
    """
    settings = settings or get_settings()
    customers = customers if customers is not None else CustomerStore(seed=settings.SEED_DEMO_DATA)
    inventory = inventory if inventory is not None else InventoryStore(seed=settings.SEED_DEMO_DATA)
    templates = templates or BillTemplateStore()
    gateways = gateways if gateways is not None else build_gateways(settings)
    policy = settings.pricing_policy()

    app = FastAPI(title="Borewell Billing")

    #---------------ERROR HANDLERS---------------
    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, exc, exc.details)

    @app.exception_handler(StockValidationError)
    async def stock_validation_handler(request: Request, exc: StockValidationError):
        return _error(status.HTTP_409_CONFLICT, exc, exc.details)

    @app.exception_handler(InsufficientStockError)
    async def insufficient_stock_handler(request: Request, exc: InsufficientStockError):
        return _error(status.HTTP_409_CONFLICT, exc, exc.details)

    @app.exception_handler(InvalidAmountError)
    async def invalid_amount_handler(request: Request, exc: InvalidAmountError):
        return _error(status.HTTP_400_BAD_REQUEST, exc, exc.details)

    @app.exception_handler(InvoiceBuildError)
    async def invoice_build_handler(request: Request, exc: InvoiceBuildError):
        logger.error(f"❌ Invoice could not be built: {exc}")
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc, exc.details)

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        # Raised by store updates whose merged record fails validation
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "record validation failed",
                      {"errors": [e["msg"] for e in exc.errors()]})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error(status.HTTP_400_BAD_REQUEST, exc)

    def _require_admin(request: Request) -> None:
        if not settings.ADMIN_API_KEY:
            raise HTTPException(status_code=404, detail="not found")
        if request.headers.get("x-api-key") != settings.ADMIN_API_KEY:
            raise HTTPException(status_code=403, detail="forbidden")

    def _qr_image(customer: CustomerRecord) -> Optional[bytes]:
        if not settings.EMBED_QR_IMAGE:
            return None
        return fetch_qr_image(customer.qr_code_url, timeout=settings.QR_FETCH_TIMEOUT)

    #---------------HEALTH---------------
    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"service": "Borewell Billing", "status": "ok"}

    #---------------CUSTOMERS---------------
    @app.get("/customers", response_model=List[CustomerRecord])
    def list_customers() -> List[CustomerRecord]:
        return customers.list()

    @app.post("/customers", response_model=CustomerRecord, status_code=status.HTTP_201_CREATED)
    def create_customer(intake: CustomerIntake) -> CustomerRecord:
        return register_customer(intake, customers, inventory, policy, settings.QR_ENDPOINT_TEMPLATE)

    @app.get("/customers/export.csv")
    def export_customers() -> StreamingResponse:
        buf = io.StringIO()
        customers.write_csv(buf)
        return StreamingResponse(
            iter([buf.getvalue()]),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="Borewell_Customers.csv"'},
        )

    @app.get("/customers/{customer_id}", response_model=CustomerRecord)
    def get_customer(customer_id: str) -> CustomerRecord:
        return customers.get(customer_id)

    @app.patch("/customers/{customer_id}", response_model=CustomerRecord)
    def update_customer(customer_id: str, changes: Dict[str, Any]) -> CustomerRecord:
        # Amounts go through PUT /customers/{id}/bill so words and QR stay in sync
        blocked = {"total_amount", "taxes", "grand_total", "amount_in_words", "qr_code_url", "bill_id"} & set(changes)
        if blocked:
            raise ValueError(f"Use the bill endpoint to change: {', '.join(sorted(blocked))}")
        return customers.update(customer_id, changes)

    @app.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_customer(customer_id: str) -> Response:
        customers.delete(customer_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    #---------------BILLS & INVOICES---------------
    @app.post("/bills/quote", response_model=BillBreakdown)
    def quote_bill(intake: CustomerIntake) -> BillBreakdown:
        return quote_intake(intake, inventory, policy)

    @app.put("/customers/{customer_id}/bill", response_model=CustomerRecord)
    def edit_bill(customer_id: str, edit: BillEdit) -> CustomerRecord:
        updated = apply_bill_edit(customers.get(customer_id), edit, policy.tax_rate,
                                  settings.QR_ENDPOINT_TEMPLATE)
        return customers.replace(updated)

    def _build_invoice(customer_id: str):
        customer = customers.get(customer_id)
        return build_invoice(customer, templates.get(), qr_image=_qr_image(customer),
                             currency_symbol=settings.INVOICE_CURRENCY_SYMBOL,
                             installation_service_type=policy.installation_service_type)

    @app.get("/customers/{customer_id}/invoice.pdf")
    def download_invoice(customer_id: str) -> Response:
        document = _build_invoice(customer_id)
        return Response(
            content=document.to_bytes(),
            media_type="application/pdf",
            headers={"Content-Disposition": f'inline; filename="{document.filename}"'},
        )

    @app.post("/customers/{customer_id}/invoice/export")
    def export_invoice(customer_id: str) -> Dict[str, str]:
        path = _build_invoice(customer_id).save(settings.INVOICE_OUTPUT_DIR)
        return {"path": str(path)}

    @app.post("/customers/{customer_id}/send", response_model=DispatchResult)
    async def send_customer_invoice(customer_id: str, channel: str) -> JSONResponse:
        customer = customers.find(customer_id)
        qr_image = None
        if customer is not None and settings.EMBED_QR_IMAGE:
            loop = asyncio.get_running_loop()
            qr_image = await loop.run_in_executor(None, _qr_image, customer)
        result = await send_invoice(
            customer,
            channel,
            gateways,
            templates.get(),
            timeout=settings.DISPATCH_TIMEOUT_SECONDS,
            public_base_url=settings.PUBLIC_BASE_URL,
            currency_symbol=settings.INVOICE_CURRENCY_SYMBOL,
            qr_image=qr_image,
        )
        if result.success:
            status_code = status.HTTP_200_OK
        elif customer is None:
            status_code = status.HTTP_404_NOT_FOUND
        elif result.attempted:
            status_code = status.HTTP_502_BAD_GATEWAY
        else:
            status_code = status.HTTP_400_BAD_REQUEST
        return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))

    #---------------INVENTORY---------------
    @app.get("/inventory", response_model=List[InventoryItem])
    def list_inventory(category: Optional[str] = None) -> List[InventoryItem]:
        if category:
            return inventory.get_by_category(category)
        return inventory.list()

    @app.post("/inventory", response_model=InventoryItem, status_code=status.HTTP_201_CREATED)
    def add_inventory_item(item: InventoryItemIn) -> InventoryItem:
        return inventory.add(item)

    @app.get("/inventory/low-stock", response_model=List[InventoryItem])
    def low_stock() -> List[InventoryItem]:
        return inventory.get_low_stock()

    @app.get("/inventory/{item_id}", response_model=InventoryItem)
    def get_inventory_item(item_id: str) -> InventoryItem:
        return inventory.get(item_id)

    @app.patch("/inventory/{item_id}", response_model=InventoryItem)
    def update_inventory_item(item_id: str, changes: Dict[str, Any]) -> InventoryItem:
        return inventory.update(item_id, changes)

    @app.delete("/inventory/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_inventory_item(item_id: str) -> Response:
        inventory.delete(item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/inventory/{item_id}/restock", response_model=InventoryItem)
    def restock_item(item_id: str, body: RestockIn) -> InventoryItem:
        return inventory.restock(item_id, body.quantity)

    #---------------SETTINGS---------------
    @app.get("/settings/bill-template", response_model=BillTemplate)
    def get_bill_template() -> BillTemplate:
        return templates.get()

    @app.put("/settings/bill-template", response_model=BillTemplate)
    def update_bill_template(request: Request, changes: Dict[str, Any]) -> BillTemplate:
        _require_admin(request)
        return templates.update(**changes)

    #---------------STATS---------------
    @app.get("/stats")
    def stats() -> Dict[str, Any]:
        summary = dashboard_summary(customers.list(), inventory.list())
        summary["recent_customers"] = [c.model_dump(mode="json") for c in summary["recent_customers"]]
        return summary

    return app
