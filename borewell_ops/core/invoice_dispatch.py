"""
Digital invoice delivery over email, WhatsApp and SMS.

Checks that the customer has the contact detail the channel needs, renders
the invoice, and makes a single call to the channel's messaging gateway.
Every gateway problem (error result, exception, timeout) comes back as a
failed DispatchResult.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from ..models import BillTemplate, CustomerRecord, DispatchChannel, DispatchResult
from .invoice_builder import InvoiceDocument, build_invoice, format_inr, invoice_number

logger = logging.getLogger(__name__)

# Customer field each channel delivers to
RECIPIENT_FIELDS = {
    DispatchChannel.EMAIL: "email",
    DispatchChannel.WHATSAPP: "phone",
    DispatchChannel.SMS: "phone",
}


class MessagingGateway(Protocol):
    async def send(self, recipient: str, document: InvoiceDocument, message: str,
                   document_url: Optional[str] = None) -> Dict[str, Any]:
        ...


def invoice_url(customer: CustomerRecord, public_base_url: str) -> Optional[str]:
    if not public_base_url:
        return None
    return f"{public_base_url.rstrip('/')}/customers/{customer.id}/invoice.pdf"


def compose_invoice_message(customer: CustomerRecord, template: BillTemplate,
                            document_url: Optional[str] = None) -> str:
    message = f"""Hi {customer.name}!

Your invoice {invoice_number(customer)} from {template.company_name} for {customer.service_type} is ready.

Grand total: {format_inr(customer.grand_total)} ({customer.payment_status.value})"""
    if document_url:
        message += f"\n\nView your invoice: {document_url}"
    return message + f"\n\n{template.footer}"


def _failure(channel: str, error: str, recipient: Optional[str] = None,
             details: Optional[Dict[str, Any]] = None, attempted: bool = False) -> DispatchResult:
    logger.error(f"❌ Invoice dispatch via {channel} failed: {error}")
    return DispatchResult(success=False, channel=channel, recipient=recipient, error=error,
                          attempted=attempted, details=details or {})


async def send_invoice(customer: Optional[CustomerRecord],
                       channel: Union[DispatchChannel, str],
                       gateways: Mapping[DispatchChannel, MessagingGateway],
                       template: BillTemplate,
                       timeout: float = 30.0,
                       public_base_url: str = "",
                       currency_symbol: str = "Rs. ",
                       qr_image: Optional[bytes] = None) -> DispatchResult:
    """
    Send a customer's invoice over one channel.

    Args:
        customer: Customer whose invoice is sent
        channel: email, whatsapp or sms
        gateways: Messaging gateway per channel
        template: Bill template for the rendered invoice
        timeout: Seconds to wait for the gateway
        public_base_url: API base URL used to link the invoice PDF
        currency_symbol: Money prefix inside the PDF
        qr_image: Optional QR code image for the PDF

    Returns:
        DispatchResult; success is False for missing contact details,
        unknown channels and any gateway failure

    Raises:
        InvoiceBuildError: If the customer record cannot be rendered
    """
    try:
        channel = DispatchChannel(channel)
    except ValueError:
        return _failure(str(channel), "Invalid messaging channel selected")
    name = channel.value

    if customer is None:
        return _failure(name, "Customer information not found")

    field = RECIPIENT_FIELDS[channel]
    recipient = getattr(customer, field)
    if not recipient:
        label = "email" if field == "email" else "phone number"
        return _failure(name, f"Customer {label} not provided")

    gateway = gateways.get(channel)
    if gateway is None:
        return _failure(name, f"No gateway configured for {name}", recipient)

    document = build_invoice(customer, template, qr_image=qr_image, currency_symbol=currency_symbol)
    document_url = invoice_url(customer, public_base_url)
    message = compose_invoice_message(customer, template, document_url)

    logger.info(f"📨 Sending invoice {invoice_number(customer)} to {customer.name} via {name}: {recipient}")
    try:
        result = await asyncio.wait_for(
            gateway.send(recipient, document, message, document_url=document_url), timeout
        )
    except asyncio.TimeoutError:
        return _failure(name, f"{name} gateway timed out after {timeout:g}s", recipient, attempted=True)
    except Exception as e:
        return _failure(name, str(e) or e.__class__.__name__, recipient, attempted=True)

    if not result or not result.get("success"):
        error = (result or {}).get("error") or f"Failed to send invoice via {name}"
        return _failure(name, error, recipient, details=result or {}, attempted=True)

    logger.info(f"✅ Invoice sent successfully via {name} to {recipient}")
    return DispatchResult(success=True, channel=name, recipient=recipient, attempted=True, details=result)
