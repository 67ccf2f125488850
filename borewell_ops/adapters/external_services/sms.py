import asyncio
import logging
from typing import Any, Dict, Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from ...core.invoice_builder import InvoiceDocument

logger = logging.getLogger(__name__)


class TwilioSMSGateway:
    """Delivers invoice notifications as SMS through Twilio.

    SMS cannot carry the PDF itself, so the message links to it when a
    public invoice URL is available.
    """

    channel = "sms"

    def __init__(self, account_sid: Optional[str], auth_token: Optional[str],
                 from_number: Optional[str], client: Optional[Client] = None):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number

        if not all([account_sid, auth_token, from_number]):
            logger.warning(f"Twilio {self.channel} not configured - missing environment variables")
            self.enabled = False
            self.client = None
        else:
            self.enabled = True
            self.client = client or Client(account_sid, auth_token)

    @classmethod
    def from_settings(cls, settings) -> "TwilioSMSGateway":
        return cls(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, settings.TWILIO_FROM_NUMBER)

    def _address(self, number: str) -> str:
        return number

    def send_message(self, to_number: str, body: str, media_url: Optional[str] = None) -> Dict[str, Any]:
        """Send one message using Twilio."""
        if not self.enabled:
            return {"success": False, "error": f"{self.channel.upper()} not configured"}

        params = {
            "body": body,
            "from_": self._address(self.from_number),
            "to": self._address(to_number),
        }
        if media_url:
            params["media_url"] = [media_url]

        try:
            message = self.client.messages.create(**params)
            logger.info(f"✅ {self.channel} sent successfully to {to_number}: {message.sid}")
            return {
                "success": True,
                "message_sid": message.sid,
                "status": message.status,
                "to": to_number,
            }
        except TwilioException as e:
            logger.error(f"❌ {self.channel} send failed: {e}")
            return {"success": False, "error": str(e)}

    async def send(self, recipient: str, document: InvoiceDocument, message: str,
                   document_url: Optional[str] = None) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.send_message, recipient, message)


class TwilioWhatsAppGateway(TwilioSMSGateway):
    """Delivers invoices over WhatsApp, attaching the PDF by URL when one is public."""

    channel = "whatsapp"

    @classmethod
    def from_settings(cls, settings) -> "TwilioWhatsAppGateway":
        return cls(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN,
                   settings.TWILIO_WHATSAPP_FROM or settings.TWILIO_FROM_NUMBER)

    def _address(self, number: str) -> str:
        return number if number.startswith("whatsapp:") else f"whatsapp:{number}"

    async def send(self, recipient: str, document: InvoiceDocument, message: str,
                   document_url: Optional[str] = None) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.send_message, recipient, message, document_url)
