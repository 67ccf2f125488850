"""
External messaging services used to deliver invoices.

- Twilio SMS and WhatsApp
- SMTP email
"""

from typing import Dict

from ...models import DispatchChannel
from .mailer import SMTPEmailGateway
from .sms import TwilioSMSGateway, TwilioWhatsAppGateway


def build_gateways(settings) -> Dict[DispatchChannel, object]:
    """Create one gateway per dispatch channel from configuration."""
    return {
        DispatchChannel.EMAIL: SMTPEmailGateway.from_settings(settings),
        DispatchChannel.WHATSAPP: TwilioWhatsAppGateway.from_settings(settings),
        DispatchChannel.SMS: TwilioSMSGateway.from_settings(settings),
    }


__all__ = [
    "SMTPEmailGateway",
    "TwilioSMSGateway",
    "TwilioWhatsAppGateway",
    "build_gateways",
]
