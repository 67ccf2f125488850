import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Dict, Optional

from ...core.invoice_builder import InvoiceDocument

logger = logging.getLogger(__name__)


class SMTPEmailGateway:
    """Emails invoices as PDF attachments over SMTP."""

    channel = "email"

    def __init__(self, host: Optional[str], port: int = 587, username: Optional[str] = None,
                 password: Optional[str] = None, from_email: Optional[str] = None,
                 use_tls: bool = True, subject_prefix: str = "Invoice", timeout: float = 10.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username or "no-reply@borewellservices.com"
        self.use_tls = use_tls
        self.subject_prefix = subject_prefix
        self.timeout = timeout
        self.enabled = bool(host and username and password)
        if not self.enabled:
            logger.warning("SMTP not configured; invoice emails are disabled")

    @classmethod
    def from_settings(cls, settings) -> "SMTPEmailGateway":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            from_email=settings.SMTP_FROM,
            use_tls=settings.SMTP_USE_TLS,
        )

    def build_message(self, to_email: str, document: InvoiceDocument, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"{self.subject_prefix} INV-{document.customer_id}"
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.set_content(body)
        msg.add_attachment(document.to_bytes(), maintype="application", subtype="pdf",
                           filename=document.filename)
        return msg

    def send_email(self, to_email: str, document: InvoiceDocument, body: str) -> Dict[str, Any]:
        if not self.enabled:
            return {"success": False, "error": "Email not configured"}
        msg = self.build_message(to_email, document, body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Invoice email to {to_email} failed: {e}")
            return {"success": False, "error": str(e)}
        logger.info(f"✅ Email sent successfully to {to_email}")
        return {"success": True, "to": to_email}

    async def send(self, recipient: str, document: InvoiceDocument, message: str,
                   document_url: Optional[str] = None) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.send_email, recipient, document, message)
