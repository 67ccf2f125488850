"""
Adapter modules for external services.

This module contains adapters for:
- Messaging gateways (Twilio SMS/WhatsApp, SMTP email)
- The QR code rendering service
"""
