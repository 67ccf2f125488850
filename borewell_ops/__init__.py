"""
Borewell Ops Package

Business backend for a borewell (water-well) services company:
- Customer and service job records
- Inventory tracking with low-stock alerts
- Billing computation (18% GST) and amount-in-words
- PDF invoices with QR verification links
- Invoice delivery over email, WhatsApp and SMS
- Dashboard statistics and an HTTP API
"""

__version__ = "1.0.0"
__author__ = "Borewell Ops Team"

# Submodules are imported on demand so the pure billing code does not pull in
# FastAPI or the Twilio SDK.
