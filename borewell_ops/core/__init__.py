"""
Core business logic for borewell service billing.

This module contains:
- Amount-in-words conversion
- Bill ids and QR verification payloads
- Pricing, tax and stock validation
- Invoice PDF generation and delivery
- Dashboard statistics
"""
