"""
Bill identifiers and QR verification payloads.
"""

import json
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

BILL_ID_PREFIX = "BW"
DEFAULT_QR_ENDPOINT = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data={payload}"


def generate_bill_id() -> str:
    """Return a bill id like BW-48213-5521 (random part, then clock part).

    Not guaranteed unique; collisions are unlikely for a single operator.
    """
    random_part = random.randint(10000, 99999)
    clock_part = str(int(time.time() * 1000))[-4:]
    return f"{BILL_ID_PREFIX}-{random_part}-{clock_part}"


def build_qr_payload(bill_id: str, customer_id: str, amount: float,
                     timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    timestamp = timestamp or datetime.now(timezone.utc)
    return {
        "billId": bill_id,
        "customerId": customer_id,
        "amount": amount,
        "timestamp": timestamp.isoformat(),
    }


def encode_qr_payload(payload: Dict[str, Any]) -> str:
    return quote(json.dumps(payload, separators=(",", ":")), safe="")


def generate_qr_payload_url(bill_id: str, customer_id: str, amount: float,
                            timestamp: Optional[datetime] = None,
                            endpoint_template: str = DEFAULT_QR_ENDPOINT) -> str:
    """
    Build the verification QR image URL for a bill.

    The payload is JSON-encoded and URL-encoded into the ``{payload}``
    placeholder of the QR rendering endpoint.
    """
    payload = build_qr_payload(bill_id, customer_id, amount, timestamp)
    return endpoint_template.format(payload=encode_qr_payload(payload))
