import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


def fetch_qr_image(qr_code_url: str, timeout: float = 10.0,
                   session: Optional[requests.Session] = None) -> Optional[bytes]:
    """
    Download the rendered QR code image for a bill.

    The response body is not inspected beyond its content type. Returns None
    when the renderer cannot be reached, so the invoice is built without it.
    """
    if not qr_code_url:
        return None
    http = session or requests
    try:
        response = http.get(qr_code_url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.warning(f"⚠️ QR image unavailable, building invoice without it: {e}")
        return None
    if not response.headers.get("Content-Type", "").startswith("image/"):
        logger.warning(f"⚠️ QR renderer returned {response.headers.get('Content-Type')}, skipping image")
        return None
    return response.content
