"""
Razorpay gateway client and checkout signature verification.
"""
import hashlib
import hmac
import logging
from typing import Any, Dict

import httpx
from django.conf import settings

from apps.core.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)

RAZORPAY_API_URL = "https://api.razorpay.com/v1"


def verify_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """
    Check the checkout signature: hex HMAC-SHA256 of ``order_id|payment_id``
    keyed with the gateway secret, compared in constant time.
    """
    if not (order_id and payment_id and signature and secret):
        return False
    expected = hmac.new(
        secret.encode(),
        f"{order_id}|{payment_id}".encode(),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(expected, signature)


class RazorpayGateway:
    """
    Creates checkout orders over the Razorpay REST API.
    """

    def __init__(self, key_id: str, key_secret: str, timeout: float = 10.0,
                 transport: httpx.BaseTransport = None):
        self.key_id = key_id
        self.key_secret = key_secret
        self._http = httpx.Client(
            base_url=RAZORPAY_API_URL,
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls) -> 'RazorpayGateway':
        return cls(
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            timeout=settings.OUTBOUND_HTTP_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def create_order(self, amount: int, receipt: str, notes: Dict[str, str] = None,
                     currency: str = 'INR') -> Dict[str, Any]:
        """Create a gateway order; ``amount`` is in paise."""
        if not self.is_configured:
            raise ExternalServiceException("Payment gateway", "Payment service not configured", configured=False)

        try:
            response = self._http.post('/orders', json={
                'amount': amount,
                'currency': currency,
                'receipt': receipt,
                'notes': notes or {},
            })
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Razorpay create order error: {e}")
            raise ExternalServiceException("Payment gateway", "Error creating payment order")

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        return verify_signature(order_id, payment_id, signature, self.key_secret)
