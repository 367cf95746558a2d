"""
WhatsApp Cloud API client.

One instance is built per process (see MessagingConfig.ready) and handed to
the notification dispatcher. Provider failures are returned as a failed
SendResult rather than raised: a message that cannot be delivered must not
abort the action that triggered it.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.facebook.com/{version}/{phone_number_id}/messages"


@dataclass
class SendResult:
    """Outcome of one send attempt."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class WhatsAppClient:
    """
    Thin wrapper over the WhatsApp Cloud API messages endpoint.
    """

    def __init__(
        self,
        phone_number_id: str,
        access_token: str,
        api_version: str = 'v18.0',
        country_code: str = '91',
        timeout: float = 10.0,
        transport: httpx.BaseTransport = None,
    ):
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.country_code = country_code
        self.api_url = GRAPH_API_URL.format(version=api_version, phone_number_id=phone_number_id)
        self._http = httpx.Client(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls) -> 'WhatsAppClient':
        return cls(
            phone_number_id=settings.WHATSAPP_PHONE_NUMBER_ID,
            access_token=settings.WHATSAPP_ACCESS_TOKEN,
            api_version=settings.WHATSAPP_API_VERSION,
            country_code=settings.WHATSAPP_COUNTRY_CODE,
            timeout=settings.OUTBOUND_HTTP_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    def format_phone(self, phone: str) -> str:
        """Prefix the country code unless it is already there."""
        if len(phone) > 10 and phone.startswith(self.country_code):
            return phone
        return f"{self.country_code}{phone}"

    def send_text(self, phone: str, body: str) -> SendResult:
        return self._post({
            "messaging_product": "whatsapp",
            "to": self.format_phone(phone),
            "type": "text",
            "text": {"body": body},
        })

    def send_template(self, phone: str, template_name: str, params: List[str] = None,
                      language: str = 'en') -> SendResult:
        components = []
        if params:
            components.append({
                "type": "body",
                "parameters": [{"type": "text", "text": str(p)} for p in params],
            })
        return self._post({
            "messaging_product": "whatsapp",
            "to": self.format_phone(phone),
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": language},
                "components": components,
            },
        })

    def _post(self, payload: dict) -> SendResult:
        if not self.is_configured:
            logger.warning("WhatsApp is not configured. Skipping message send.")
            return SendResult(success=False, error="WhatsApp not configured")

        try:
            response = self._http.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
            response.raise_for_status()
            data = response.json()
            return SendResult(success=True, message_id=data["messages"][0]["id"])
        except httpx.HTTPStatusError as e:
            error = _provider_error(e.response)
            logger.error(f"WhatsApp send error ({e.response.status_code}): {error}")
            return SendResult(success=False, error=error)
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.error(f"WhatsApp send error: {e}")
            return SendResult(success=False, error=str(e) or e.__class__.__name__)


def _provider_error(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}"
