"""
Notification dispatcher.

Sends through a WhatsAppClient and records every attempt as a Message,
successful or not. Bulk sends are sequential with a fixed delay between
recipients to stay under the provider's rate limit.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from django.db import transaction

from apps.core.utils import truncate_for_display
from .clients import SendResult, WhatsAppClient
from .formatting import format_order_confirmation
from .models import Message

logger = logging.getLogger(__name__)


@dataclass
class CampaignReport:
    """Per-campaign delivery summary."""
    campaign_id: str
    total: int = 0
    successful: int = 0
    messages: List[Message] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.total - self.successful


class NotificationDispatcher:
    """
    Usage:
        dispatcher = NotificationDispatcher(client, delay_seconds=1.5)
        message, result = dispatcher.send_order_confirmation(order)
    """

    def __init__(self, client: WhatsAppClient, delay_seconds: float = 0,
                 sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    def _record(self, shop, message_type: str, phone: str, body: str, result: SendResult,
                name: str = None, customer=None, order=None, campaign_id: str = None,
                template_name: str = None, template_params: List[str] = None) -> Message:
        message = Message(
            shop=shop,
            type=message_type,
            recipient_phone=phone,
            recipient_name=name,
            customer=customer,
            body=body,
            order=order,
            campaign_id=campaign_id,
            template_name=template_name,
            template_params=template_params,
        )
        if result.success:
            message.mark_as_sent(result.message_id)
        else:
            message.mark_as_failed(result.error or 'Unknown error')
        message.save()
        return message

    def send_custom(self, shop, phone: str, body: str, name: str = None, customer=None):
        logger.info(f"Sending custom message to {phone}: {truncate_for_display(body, 50)}")
        result = self.client.send_text(phone, body)
        return self._record(shop, 'custom', phone, body, result, name=name, customer=customer), result

    def send_order_confirmation(self, order):
        """
        Send the confirmation for ``order`` and flag it as sent on success.
        """
        shop = order.shop
        body = format_order_confirmation(
            order_number=order.order_number,
            customer_name=order.customer_name,
            total=order.final_total,
            shop_name=shop.name,
            delivery_date=order.delivery_date,
            language=shop.language,
        )
        result = self.client.send_text(order.customer_phone, body)

        with transaction.atomic():
            message = self._record(
                shop, 'order_confirmation', order.customer_phone, body, result,
                name=order.customer_name, customer=order.customer, order=order,
            )
            if result.success:
                order.whatsapp_sent = True
                order.save(update_fields=['whatsapp_sent', 'updated_at'])

        if result.success:
            logger.info(f"Order confirmation sent for {order.order_number}")
        else:
            logger.warning(f"Order confirmation failed for {order.order_number}: {result.error}")
        return message, result

    def send_campaign(self, shop, recipients: List[Dict], body: str = None,
                      message_type: str = 'campaign', template_name: str = None,
                      template_params: List[str] = None) -> CampaignReport:
        """
        Send ``body`` to each recipient ({phone, name?, customer?}) in turn.
        With ``template_name`` an approved template is sent instead of free text.
        """
        report = CampaignReport(campaign_id=uuid.uuid4().hex[:12], total=len(recipients))
        logger.info(f"Campaign {report.campaign_id}: {len(recipients)} recipient(s) for shop {shop.id}")
        if template_name and not body:
            body = f"[template] {template_name}"

        for index, recipient in enumerate(recipients):
            if template_name:
                result = self.client.send_template(
                    recipient['phone'], template_name, template_params, language=shop.language
                )
            else:
                result = self.client.send_text(recipient['phone'], body)
            message = self._record(
                shop, message_type, recipient['phone'], body, result,
                name=recipient.get('name'),
                customer=recipient.get('customer'),
                campaign_id=report.campaign_id,
                template_name=template_name,
                template_params=template_params,
            )
            report.messages.append(message)
            if result.success:
                report.successful += 1

            if self.delay_seconds > 0 and index < len(recipients) - 1:
                self._sleep(self.delay_seconds)

        logger.info(f"Campaign {report.campaign_id}: {report.successful}/{report.total} sent")
        return report


def get_dispatcher() -> NotificationDispatcher:
    """The process-wide dispatcher built at startup."""
    from django.apps import apps
    return apps.get_app_config('messaging').dispatcher


def notification_outcome(message: Optional[Message]) -> Optional[dict]:
    """Response fragment describing a send attempt, None when nothing was sent."""
    if message is None:
        return None
    return {
        "sent": message.status != 'failed',
        "status": message.status,
        "messageId": message.provider_message_id,
        "error": message.failure_reason,
    }
