"""
Tests for the WhatsApp client, the notification dispatcher and message formatting
"""
from datetime import date
from decimal import Decimal

import pytest

from apps.core.exceptions import ValidationException
from apps.messaging.clients import WhatsAppClient
from apps.messaging.dispatcher import NotificationDispatcher, notification_outcome
from apps.messaging.formatting import format_offer_message, format_order_confirmation
from apps.messaging.models import Message
from apps.orders import services as order_services
from tests.conftest import whatsapp_transport

pytestmark = pytest.mark.django_db


def build_dispatcher(failing_phones=(), sent=None, **kwargs):
    client = WhatsAppClient('1234567890', 'test-token', transport=whatsapp_transport(failing_phones, sent))
    return NotificationDispatcher(client, **kwargs)


class TestWhatsAppClient:

    def test_country_code_prefixed_once(self):
        client = WhatsAppClient('1', 'token')

        assert client.format_phone('9876543210') == '919876543210'
        assert client.format_phone('919876543210') == '919876543210'

    def test_unconfigured_client_reports_failure(self):
        result = WhatsAppClient('', '').send_text('9876543210', 'hi')

        assert result.success is False
        assert result.error == 'WhatsApp not configured'

    def test_provider_error_message_surfaces(self):
        client = WhatsAppClient('1', 'token', transport=whatsapp_transport(failing_phones=('9876543210',)))

        result = client.send_text('9876543210', 'hi')

        assert result.success is False
        assert result.error == 'Recipient phone number not in allowed list'

    def test_template_payload(self):
        sent = []
        client = WhatsAppClient('1', 'token', transport=whatsapp_transport(sent=sent))

        result = client.send_template('9876543210', 'diwali_offer', ['20%'], language='hi')

        assert result.success is True
        assert sent[0]['template']['name'] == 'diwali_offer'
        assert sent[0]['template']['language'] == {'code': 'hi'}
        assert sent[0]['template']['components'][0]['parameters'] == [{'type': 'text', 'text': '20%'}]


class TestMessageStatus:

    def test_forward_progression(self, shop):
        message = Message(shop=shop, type='custom', recipient_phone='9876543210', body='hi')

        message.mark_as_sent('wamid.1')
        message.mark_as_delivered()
        message.mark_as_read()

        assert message.status == 'read'
        assert message.read_at is not None

    def test_cannot_go_backwards(self, shop):
        message = Message(shop=shop, type='custom', recipient_phone='9876543210', body='hi')
        message.mark_as_sent('wamid.1')
        message.mark_as_delivered()

        with pytest.raises(ValidationException):
            message.mark_as_sent('wamid.2')
        with pytest.raises(ValidationException):
            message.mark_as_failed('late failure')

    def test_failed_is_terminal(self, shop):
        message = Message(shop=shop, type='custom', recipient_phone='9876543210', body='hi')
        message.mark_as_failed('bad number')

        with pytest.raises(ValidationException):
            message.mark_as_sent('wamid.1')


class TestDispatcher:

    def test_failed_send_is_recorded(self, shop):
        dispatcher = build_dispatcher(failing_phones=('9000000001',))

        message, result = dispatcher.send_custom(shop, '9000000001', 'Hello')

        assert result.success is False
        message.refresh_from_db()
        assert message.status == 'failed'
        assert message.failure_reason == 'Recipient phone number not in allowed list'
        assert notification_outcome(message)['sent'] is False

    def test_campaign_counts_successes_and_paces_sends(self, shop):
        pauses = []
        dispatcher = build_dispatcher(failing_phones=('9000000002',), delay_seconds=1.5, sleep=pauses.append)
        recipients = [{'phone': '9000000001'}, {'phone': '9000000002'}, {'phone': '9000000003', 'name': 'Neha'}]

        report = dispatcher.send_campaign(shop, recipients, 'Diwali sale!')

        assert (report.total, report.successful, report.failed) == (3, 2, 1)
        assert pauses == [1.5, 1.5]
        assert Message.objects.filter(campaign_id=report.campaign_id).count() == 3
        assert Message.objects.filter(campaign_id=report.campaign_id, status='failed').count() == 1

    def test_template_campaign(self, shop, sent_messages):
        dispatcher = build_dispatcher(sent=sent_messages)

        report = dispatcher.send_campaign(
            shop, [{'phone': '9000000001'}], template_name='festival_greeting', template_params=['Diwali'],
        )

        assert report.successful == 1
        assert sent_messages[0]['type'] == 'template'
        message = report.messages[0]
        assert message.template_name == 'festival_greeting'
        assert message.template_params == ['Diwali']

    def test_order_confirmation_flags_order(self, shop, products):
        rice, _ = products
        order = order_services.place_order(
            shop, customer={'name': 'Priya', 'phone': '9123456789'},
            items=[{'product_id': rice.id, 'quantity': 1}],
        )
        dispatcher = build_dispatcher()

        message, result = dispatcher.send_order_confirmation(order)

        assert result.success is True
        assert message.type == 'order_confirmation'
        assert message.order_id == order.id
        order.refresh_from_db()
        assert order.whatsapp_sent is True


class TestNotifyOrderPlaced:

    def _order(self, shop, products):
        rice, _ = products
        return order_services.place_order(
            shop, customer={'name': 'Priya', 'phone': '9123456789'},
            items=[{'product_id': rice.id, 'quantity': 1}],
        )

    def test_sends_and_meters_owner(self, shop, products, account):
        order = self._order(shop, products)

        message = order_services.notify_order_placed(order, build_dispatcher())

        assert message.status == 'sent'
        account.refresh_from_db()
        assert account.messages_this_month == 1

    def test_failed_send_keeps_order_and_usage(self, shop, products, account):
        order = self._order(shop, products)

        message = order_services.notify_order_placed(order, build_dispatcher(failing_phones=('9123456789',)))

        assert message.status == 'failed'
        order.refresh_from_db()
        account.refresh_from_db()
        assert order.whatsapp_sent is False
        assert account.messages_this_month == 0

    def test_skipped_when_owner_over_limit(self, shop, products, account):
        account.messages_this_month = account.max_messages
        account.save()
        order = self._order(shop, products)

        assert order_services.notify_order_placed(order, build_dispatcher()) is None
        assert Message.objects.count() == 0

    def test_skipped_when_notifications_off(self, shop, products):
        shop.enable_whatsapp_notifications = False
        shop.save()
        order = self._order(shop, products)

        assert order_services.notify_order_placed(order, build_dispatcher()) is None


class TestFormatting:

    def test_order_confirmation_english(self):
        body = format_order_confirmation('ORD-20240305-0001', 'Priya', Decimal('120.00'), 'Kirana', date(2024, 3, 6))

        assert 'Hello Priya!' in body
        assert '#ORD-20240305-0001' in body
        assert '₹120.00' in body
        assert 'Delivery: 06/03/2024' in body

    def test_order_confirmation_hindi(self):
        body = format_order_confirmation('ORD-1', 'Priya', 50, 'Kirana', language='hi')

        assert 'नमस्ते Priya' in body
        assert 'डिलीवरी' not in body

    def test_offer_message(self):
        body = format_offer_message('Kirana', '20% off on rice', date(2024, 11, 1))

        assert 'Special offer from Kirana' in body
        assert 'Valid until: 01/11/2024' in body
