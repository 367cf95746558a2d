"""
Shared fixtures: an owner with a shop and products, an authenticated API
client, and provider clients backed by httpx mock transports.
"""
import json
from decimal import Decimal
from itertools import count

import httpx
import pytest
from django.apps import apps
from rest_framework.test import APIClient

from apps.accounts.models import Account
from apps.accounts.tokens import generate_access_token
from apps.catalog.models import Product
from apps.messaging.clients import WhatsAppClient
from apps.messaging.dispatcher import NotificationDispatcher
from apps.shops.models import Shop


def create_account(email='owner@example.com', name='Rahul Sharma', password='secret123', **extra):
    account = Account(name=name, email=email, phone='9876543210', **extra)
    account.set_password(password)
    account.apply_plan_limits()
    account.save()
    return account


@pytest.fixture
def make_account(db):
    return create_account


@pytest.fixture
def account(make_account):
    return make_account()


@pytest.fixture
def shop(account):
    return Shop.objects.create(owner=account, name="Rahul's Kirana Store!!", category='kirana')


@pytest.fixture
def products(shop):
    """Rice at 50 and dal at 30, ten of each in stock."""
    rice = Product.objects.create(shop=shop, name='Rice', price=Decimal('50'), stock=10, unit='kg')
    dal = Product.objects.create(shop=shop, name='Dal', price=Decimal('30'), stock=10, unit='kg')
    return rice, dal


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(account):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {generate_access_token(account.id)}")
    return client


def whatsapp_transport(failing_phones=(), sent=None):
    """
    Mock Cloud API: numbers in ``failing_phones`` are rejected, everything
    else is accepted with a fresh message id. Payloads are appended to ``sent``.
    """
    ids = count(1)

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if sent is not None:
            sent.append(payload)
        if payload['to'][-10:] in failing_phones:
            return httpx.Response(400, json={'error': {'message': 'Recipient phone number not in allowed list'}})
        return httpx.Response(200, json={'messages': [{'id': f"wamid.{next(ids)}"}]})

    return httpx.MockTransport(handler)


@pytest.fixture
def sent_messages():
    return []


@pytest.fixture
def whatsapp(monkeypatch, sent_messages):
    """Install a configured dispatcher; returns a setter for failing numbers."""
    config = apps.get_app_config('messaging')

    def install(failing_phones=()):
        client = WhatsAppClient(
            phone_number_id='1234567890',
            access_token='test-token',
            transport=whatsapp_transport(failing_phones, sent_messages),
        )
        dispatcher = NotificationDispatcher(client, delay_seconds=0)
        monkeypatch.setattr(config, 'dispatcher', dispatcher)
        return dispatcher

    install()
    return install
