"""
Tests for the HTTP API: auth, envelopes, storefront and owner endpoints
"""
from decimal import Decimal

import pytest
from django.core import mail

from apps.accounts.tokens import generate_access_token, generate_refresh_token
from apps.catalog.models import Product
from apps.customers.models import Customer
from apps.messaging.models import Message
from apps.orders.models import Order

pytestmark = pytest.mark.django_db


def order_payload(products, **overrides):
    rice, dal = products
    payload = {
        'customer': {'name': 'Priya', 'phone': '9123456789', 'address': '12 MG Road'},
        'items': [
            {'productId': str(rice.id), 'quantity': 2},
            {'productId': str(dal.id), 'quantity': 1},
        ],
        'total': 130,
        'discount': 10,
    }
    payload.update(overrides)
    return payload


class TestAuth:

    def test_register(self, api_client):
        response = api_client.post('/api/auth/register/', {
            'name': 'Rahul Sharma', 'email': 'Rahul@Example.com', 'password': 'secret123',
        }, format='json')

        assert response.status_code == 201
        body = response.json()
        assert body['success'] is True
        assert body['user']['email'] == 'rahul@example.com'
        assert body['user']['plan'] == 'free'
        assert body['user']['planLimits']['maxOrders'] == 20
        assert body['accessToken'] and body['refreshToken']
        assert len(mail.outbox) == 1

    def test_register_duplicate_email(self, api_client, account):
        response = api_client.post('/api/auth/register/', {
            'name': 'Someone', 'email': 'owner@example.com', 'password': 'secret123',
        }, format='json')

        assert response.status_code == 409
        assert response.json()['code'] == 'CONFLICT'

    def test_register_validation_envelope(self, api_client):
        response = api_client.post('/api/auth/register/', {
            'name': 'R', 'email': 'not-an-email', 'password': '123',
        }, format='json')

        assert response.status_code == 400
        body = response.json()
        assert body['success'] is False
        assert body['code'] == 'VALIDATION_ERROR'
        assert body['message'].startswith('Validation failed - ')
        assert set(body['errors']) == {'name', 'email', 'password'}

    def test_login_and_me(self, api_client, account):
        response = api_client.post('/api/auth/login/', {
            'email': 'owner@example.com', 'password': 'secret123',
        }, format='json')
        assert response.status_code == 200

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.json()['accessToken']}")
        me = api_client.get('/api/auth/me/')

        assert me.status_code == 200
        assert me.json()['user']['id'] == str(account.id)
        assert me.json()['user']['shopId'] is None

    def test_login_wrong_password(self, api_client, account):
        response = api_client.post('/api/auth/login/', {
            'email': 'owner@example.com', 'password': 'wrong-password',
        }, format='json')

        assert response.status_code == 401
        assert response.json() == {'success': False, 'message': 'Invalid email or password', 'code': 'UNAUTHORIZED'}

    def test_refresh_requires_current_token(self, api_client, account):
        login = api_client.post('/api/auth/login/', {
            'email': 'owner@example.com', 'password': 'secret123',
        }, format='json').json()

        response = api_client.post('/api/auth/refresh/', {'refreshToken': login['refreshToken']}, format='json')
        assert response.status_code == 200
        assert response.json()['accessToken']

        stale = generate_refresh_token(account.id) + 'x'
        response = api_client.post('/api/auth/refresh/', {'refreshToken': stale}, format='json')
        assert response.status_code == 401

    def test_logout_revokes_refresh(self, auth_client, api_client, account):
        account.refresh_token = generate_refresh_token(account.id)
        account.save()
        token = account.refresh_token

        assert auth_client.post('/api/auth/logout/').status_code == 200

        response = api_client.post('/api/auth/refresh/', {'refreshToken': token}, format='json')
        assert response.status_code == 401

    def test_missing_token(self, api_client):
        response = api_client.get('/api/orders/')

        assert response.status_code == 401
        assert response.json()['success'] is False
        assert response.json()['code'] == 'UNAUTHORIZED'

    def test_garbage_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')

        response = api_client.get('/api/orders/')

        assert response.status_code == 401

    def test_access_token_is_not_a_refresh_token(self, api_client, account):
        response = api_client.post(
            '/api/auth/refresh/', {'refreshToken': generate_access_token(account.id)}, format='json'
        )

        assert response.status_code == 401

    def test_deactivated_account(self, auth_client, account):
        account.is_active = False
        account.save()

        assert auth_client.get('/api/auth/me/').status_code == 401


class TestShopEndpoints:

    def test_create_shop(self, auth_client):
        response = auth_client.post('/api/shop/', {
            'shopName': 'Sharma General Store',
            'category': 'kirana',
            'settings': {'lowStockThreshold': 5, 'autoConfirmOrders': True},
        }, format='json')

        assert response.status_code == 201
        shop = response.json()['shop']
        assert shop['publicSlug'] == 'sharma-general-store'
        assert shop['settings']['lowStockThreshold'] == 5
        assert shop['settings']['autoConfirmOrders'] is True

    def test_second_shop_rejected(self, auth_client, shop):
        response = auth_client.post('/api/shop/', {'shopName': 'Another'}, format='json')

        assert response.status_code == 400

    def test_shop_missing(self, auth_client):
        response = auth_client.get('/api/shop/')

        assert response.status_code == 404
        assert response.json() == {'success': False, 'message': 'Shop not found', 'code': 'NOT_FOUND'}

    def test_update_keeps_slug(self, auth_client, shop):
        response = auth_client.put('/api/shop/', {'shopName': 'Renamed Store'}, format='json')

        assert response.status_code == 200
        assert response.json()['shop']['shopName'] == 'Renamed Store'
        assert response.json()['shop']['publicSlug'] == 'rahul-s-kirana-store'

    def test_public_profile(self, api_client, shop):
        response = api_client.get(f'/api/shop/public/{shop.public_slug}/')

        assert response.status_code == 200
        assert response.json()['shop']['shopName'] == shop.name

    def test_public_products_hide_inactive(self, api_client, shop, products):
        rice, _ = products
        rice.is_active = False
        rice.save()

        response = api_client.get(f'/api/shop/public/{shop.public_slug}/products/')

        assert [p['name'] for p in response.json()['data']] == ['Dal']


class TestProductEndpoints:

    def test_create_and_count(self, auth_client, shop):
        response = auth_client.post('/api/products/', {
            'name': 'Sugar', 'price': '45.00', 'stock': 20, 'unit': 'kg', 'costPrice': '40.00',
        }, format='json')

        assert response.status_code == 201
        assert response.json()['product']['profitMargin'] == 12.5
        shop.refresh_from_db()
        assert shop.total_products == 1

    def test_list_is_paginated(self, auth_client, shop, products):
        response = auth_client.get('/api/products/?limit=1&page=2')

        body = response.json()
        assert len(body['data']) == 1
        assert body['pagination'] == {
            'total': 2, 'page': 2, 'limit': 1, 'pages': 2, 'hasNext': False, 'hasPrev': True,
        }

    def test_public_detail_counts_views(self, api_client, products):
        rice, _ = products

        api_client.get(f'/api/products/{rice.id}/')
        response = api_client.get(f'/api/products/{rice.id}/')

        assert response.json()['product']['stats']['views'] == 2

    def test_cannot_edit_another_shops_product(self, auth_client, shop, make_account):
        from apps.shops.models import Shop

        other = Shop.objects.create(owner=make_account(email='x@example.com'), name='Other')
        foreign = Product.objects.create(shop=other, name='Soap', price=Decimal('20'), stock=5)

        response = auth_client.put(f'/api/products/{foreign.id}/', {'price': '1.00'}, format='json')

        assert response.status_code == 404

    def test_low_stock(self, auth_client, shop, products):
        rice, _ = products
        Product.objects.filter(pk=rice.pk).update(stock=3)

        response = auth_client.get('/api/products/alerts/low-stock/')

        assert response.json()['count'] == 2
        assert response.json()['products'][0]['name'] == 'Rice'


class TestOrderEndpoints:

    def test_create_order(self, auth_client, account, products):
        response = auth_client.post('/api/orders/', order_payload(products), format='json')

        assert response.status_code == 201
        body = response.json()
        assert body['message'] == 'Order created successfully'
        assert body['order']['finalTotal'] == 120
        assert body['order']['customer']['phone'] == '9123456789'
        assert body['order']['statusHistory'][0]['updatedBy'] == account.name
        assert body['notification'] is None

    def test_create_order_sends_confirmation(self, auth_client, account, products, whatsapp, sent_messages):
        response = auth_client.post('/api/orders/', order_payload(products), format='json')

        body = response.json()
        assert body['notification']['sent'] is True
        assert body['order']['whatsappSent'] is True
        assert sent_messages[0]['to'] == '919123456789'
        account.refresh_from_db()
        assert account.orders_this_month == 1
        assert account.messages_this_month == 1

    def test_failed_confirmation_keeps_order(self, auth_client, products, whatsapp):
        whatsapp(failing_phones=('9123456789',))

        response = auth_client.post('/api/orders/', order_payload(products), format='json')

        assert response.status_code == 201
        assert response.json()['notification']['sent'] is False
        assert Order.objects.count() == 1
        assert Message.objects.get().status == 'failed'

    def test_insufficient_stock_envelope(self, auth_client, products):
        payload = order_payload(products, total=None, discount=0)
        payload['items'][1]['quantity'] = 50
        del payload['total']

        response = auth_client.post('/api/orders/', payload, format='json')

        assert response.status_code == 400
        assert response.json() == {
            'success': False,
            'message': 'Insufficient stock for Dal. Available: 10',
            'code': 'INSUFFICIENT_STOCK',
            'product': 'Dal',
            'available': 10,
        }
        assert Order.objects.count() == 0

    def test_order_limit(self, auth_client, account, products):
        account.orders_this_month = 20
        account.save()

        response = auth_client.post('/api/orders/', order_payload(products), format='json')

        assert response.status_code == 403
        body = response.json()
        assert body['code'] == 'LIMIT_EXCEEDED'
        assert body['limitExceeded'] is True
        assert body['currentPlan'] == 'free'
        assert body['usage'] == {'current': 20, 'limit': 20}
        assert Order.objects.count() == 0

    def test_invalid_quantity(self, auth_client, products):
        payload = order_payload(products)
        payload['items'][0]['quantity'] = 0

        response = auth_client.post('/api/orders/', payload, format='json')

        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    def test_status_and_payment(self, auth_client, products):
        order_id = auth_client.post('/api/orders/', order_payload(products), format='json').json()['order']['id']

        response = auth_client.put(f'/api/orders/{order_id}/status/', {'status': 'delivered'}, format='json')
        assert response.json()['order']['status'] == 'delivered'

        response = auth_client.put(f'/api/orders/{order_id}/status/', {'status': 'pending'}, format='json')
        assert response.status_code == 400

        response = auth_client.put(f'/api/orders/{order_id}/payment/', {'paidAmount': '60.00'}, format='json')
        assert response.json()['order']['paymentStatus'] == 'partial'

    def test_filters(self, auth_client, products):
        auth_client.post('/api/orders/', order_payload(products), format='json')
        order_id = auth_client.post('/api/orders/', order_payload(products), format='json').json()['order']['id']
        auth_client.put(f'/api/orders/{order_id}/status/', {'status': 'cancelled'}, format='json')

        response = auth_client.get('/api/orders/?status=cancelled')

        assert [o['id'] for o in response.json()['data']] == [order_id]

    def test_invalid_date_filter(self, auth_client, shop):
        response = auth_client.get('/api/orders/?startDate=yesterday-ish')

        assert response.status_code == 400
        assert response.json()['field'] == 'startDate'


class TestStorefrontCheckout:

    def test_public_order(self, api_client, account, shop, products):
        payload = order_payload(products)

        response = api_client.post(f'/api/shop/public/{shop.public_slug}/orders/', payload, format='json')

        assert response.status_code == 201
        order = response.json()['order']
        assert order['source'] == 'public_page'
        assert order['statusHistory'][0]['updatedBy'] == 'customer'
        account.refresh_from_db()
        assert account.orders_this_month == 0

    def test_unknown_storefront(self, api_client, products):
        response = api_client.post('/api/shop/public/no-such-shop/orders/', order_payload(products), format='json')

        assert response.status_code == 404


class TestCustomerEndpoints:

    def test_create_and_detail(self, auth_client, shop, products):
        auth_client.post('/api/orders/', order_payload(products), format='json')
        customer = Customer.objects.get(phone='9123456789')

        response = auth_client.get(f'/api/customers/{customer.id}/')

        assert response.status_code == 200
        assert response.json()['customer']['totalOrders'] == 1
        assert len(response.json()['orders']) == 1

    def test_duplicate_phone(self, auth_client, shop):
        auth_client.post('/api/customers/', {'name': 'Amit', 'phone': '9000000001'}, format='json')

        response = auth_client.post('/api/customers/', {'name': 'Amit 2', 'phone': '9000000001'}, format='json')

        assert response.status_code == 409

    def test_bad_phone(self, auth_client, shop):
        response = auth_client.post('/api/customers/', {'name': 'Amit', 'phone': '12345'}, format='json')

        assert response.status_code == 400


class TestMessagingEndpoints:

    def test_send_failure_is_not_metered(self, auth_client, account, shop, whatsapp):
        whatsapp(failing_phones=('9000000001',))

        response = auth_client.post('/api/whatsapp/send/', {'phone': '9000000001', 'message': 'Hi'}, format='json')

        assert response.status_code == 200
        assert response.json()['success'] is False
        account.refresh_from_db()
        assert account.messages_this_month == 0
        assert Message.objects.get().status == 'failed'

    def test_campaign_meters_successes(self, auth_client, account, shop, whatsapp):
        whatsapp(failing_phones=('9000000002',))

        response = auth_client.post('/api/whatsapp/campaign/', {
            'message': 'Diwali sale!',
            'recipients': [{'phone': '9000000001'}, {'phone': '9000000002'}, {'phone': '9000000003'}],
        }, format='json')

        assert response.json()['results'] == {'total': 3, 'successful': 2, 'failed': 1}
        account.refresh_from_db()
        assert account.messages_this_month == 2

    def test_campaign_larger_than_remaining_quota(self, auth_client, account, shop, whatsapp, sent_messages):
        account.messages_this_month = account.max_messages - 1
        account.save()

        response = auth_client.post('/api/whatsapp/campaign/', {
            'message': 'Diwali sale!',
            'recipients': [{'phone': '9000000001'}, {'phone': '9000000002'}],
        }, format='json')

        assert response.status_code == 403
        assert response.json()['limitExceeded'] is True
        assert sent_messages == []
        assert not Message.objects.exists()
        account.refresh_from_db()
        assert account.messages_this_month == account.max_messages - 1

    def test_offer_campaign_to_segment(self, auth_client, shop, whatsapp, sent_messages):
        Customer.objects.create(shop=shop, name='Amit', phone='9000000001', segment='vip')
        Customer.objects.create(shop=shop, name='Neha', phone='9000000002', segment='new')

        response = auth_client.post('/api/whatsapp/campaign/', {
            'offer': '20% off on rice', 'segment': 'vip',
        }, format='json')

        assert response.json()['results']['total'] == 1
        assert 'Special offer from' in sent_messages[0]['text']['body']
        assert Message.objects.get().type == 'offer'

    def test_empty_segment(self, auth_client, shop, whatsapp):
        response = auth_client.post('/api/whatsapp/campaign/', {'message': 'Hi', 'segment': 'vip'}, format='json')

        assert response.status_code == 400

    def test_history(self, auth_client, shop, whatsapp):
        auth_client.post('/api/whatsapp/send/', {'phone': '9000000001', 'message': 'Hi'}, format='json')

        response = auth_client.get('/api/whatsapp/messages/')

        assert response.json()['messages'][0]['recipient'] == {'phone': '9000000001', 'name': None}


class TestAnalyticsEndpoints:

    def test_dashboard(self, auth_client, products):
        auth_client.post('/api/orders/', order_payload(products), format='json')

        response = auth_client.get('/api/analytics/dashboard/')

        assert response.status_code == 200
        assert response.json()['analytics']['today']['orders'] == 1

    def test_sales_trends_period(self, auth_client, shop):
        response = auth_client.get('/api/analytics/sales-trends/?period=month')

        assert response.json() == {'success': True, 'period': 'month', 'salesTrends': []}

    def test_sales_trends_unknown_period(self, auth_client, shop):
        response = auth_client.get('/api/analytics/sales-trends/?period=decade')

        assert response.status_code == 400


def test_health(api_client):
    response = api_client.get('/api/health/')

    body = response.json()
    assert body['status'] == 'healthy'
    assert body['providers'] == {'whatsapp': 'not configured', 'ai': 'not configured', 'payments': 'configured'}
