"""
API Views for LocalBiz

This module provides REST API endpoints for:
- Auth: registration, login, token refresh, logout
- Shop: setup, settings and the public storefront
- Products, Customers, Orders: the shop's catalog and ledger
- WhatsApp: single messages, campaigns and message history
- AI: business insights and campaign copy
- Payments: plan checkout and verification
- Analytics: dashboard and sales trends
- Health Check: system health and status
"""
import logging
from datetime import datetime

from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts import plans, services as account_services
from apps.accounts.metering import enforce_plan_limit, increment_usage
from apps.analytics.services import build_dashboard, sales_trends
from apps.assistant.graph import get_advisor
from apps.assistant.prompts import get_suggested_questions
from apps.billing import services as billing_services
from apps.billing.models import Payment
from apps.catalog import services as catalog_services
from apps.catalog.models import Product
from apps.core.exceptions import NotFoundException, ValidationException
from apps.core.utils import build_pagination_response, get_pagination, local_day_bounds
from apps.customers import services as customer_services
from apps.customers.models import Customer
from apps.messaging.dispatcher import get_dispatcher, notification_outcome
from apps.messaging.formatting import format_offer_message
from apps.messaging.models import Message
from apps.orders import services as order_services
from apps.orders.models import Order
from apps.shops import services as shop_services
from .serializers import (
    AccountSerializer,
    AIQuerySerializer,
    CampaignMessageRequestSerializer,
    CampaignSerializer,
    CreatePaymentSerializer,
    CustomerSerializer,
    HealthCheckSerializer,
    LoginSerializer,
    MessageSerializer,
    OrderCreateSerializer,
    OrderPaymentUpdateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PaymentSerializer,
    ProductSerializer,
    PublicShopSerializer,
    RefreshSerializer,
    RegisterSerializer,
    SendMessageSerializer,
    ShopSerializer,
    VerifyPaymentSerializer,
)

logger = logging.getLogger(__name__)

MESSAGE_HISTORY_LIMIT = 50
CUSTOMER_RECENT_ORDERS = 10

PAGINATION_PARAMETERS = [
    OpenApiParameter('page', int, description="1-based page number (default 1)"),
    OpenApiParameter('limit', int, description="Page size (default 20, max 100)"),
]


def _paginate(request, queryset, serializer_class) -> dict:
    page, limit, offset = get_pagination(request.query_params)
    total = queryset.count()
    items = serializer_class(queryset[offset:offset + limit], many=True).data
    return {"success": True, **build_pagination_response(items, total, page, limit)}


def _order_queryset():
    return Order.objects.prefetch_related('items', 'status_history')


def _place_and_notify(shop, serializer: OrderCreateSerializer, **kwargs):
    order = order_services.place_order(shop, **serializer.to_service_kwargs(), **kwargs)
    message = order_services.notify_order_placed(order, get_dispatcher())
    order = _order_queryset().get(pk=order.pk)
    return order, message


# =============================================================================
# AUTH
# =============================================================================

class RegisterView(APIView):
    """
    Register a new shop owner on the free plan.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        request=RegisterSerializer,
        description="Register a new shop owner account",
        examples=[
            OpenApiExample(
                "Registration",
                value={"name": "Rahul Sharma", "email": "rahul@example.com", "password": "secret123", "phone": "9876543210"},
                request_only=True
            ),
        ]
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        account, tokens = account_services.register(**serializer.validated_data)
        return Response(
            {
                "success": True,
                "message": "Registration successful",
                "user": AccountSerializer(account).data,
                **tokens,
            },
            status=status.HTTP_201_CREATED
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=LoginSerializer, description="Log in with email and password")
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        account, tokens = account_services.login(**serializer.validated_data)
        return Response({
            "success": True,
            "message": "Login successful",
            "user": AccountSerializer(account).data,
            **tokens,
        })


class RefreshTokenView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=RefreshSerializer, description="Exchange a refresh token for a new access token")
    def post(self, request):
        serializer = RefreshSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        access_token = account_services.refresh_access_token(serializer.validated_data['refreshToken'])
        return Response({"success": True, "accessToken": access_token})


class LogoutView(APIView):

    @extend_schema(request=None, description="Invalidate the caller's refresh token")
    def post(self, request):
        account_services.logout(request.user)
        return Response({"success": True, "message": "Logged out successfully"})


class MeView(APIView):

    @extend_schema(description="Current account with plan limits and usage")
    def get(self, request):
        return Response({"success": True, "user": AccountSerializer(request.user).data})


# =============================================================================
# SHOP
# =============================================================================

class ShopView(APIView):
    """
    The caller's own shop: create once, then read and edit.
    """

    @extend_schema(request=ShopSerializer, responses={201: ShopSerializer}, description="Create the caller's shop")
    def post(self, request):
        serializer = ShopSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        shop = shop_services.create_shop(request.user, serializer.validated_data)
        return Response(
            {"success": True, "message": "Shop created successfully", "shop": ShopSerializer(shop).data},
            status=status.HTTP_201_CREATED
        )

    @extend_schema(responses={200: ShopSerializer}, description="Get the caller's shop")
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        return Response({"success": True, "shop": ShopSerializer(shop).data})

    @extend_schema(request=ShopSerializer, responses={200: ShopSerializer}, description="Update profile and settings")
    def put(self, request):
        shop = shop_services.get_owned_shop(request.user)
        serializer = ShopSerializer(shop, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        shop = shop_services.update_shop(shop, dict(serializer.validated_data))
        return Response({"success": True, "message": "Shop updated successfully", "shop": ShopSerializer(shop).data})


class PublicShopView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(responses={200: PublicShopSerializer}, description="Public storefront profile by slug")
    def get(self, request, slug):
        shop = shop_services.get_public_shop(slug)
        return Response({"success": True, "shop": PublicShopSerializer(shop).data})


class PublicProductListView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        parameters=PAGINATION_PARAMETERS + [
            OpenApiParameter('category', str),
            OpenApiParameter('search', str),
        ],
        responses={200: ProductSerializer(many=True)},
        description="Active products of a public storefront"
    )
    def get(self, request, slug):
        shop = shop_services.get_public_shop(slug)
        queryset = catalog_services.filter_products(
            Product.objects.filter(shop=shop, is_active=True).select_related('shop').order_by('-created_at'),
            category=request.query_params.get('category'),
            search=request.query_params.get('search'),
        )
        return Response(_paginate(request, queryset, ProductSerializer))


class PublicOrderCreateView(APIView):
    """
    Storefront checkout. Orders are tagged ``public_page`` and are not
    metered against any account.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=OrderCreateSerializer, responses={201: OrderSerializer}, description="Place an order on a public storefront")
    def post(self, request, slug):
        shop = shop_services.get_public_shop(slug)
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.validated_data['source'] = 'public_page'

        order, message = _place_and_notify(shop, serializer, account=None, placed_by='customer')
        return Response(
            {
                "success": True,
                "message": "Order placed successfully",
                "order": OrderSerializer(order).data,
                "notification": notification_outcome(message),
            },
            status=status.HTTP_201_CREATED
        )


# =============================================================================
# PRODUCTS
# =============================================================================

class ProductListView(APIView):

    @extend_schema(
        parameters=PAGINATION_PARAMETERS + [
            OpenApiParameter('category', str),
            OpenApiParameter('isActive', bool),
            OpenApiParameter('search', str),
        ],
        responses={200: ProductSerializer(many=True)},
        description="List the shop's products"
    )
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        queryset = catalog_services.filter_products(
            Product.objects.filter(shop=shop).select_related('shop').order_by('-created_at'),
            category=request.query_params.get('category'),
            is_active=request.query_params.get('isActive'),
            search=request.query_params.get('search'),
        )
        return Response(_paginate(request, queryset, ProductSerializer))

    @extend_schema(request=ProductSerializer, responses={201: ProductSerializer}, description="Add a product")
    def post(self, request):
        shop = shop_services.get_owned_shop(request.user)
        serializer = ProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = catalog_services.create_product(shop, serializer.validated_data)
        return Response(
            {"success": True, "message": "Product created successfully", "product": ProductSerializer(product).data},
            status=status.HTTP_201_CREATED
        )


class ProductDetailView(APIView):

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return super().get_permissions()

    def _owned(self, request, product_id) -> Product:
        shop = shop_services.get_owned_shop(request.user)
        product = Product.objects.filter(pk=product_id, shop=shop).select_related('shop').first()
        if product is None:
            raise NotFoundException("Product")
        return product

    @extend_schema(responses={200: ProductSerializer}, description="Get a product (public); counts a view")
    def get(self, request, product_id):
        product = Product.objects.filter(pk=product_id).select_related('shop').first()
        if product is None:
            raise NotFoundException("Product")
        catalog_services.record_view(product)
        return Response({"success": True, "product": ProductSerializer(product).data})

    @extend_schema(request=ProductSerializer, responses={200: ProductSerializer}, description="Update a product")
    def put(self, request, product_id):
        product = self._owned(request, product_id)
        serializer = ProductSerializer(product, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        return Response({"success": True, "message": "Product updated successfully", "product": ProductSerializer(product).data})

    @extend_schema(responses={200: None}, description="Delete a product")
    def delete(self, request, product_id):
        product = self._owned(request, product_id)
        catalog_services.delete_product(product)
        return Response({"success": True, "message": "Product deleted successfully"})


class LowStockView(APIView):

    @extend_schema(responses={200: ProductSerializer(many=True)}, description="Active products at or below the low-stock threshold")
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        products = catalog_services.low_stock_products(shop).select_related('shop')
        data = ProductSerializer(products, many=True).data
        return Response({"success": True, "count": len(data), "products": data})


# =============================================================================
# CUSTOMERS
# =============================================================================

class CustomerListView(APIView):

    @extend_schema(
        parameters=PAGINATION_PARAMETERS + [
            OpenApiParameter('segment', str),
            OpenApiParameter('search', str),
        ],
        responses={200: CustomerSerializer(many=True)},
        description="List customers, biggest spenders first"
    )
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        queryset = customer_services.filter_customers(
            Customer.objects.filter(shop=shop),
            segment=request.query_params.get('segment'),
            search=request.query_params.get('search'),
        )
        return Response(_paginate(request, queryset, CustomerSerializer))

    @extend_schema(request=CustomerSerializer, responses={201: CustomerSerializer}, description="Add a customer")
    def post(self, request):
        shop = shop_services.get_owned_shop(request.user)
        serializer = CustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer = customer_services.create_customer(shop, serializer.validated_data)
        return Response(
            {"success": True, "message": "Customer added successfully", "customer": CustomerSerializer(customer).data},
            status=status.HTTP_201_CREATED
        )


class CustomerDetailView(APIView):

    def _owned(self, request, customer_id) -> Customer:
        shop = shop_services.get_owned_shop(request.user)
        customer = Customer.objects.filter(pk=customer_id, shop=shop).first()
        if customer is None:
            raise NotFoundException("Customer")
        return customer

    @extend_schema(description="Customer with their latest orders")
    def get(self, request, customer_id):
        customer = self._owned(request, customer_id)
        orders = _order_queryset().filter(customer=customer).order_by('-created_at')[:CUSTOMER_RECENT_ORDERS]
        return Response({
            "success": True,
            "customer": CustomerSerializer(customer).data,
            "orders": OrderSerializer(orders, many=True).data,
        })

    @extend_schema(request=CustomerSerializer, responses={200: CustomerSerializer}, description="Update a customer")
    def put(self, request, customer_id):
        customer = self._owned(request, customer_id)
        serializer = CustomerSerializer(customer, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        customer = customer_services.update_customer(customer, dict(serializer.validated_data))
        return Response({"success": True, "message": "Customer updated successfully", "customer": CustomerSerializer(customer).data})


# =============================================================================
# ORDERS
# =============================================================================

class OrderListView(APIView):

    @extend_schema(
        parameters=PAGINATION_PARAMETERS + [
            OpenApiParameter('status', str),
            OpenApiParameter('paymentStatus', str),
            OpenApiParameter('search', str, description="Order number contains"),
            OpenApiParameter('startDate', str, description="ISO date or datetime"),
            OpenApiParameter('endDate', str, description="ISO date or datetime, inclusive"),
        ],
        responses={200: OrderSerializer(many=True)},
        description="List the shop's orders, newest first"
    )
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        params = request.query_params
        queryset = _order_queryset().filter(shop=shop).order_by('-created_at')

        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('paymentStatus'):
            queryset = queryset.filter(payment_status=params['paymentStatus'])
        if params.get('search'):
            queryset = queryset.filter(order_number__icontains=params['search'])
        if params.get('startDate'):
            queryset = queryset.filter(created_at__gte=_parse_bound(params['startDate'], 'startDate'))
        if params.get('endDate'):
            queryset = queryset.filter(created_at__lt=_parse_bound(params['endDate'], 'endDate', end=True))

        return Response(_paginate(request, queryset, OrderSerializer))

    @extend_schema(
        request=OrderCreateSerializer,
        responses={201: OrderSerializer},
        description="Place an order; stock, customer and shop totals update together",
        examples=[
            OpenApiExample(
                "Two lines with a discount",
                value={
                    "customer": {"name": "Priya", "phone": "9876543210", "address": "12 MG Road"},
                    "items": [
                        {"productId": "5f0c1c2e-8f3a-4d8e-9a43-0d7f3c2b1a11", "quantity": 2},
                        {"productId": "8a6b9e1d-2c4f-4b7a-a1d3-6e5f4c3b2a10", "quantity": 1}
                    ],
                    "total": 130,
                    "discount": 10
                },
                request_only=True
            ),
        ]
    )
    def post(self, request):
        account = request.user
        shop = shop_services.get_owned_shop(account)
        enforce_plan_limit(account, 'orders')

        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order, message = _place_and_notify(shop, serializer, account=account, placed_by=account.name)
        return Response(
            {
                "success": True,
                "message": "Order created successfully",
                "order": OrderSerializer(order).data,
                "notification": notification_outcome(message),
            },
            status=status.HTTP_201_CREATED
        )


def _parse_bound(value: str, field: str, end: bool = False) -> datetime:
    parsed = parse_datetime(value)
    if parsed is not None:
        return parsed if timezone.is_aware(parsed) else timezone.make_aware(parsed)
    day = parse_date(value)
    if day is None:
        raise ValidationException(f"Invalid date: {value}", field=field)
    start, next_day = local_day_bounds(day)
    return next_day if end else start


class OrderDetailView(APIView):

    @extend_schema(responses={200: OrderSerializer}, description="Order with items and status history")
    def get(self, request, order_id):
        order = _get_owned_order(request, order_id)
        return Response({"success": True, "order": OrderSerializer(order).data})


def _get_owned_order(request, order_id) -> Order:
    shop = shop_services.get_owned_shop(request.user)
    order = _order_queryset().filter(pk=order_id, shop=shop).first()
    if order is None:
        raise NotFoundException("Order")
    return order


class OrderStatusView(APIView):

    @extend_schema(request=OrderStatusUpdateSerializer, responses={200: OrderSerializer}, description="Move an order to a new status")
    def put(self, request, order_id):
        order = _get_owned_order(request, order_id)
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order_services.update_order_status(order, serializer.validated_data['status'], updated_by=request.user.name)
        order = _order_queryset().get(pk=order.pk)
        return Response({"success": True, "message": "Order status updated", "order": OrderSerializer(order).data})


class OrderPaymentView(APIView):

    @extend_schema(request=OrderPaymentUpdateSerializer, responses={200: OrderSerializer}, description="Record a payment against an order")
    def put(self, request, order_id):
        order = _get_owned_order(request, order_id)
        serializer = OrderPaymentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order_services.update_order_payment(
            order,
            payment_status=data.get('paymentStatus'),
            paid_amount=data.get('paidAmount'),
            payment_method=data.get('paymentMethod'),
        )
        order = _order_queryset().get(pk=order.pk)
        return Response({"success": True, "message": "Payment updated", "order": OrderSerializer(order).data})


class OrderWhatsAppView(APIView):

    @extend_schema(request=None, description="Send the order confirmation over WhatsApp")
    def post(self, request, order_id):
        account = request.user
        order = _get_owned_order(request, order_id)
        enforce_plan_limit(account, 'messages')

        message, result = get_dispatcher().send_order_confirmation(order)
        if result.success:
            increment_usage(account, 'messages')

        return Response({
            "success": result.success,
            "message": "WhatsApp message sent" if result.success else "Failed to send WhatsApp message",
            "notification": notification_outcome(message),
        })


# =============================================================================
# WHATSAPP
# =============================================================================

class SendMessageView(APIView):

    @extend_schema(request=SendMessageSerializer, description="Send one WhatsApp message")
    def post(self, request):
        account = request.user
        shop = shop_services.get_owned_shop(account)
        enforce_plan_limit(account, 'messages')

        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        customer = Customer.objects.filter(shop=shop, phone=data['phone']).first()
        message, result = get_dispatcher().send_custom(
            shop, data['phone'], data['message'],
            name=data.get('name') or (customer.name if customer else None),
            customer=customer,
        )
        if result.success:
            increment_usage(account, 'messages')

        return Response({
            "success": result.success,
            "message": "Message sent successfully" if result.success else f"Failed to send message: {result.error}",
            "messageId": result.message_id,
            "record": MessageSerializer(message).data,
        })


class CampaignView(APIView):

    @extend_schema(request=CampaignSerializer, description="Send a message to a list of recipients or a customer segment")
    def post(self, request):
        account = request.user
        shop = shop_services.get_owned_shop(account)
        enforce_plan_limit(account, 'messages')

        serializer = CampaignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data.get('recipients'):
            recipients = [dict(r) for r in data['recipients']]
        else:
            recipients = [
                {'phone': c.phone, 'name': c.name, 'customer': c}
                for c in Customer.objects.filter(
                    shop=shop, segment=data['segment'], marketing_consent=True, is_active=True
                )
            ]
        if not recipients:
            raise ValidationException("No recipients found", field="recipients")
        enforce_plan_limit(account, 'messages', len(recipients))

        message_type, body = 'campaign', data.get('message')
        if not body and data.get('offer'):
            message_type = 'offer'
            body = format_offer_message(shop.name, data['offer'], data.get('validUntil'), shop.language)

        report = get_dispatcher().send_campaign(
            shop, recipients, body,
            message_type=message_type,
            template_name=data.get('templateName'),
            template_params=data.get('templateParams'),
        )
        increment_usage(account, 'messages', report.successful)

        return Response({
            "success": True,
            "message": f"Campaign sent to {report.successful}/{report.total} recipients",
            "campaignId": report.campaign_id,
            "results": {
                "total": report.total,
                "successful": report.successful,
                "failed": report.failed,
            },
        })


class MessageHistoryView(APIView):

    @extend_schema(responses={200: MessageSerializer(many=True)}, description="Latest messages sent by the shop")
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        messages = Message.objects.filter(shop=shop).order_by('-created_at')[:MESSAGE_HISTORY_LIMIT]
        return Response({"success": True, "messages": MessageSerializer(messages, many=True).data})


# =============================================================================
# AI
# =============================================================================

class AIQueryView(APIView):

    @extend_schema(
        request=AIQuerySerializer,
        description="Ask the AI advisor about the shop's business",
        examples=[
            OpenApiExample("Sales question", value={"query": "Which is my best selling product?"}, request_only=True),
        ]
    )
    def post(self, request):
        account = request.user
        shop = shop_services.get_owned_shop(account)
        enforce_plan_limit(account, 'ai')

        serializer = AIQuerySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        query = serializer.validated_data['query']

        result = get_advisor().get_business_insights(query, shop)
        if result['success']:
            increment_usage(account, 'ai')

        return Response({
            "success": result['success'],
            "query": query,
            "response": result.get('response'),
            "message": result.get('message'),
        })


class AISuggestionsView(APIView):

    @extend_schema(description="Suggested questions for the shop's category")
    def get(self, request):
        shop = request.user.shop if hasattr(request.user, 'shop') else None
        category = shop.category if shop else 'other'
        return Response({"success": True, "suggestions": get_suggested_questions(category)})


class AICampaignMessageView(APIView):

    @extend_schema(request=CampaignMessageRequestSerializer, description="Draft a short WhatsApp marketing message")
    def post(self, request):
        account = request.user
        shop = shop_services.get_owned_shop(account)
        enforce_plan_limit(account, 'ai')

        serializer = CampaignMessageRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_advisor().generate_campaign_message(
            shop.category,
            occasion=serializer.validated_data.get('occasion'),
            offer=serializer.validated_data.get('offer'),
        )
        if result['success']:
            increment_usage(account, 'ai')

        return Response({"success": result['success'], "message": result['message']})


# =============================================================================
# PAYMENTS
# =============================================================================

class PlanListView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(description="Available subscription plans")
    def get(self, request):
        return Response({"success": True, "plans": plans.PLAN_CATALOG})


class CreatePaymentOrderView(APIView):

    @extend_schema(request=CreatePaymentSerializer, description="Start a checkout for a paid plan")
    def post(self, request):
        serializer = CreatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        gateway = billing_services.get_gateway()
        payment, gateway_order = billing_services.create_checkout(
            request.user, serializer.validated_data['plan'], gateway
        )
        return Response({
            "success": True,
            "order": {
                "id": gateway_order['id'],
                "amount": gateway_order['amount'],
                "currency": gateway_order.get('currency', payment.currency),
            },
            "keyId": gateway.key_id,
        })


class VerifyPaymentView(APIView):

    @extend_schema(request=VerifyPaymentSerializer, description="Verify a checkout signature and activate the plan")
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = billing_services.verify_payment(
            request.user,
            data['razorpayOrderId'],
            data['razorpayPaymentId'],
            data['razorpaySignature'],
            billing_services.get_gateway(),
        )
        return Response({
            "success": True,
            "message": "Payment verified successfully",
            "plan": payment.plan,
            "validUntil": payment.valid_until,
        })


class PaymentHistoryView(APIView):

    @extend_schema(responses={200: PaymentSerializer(many=True)}, description="The caller's payments, newest first")
    def get(self, request):
        payments = Payment.objects.filter(account=request.user).order_by('-created_at')
        return Response({"success": True, "payments": PaymentSerializer(payments, many=True).data})


# =============================================================================
# ANALYTICS
# =============================================================================

class DashboardView(APIView):

    @extend_schema(description="Sales windows, top and low-stock products, recent orders and totals")
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        return Response({"success": True, "analytics": build_dashboard(shop)})


class SalesTrendsView(APIView):

    @extend_schema(
        parameters=[OpenApiParameter('period', str, enum=['week', 'month', 'year'])],
        description="Sales per day (week, month) or per month (year)"
    )
    def get(self, request):
        shop = shop_services.get_owned_shop(request.user)
        period = request.query_params.get('period', 'week')
        return Response({"success": True, "period": period, "salesTrends": sales_trends(shop, period)})


# =============================================================================
# SYSTEM
# =============================================================================

class HealthCheckView(APIView):
    """
    System health check endpoint.

    Returns the status of the API, database connectivity,
    and whether each outbound provider is configured.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        responses={200: HealthCheckSerializer},
        description="Check system health status"
    )
    def get(self, request):
        # Check database connectivity
        db_status = "healthy"
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except DatabaseError as e:
            db_status = f"unhealthy: {str(e)}"

        def configured(flag: bool) -> str:
            return "configured" if flag else "not configured"

        response_data = {
            "success": True,
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": settings.SPECTACULAR_SETTINGS['VERSION'],
            "database": db_status,
            "providers": {
                "whatsapp": configured(get_dispatcher().is_configured),
                "ai": configured(get_advisor().is_configured),
                "payments": configured(billing_services.get_gateway().is_configured),
            },
            "timestamp": timezone.now(),
        }

        return Response(response_data, status=status.HTTP_200_OK)
