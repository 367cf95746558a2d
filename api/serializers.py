"""
API Serializers for Request/Response handling

Field names are camelCase on the wire; ``source`` maps them onto the
snake_case model attributes.
"""
from rest_framework import serializers

from apps.accounts import plans
from apps.accounts.models import Account
from apps.billing.models import Payment
from apps.catalog.models import Product
from apps.customers.models import Customer
from apps.messaging.models import Message
from apps.orders.models import Order, OrderItem, OrderStatusEvent
from apps.shops.models import Shop

PHONE_REGEX = r'^[0-9]{10}$'
PHONE_ERROR = {'invalid': 'Please provide a valid 10-digit phone number'}


def phone_field(**kwargs):
    return serializers.RegexField(PHONE_REGEX, max_length=10, error_messages=PHONE_ERROR, **kwargs)


# =============================================================================
# AUTH
# =============================================================================

class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    phone = phone_field(required=False, allow_null=True)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class RefreshSerializer(serializers.Serializer):
    refreshToken = serializers.CharField()


class AccountSerializer(serializers.ModelSerializer):
    planExpiry = serializers.DateTimeField(source='plan_expiry', read_only=True)
    shopId = serializers.SerializerMethodField()
    planLimits = serializers.DictField(source='plan_limits', read_only=True)
    usage = serializers.DictField(read_only=True)

    class Meta:
        model = Account
        fields = ['id', 'name', 'email', 'phone', 'plan', 'planExpiry', 'shopId', 'planLimits', 'usage']
        read_only_fields = fields

    def get_shopId(self, obj):
        shop = Shop.objects.filter(owner=obj).only('id').first()
        return str(shop.id) if shop else None


# =============================================================================
# SHOP
# =============================================================================

class ShopSettingsSerializer(serializers.Serializer):
    language = serializers.ChoiceField(choices=Shop.LANGUAGE_CHOICES, required=False)
    currency = serializers.CharField(max_length=3, required=False)
    timezone = serializers.CharField(max_length=64, required=False)
    autoConfirmOrders = serializers.BooleanField(source='auto_confirm_orders', required=False)
    lowStockThreshold = serializers.IntegerField(source='low_stock_threshold', min_value=0, required=False)
    enableWhatsAppNotifications = serializers.BooleanField(
        source='enable_whatsapp_notifications', required=False
    )


class ShopStatsSerializer(serializers.Serializer):
    totalOrders = serializers.IntegerField(source='total_orders')
    totalRevenue = serializers.DecimalField(source='total_revenue', max_digits=14, decimal_places=2)
    totalCustomers = serializers.IntegerField(source='total_customers')
    totalProducts = serializers.IntegerField(source='total_products')


class ShopSerializer(serializers.ModelSerializer):
    shopName = serializers.CharField(source='name', max_length=100)
    whatsapp = phone_field(required=False, allow_null=True)
    publicSlug = serializers.CharField(source='public_slug', read_only=True)
    isActive = serializers.BooleanField(source='is_active', required=False)
    settings = ShopSettingsSerializer(source='*', required=False)
    businessHours = serializers.JSONField(source='business_hours', required=False)
    stats = ShopStatsSerializer(source='*', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Shop
        fields = [
            'id', 'shopName', 'category', 'whatsapp', 'email', 'address', 'publicSlug',
            'logo', 'description', 'isActive', 'settings', 'businessHours', 'stats',
            'createdAt', 'updatedAt',
        ]


class PublicShopSerializer(serializers.ModelSerializer):
    """Storefront view: no owner, settings or stats."""
    shopName = serializers.CharField(source='name')
    publicSlug = serializers.CharField(source='public_slug')
    businessHours = serializers.JSONField(source='business_hours')

    class Meta:
        model = Shop
        fields = [
            'id', 'shopName', 'category', 'whatsapp', 'email', 'address',
            'publicSlug', 'logo', 'description', 'businessHours',
        ]
        read_only_fields = fields


# =============================================================================
# CATALOG
# =============================================================================

class ProductStatsSerializer(serializers.Serializer):
    totalSold = serializers.IntegerField(source='total_sold')
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    views = serializers.IntegerField()


class ProductSerializer(serializers.ModelSerializer):
    shopId = serializers.UUIDField(source='shop_id', read_only=True)
    costPrice = serializers.DecimalField(
        source='cost_price', max_digits=12, decimal_places=2, min_value=0, required=False
    )
    isActive = serializers.BooleanField(source='is_active', required=False)
    isFeatured = serializers.BooleanField(source='is_featured', required=False)
    stats = ProductStatsSerializer(source='*', read_only=True)
    profitMargin = serializers.DecimalField(
        source='profit_margin', max_digits=12, decimal_places=2, read_only=True
    )
    isLowStock = serializers.SerializerMethodField()
    lastRestocked = serializers.DateTimeField(source='last_restocked', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'shopId', 'name', 'description', 'price', 'stock', 'unit', 'category', 'image',
            'sku', 'barcode', 'costPrice', 'isActive', 'isFeatured', 'tags', 'stats',
            'profitMargin', 'isLowStock', 'lastRestocked', 'createdAt', 'updatedAt',
        ]
        extra_kwargs = {
            'price': {'min_value': 0},
        }

    def get_isLowStock(self, obj) -> bool:
        return obj.is_low_stock(obj.shop.low_stock_threshold)


# =============================================================================
# CUSTOMERS
# =============================================================================

class CustomerPreferencesSerializer(serializers.Serializer):
    language = serializers.ChoiceField(choices=Customer.LANGUAGE_CHOICES, required=False)
    marketingConsent = serializers.BooleanField(source='marketing_consent', required=False)


class CustomerSerializer(serializers.ModelSerializer):
    phone = phone_field()
    totalOrders = serializers.IntegerField(source='total_orders', read_only=True)
    totalSpent = serializers.DecimalField(source='total_spent', max_digits=14, decimal_places=2, read_only=True)
    lastOrderDate = serializers.DateTimeField(source='last_order_date', read_only=True)
    averageOrderValue = serializers.DecimalField(
        source='average_order_value', max_digits=14, decimal_places=2, read_only=True
    )
    isActive = serializers.BooleanField(source='is_active', required=False)
    preferences = CustomerPreferencesSerializer(source='*', required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'phone', 'email', 'address', 'totalOrders', 'totalSpent',
            'lastOrderDate', 'averageOrderValue', 'tags', 'segment', 'notes', 'isActive',
            'preferences', 'createdAt',
        ]
        read_only_fields = ['segment']


# =============================================================================
# ORDERS
# =============================================================================

class OrderCustomerInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    phone = phone_field()
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class OrderItemInputSerializer(serializers.Serializer):
    productId = serializers.UUIDField(error_messages={'invalid': 'Invalid product ID'})
    quantity = serializers.IntegerField(min_value=1, error_messages={'min_value': 'Quantity must be at least 1'})


class OrderCreateSerializer(serializers.Serializer):
    customer = OrderCustomerInputSerializer()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    deliveryDate = serializers.DateField(required=False, allow_null=True)
    deliveryTime = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    source = serializers.ChoiceField(choices=Order.SOURCE_CHOICES, required=False, default='manual')

    def to_service_kwargs(self) -> dict:
        data = self.validated_data
        return {
            'customer': dict(data['customer']),
            'items': [
                {'product_id': item['productId'], 'quantity': item['quantity']}
                for item in data['items']
            ],
            'total': data.get('total'),
            'discount': data.get('discount') or 0,
            'source': data.get('source') or 'manual',
            'notes': data.get('notes'),
            'delivery_date': data.get('deliveryDate'),
            'delivery_time': data.get('deliveryTime'),
        }


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.UUIDField(source='product_id', read_only=True)

    class Meta:
        model = OrderItem
        fields = ['productId', 'name', 'price', 'quantity', 'unit', 'subtotal']
        read_only_fields = fields


class OrderStatusEventSerializer(serializers.ModelSerializer):
    updatedBy = serializers.CharField(source='updated_by')

    class Meta:
        model = OrderStatusEvent
        fields = ['status', 'timestamp', 'updatedBy']
        read_only_fields = fields


class OrderCustomerSerializer(serializers.Serializer):
    name = serializers.CharField(source='customer_name')
    phone = serializers.CharField(source='customer_phone')
    address = serializers.CharField(source='customer_address', allow_null=True)
    customerId = serializers.UUIDField(source='customer_id', allow_null=True)


class OrderSerializer(serializers.ModelSerializer):
    shopId = serializers.UUIDField(source='shop_id')
    orderNumber = serializers.CharField(source='order_number')
    customer = OrderCustomerSerializer(source='*')
    items = OrderItemSerializer(many=True)
    finalTotal = serializers.DecimalField(source='final_total', max_digits=12, decimal_places=2)
    paymentStatus = serializers.CharField(source='payment_status')
    paymentMethod = serializers.CharField(source='payment_method')
    paidAmount = serializers.DecimalField(source='paid_amount', max_digits=12, decimal_places=2)
    deliveryDate = serializers.DateField(source='delivery_date')
    deliveryTime = serializers.CharField(source='delivery_time')
    whatsappSent = serializers.BooleanField(source='whatsapp_sent')
    statusHistory = OrderStatusEventSerializer(source='status_history', many=True)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Order
        fields = [
            'id', 'shopId', 'orderNumber', 'customer', 'items', 'total', 'discount', 'finalTotal',
            'status', 'paymentStatus', 'paymentMethod', 'paidAmount', 'deliveryDate',
            'deliveryTime', 'notes', 'whatsappSent', 'source', 'statusHistory',
            'createdAt', 'updatedAt',
        ]
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class OrderPaymentUpdateSerializer(serializers.Serializer):
    paymentStatus = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
    paidAmount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    paymentMethod = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, required=False)


# =============================================================================
# MESSAGING
# =============================================================================

class SendMessageSerializer(serializers.Serializer):
    phone = phone_field()
    message = serializers.CharField(max_length=1000)
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CampaignRecipientSerializer(serializers.Serializer):
    phone = phone_field()
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CampaignSerializer(serializers.Serializer):
    """
    Free text (``message``), a formatted offer (``offer``) or an approved
    template (``templateName``), sent to explicit recipients or a segment.
    """
    message = serializers.CharField(max_length=1000, required=False)
    offer = serializers.CharField(max_length=500, required=False)
    validUntil = serializers.DateField(required=False)
    templateName = serializers.CharField(max_length=100, required=False)
    templateParams = serializers.ListField(child=serializers.CharField(), required=False)
    recipients = CampaignRecipientSerializer(many=True, required=False)
    segment = serializers.ChoiceField(choices=Customer.SEGMENT_CHOICES, required=False)

    def validate(self, attrs):
        if not (attrs.get('message') or attrs.get('offer') or attrs.get('templateName')):
            raise serializers.ValidationError("A message, offer or template is required")
        if not attrs.get('recipients') and not attrs.get('segment'):
            raise serializers.ValidationError("At least one recipient or a segment is required")
        return attrs


class MessageSerializer(serializers.ModelSerializer):
    recipient = serializers.SerializerMethodField()
    message = serializers.CharField(source='body')
    whatsappMessageId = serializers.CharField(source='provider_message_id')
    orderId = serializers.UUIDField(source='order_id')
    campaignId = serializers.CharField(source='campaign_id')
    sentAt = serializers.DateTimeField(source='sent_at')
    failureReason = serializers.CharField(source='failure_reason')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Message
        fields = [
            'id', 'type', 'recipient', 'message', 'status', 'whatsappMessageId', 'orderId',
            'campaignId', 'sentAt', 'failureReason', 'createdAt',
        ]
        read_only_fields = fields

    def get_recipient(self, obj) -> dict:
        return {'phone': obj.recipient_phone, 'name': obj.recipient_name}


# =============================================================================
# AI
# =============================================================================

class AIQuerySerializer(serializers.Serializer):
    query = serializers.CharField(max_length=500)


class CampaignMessageRequestSerializer(serializers.Serializer):
    occasion = serializers.CharField(max_length=200, required=False, allow_blank=True)
    offer = serializers.CharField(max_length=200, required=False, allow_blank=True)


# =============================================================================
# PAYMENTS
# =============================================================================

class CreatePaymentSerializer(serializers.Serializer):
    plan = serializers.ChoiceField(
        choices=list(plans.PLAN_PRICES.keys()),
        error_messages={'invalid_choice': 'Invalid plan selected'},
    )


class VerifyPaymentSerializer(serializers.Serializer):
    razorpayOrderId = serializers.CharField()
    razorpayPaymentId = serializers.CharField()
    razorpaySignature = serializers.CharField()


class PaymentSerializer(serializers.ModelSerializer):
    razorpayOrderId = serializers.CharField(source='gateway_order_id')
    razorpayPaymentId = serializers.CharField(source='gateway_payment_id')
    validFrom = serializers.DateTimeField(source='valid_from')
    validUntil = serializers.DateTimeField(source='valid_until')
    failureReason = serializers.CharField(source='failure_reason')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Payment
        fields = [
            'id', 'razorpayOrderId', 'razorpayPaymentId', 'plan', 'amount', 'currency',
            'status', 'validFrom', 'validUntil', 'receipt', 'failureReason', 'createdAt',
        ]
        read_only_fields = fields


# =============================================================================
# SYSTEM
# =============================================================================

class HealthCheckSerializer(serializers.Serializer):
    """
    Response serializer for health check.
    """
    status = serializers.CharField()
    version = serializers.CharField()
    database = serializers.CharField()
    providers = serializers.DictField()
    timestamp = serializers.DateTimeField()
