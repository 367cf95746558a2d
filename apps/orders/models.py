"""
Orders Models - Order ledger, line items, status history and daily sequences
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.exceptions import ValidationException
from apps.core.models import BaseModel

PENDING = 'pending'
CONFIRMED = 'confirmed'
PROCESSING = 'processing'
READY = 'ready'
DELIVERED = 'delivered'
CANCELLED = 'cancelled'

# Forward progression; cancelled is reachable from any non-terminal status
STATUS_SEQUENCE = [PENDING, CONFIRMED, PROCESSING, READY, DELIVERED]
TERMINAL_STATUSES = {DELIVERED, CANCELLED}
OPEN_STATUSES = [PENDING, CONFIRMED, PROCESSING, READY]


class Order(BaseModel):
    """
    A customer order. Line items, customer snapshot and totals are fixed at
    creation; only status and payment fields change afterwards.
    """
    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (PROCESSING, 'Processing'),
        (READY, 'Ready'),
        (DELIVERED, 'Delivered'),
        (CANCELLED, 'Cancelled'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('unpaid', 'Unpaid'),
        ('partial', 'Partial'),
        ('paid', 'Paid'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('upi', 'UPI'),
        ('card', 'Card'),
        ('online', 'Online'),
        ('other', 'Other'),
    ]

    SOURCE_CHOICES = [
        ('shop', 'Shop'),
        ('public_page', 'Public Page'),
        ('whatsapp', 'WhatsApp'),
        ('manual', 'Manual'),
    ]

    shop = models.ForeignKey('shops.Shop', on_delete=models.CASCADE, related_name='orders')
    order_number = models.CharField(max_length=20, editable=False)

    # Customer snapshot at the time of purchase
    customer = models.ForeignKey(
        'customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    customer_name = models.CharField(max_length=100)
    customer_phone = models.CharField(max_length=10, db_index=True)
    customer_address = models.TextField(blank=True, null=True)

    total = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    final_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unpaid')
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    delivery_date = models.DateField(blank=True, null=True)
    delivery_time = models.CharField(max_length=50, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    whatsapp_sent = models.BooleanField(default=False)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='manual')

    class Meta:
        db_table = 'orders_orders'
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['shop', 'order_number'], name='unique_order_number_per_shop'),
        ]
        indexes = [
            models.Index(fields=['shop', 'status']),
            models.Index(fields=['shop', '-created_at']),
        ]

    def __str__(self):
        return f"{self.order_number} - {self.customer_name}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def calculate_final_total(self):
        discount = Decimal(self.discount or 0)
        total = Decimal(self.total)
        if discount < 0:
            raise ValidationException("Discount cannot be negative", field="discount")
        if discount > total:
            raise ValidationException("Discount cannot exceed the order total", field="discount")
        self.discount = discount
        self.final_total = total - discount

    def save(self, *args, **kwargs):
        # finalTotal is derived on every persist
        self.calculate_final_total()
        if kwargs.get('update_fields') is not None:
            kwargs['update_fields'] = set(kwargs['update_fields']) | {'final_total', 'discount'}
        super().save(*args, **kwargs)

    def add_status_history(self, status: str, updated_by: str = 'system') -> 'OrderStatusEvent':
        return OrderStatusEvent.objects.create(order=self, status=status, updated_by=updated_by)


class OrderItem(models.Model):
    """
    Line item with product data snapshotted at order time.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'catalog.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items'
    )
    name = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit = models.CharField(max_length=20, blank=True, null=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])

    class Meta:
        db_table = 'orders_order_items'
        verbose_name = 'Order Item'
        verbose_name_plural = 'Order Items'

    def __str__(self):
        return f"{self.name} x{self.quantity}"


class OrderStatusEvent(models.Model):
    """
    Append-only status history of an order.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    updated_by = models.CharField(max_length=100, default='system')
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'orders_status_events'
        verbose_name = 'Order Status Event'
        verbose_name_plural = 'Order Status Events'
        ordering = ['timestamp', 'id']

    def __str__(self):
        return f"{self.order.order_number} -> {self.status} by {self.updated_by}"


class OrderSequence(models.Model):
    """
    Per-shop, per-local-day counter backing human-readable order numbers.
    Incremented under a row lock inside the order placement transaction.
    """
    shop = models.ForeignKey('shops.Shop', on_delete=models.CASCADE, related_name='order_sequences')
    day = models.DateField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'orders_sequences'
        verbose_name = 'Order Sequence'
        verbose_name_plural = 'Order Sequences'
        constraints = [
            models.UniqueConstraint(fields=['shop', 'day'], name='unique_order_sequence_per_shop_day'),
        ]

    def __str__(self):
        return f"{self.shop_id} {self.day}: {self.last_value}"
