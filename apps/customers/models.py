"""
Customers Models - Per-shop customer directory keyed by phone number
"""
from datetime import datetime, timedelta
from decimal import Decimal

from django.core.validators import RegexValidator
from django.db import models
from django.utils import timezone

from apps.core.models import BaseModel
from apps.core.utils import round_money

VIP_MIN_ORDERS = 10
VIP_MIN_SPENT = Decimal('10000')
REGULAR_MIN_ORDERS = 3
INACTIVE_AFTER_DAYS = 90


def compute_segment(
    total_orders: int,
    total_spent,
    last_order_date: datetime = None,
    current: str = 'new',
    now: datetime = None,
) -> str:
    """
    Classify a customer. The checks run in a fixed order: zero orders is
    always "new", VIP beats regular, and only customers below the regular
    threshold can become "inactive". Otherwise the current tier is kept.
    """
    if total_orders == 0:
        return 'new'
    if total_orders >= VIP_MIN_ORDERS or Decimal(total_spent) >= VIP_MIN_SPENT:
        return 'vip'
    if total_orders >= REGULAR_MIN_ORDERS:
        return 'regular'

    now = now or timezone.now()
    if last_order_date and last_order_date < now - timedelta(days=INACTIVE_AFTER_DAYS):
        return 'inactive'
    return current


class Customer(BaseModel):
    """
    A shop's customer. Created on the first order from a phone number or
    added manually by the owner.
    """
    SEGMENT_CHOICES = [
        ('new', 'New'),
        ('regular', 'Regular'),
        ('vip', 'VIP'),
        ('inactive', 'Inactive'),
    ]

    LANGUAGE_CHOICES = [
        ('en', 'English'),
        ('hi', 'Hindi'),
    ]

    shop = models.ForeignKey('shops.Shop', on_delete=models.CASCADE, related_name='customers')
    name = models.CharField(max_length=100)
    phone = models.CharField(
        max_length=10,
        validators=[RegexValidator(r'^[0-9]{10}$', 'Please provide a valid 10-digit phone number')]
    )
    email = models.EmailField(blank=True, null=True)
    address = models.JSONField(default=dict, blank=True, help_text="street, area, city, pincode, landmark")

    total_orders = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    last_order_date = models.DateTimeField(blank=True, null=True)
    average_order_value = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    tags = models.JSONField(default=list, blank=True)
    segment = models.CharField(max_length=20, choices=SEGMENT_CHOICES, default='new')
    notes = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)

    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default='en')
    marketing_consent = models.BooleanField(default=True)

    class Meta:
        db_table = 'customers_customers'
        verbose_name = 'Customer'
        verbose_name_plural = 'Customers'
        constraints = [
            models.UniqueConstraint(fields=['shop', 'phone'], name='unique_customer_phone_per_shop'),
        ]
        indexes = [
            models.Index(fields=['shop', 'segment']),
            models.Index(fields=['shop', 'name']),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone})"

    def calculate_average_order_value(self):
        if self.total_orders > 0:
            self.average_order_value = round_money(Decimal(self.total_spent) / self.total_orders)
        else:
            self.average_order_value = Decimal('0')

    def update_segment(self, now: datetime = None):
        self.segment = compute_segment(
            self.total_orders,
            self.total_spent,
            self.last_order_date,
            current=self.segment,
            now=now,
        )

    def record_order(self, final_total, when: datetime = None):
        """Fold one placed order into the aggregates and re-segment."""
        when = when or timezone.now()
        self.total_orders += 1
        self.total_spent = Decimal(self.total_spent) + Decimal(final_total)
        self.last_order_date = when
        self.calculate_average_order_value()
        self.update_segment(now=when)
