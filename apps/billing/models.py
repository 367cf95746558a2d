"""
Billing Models - Subscription payments through the payment gateway
"""
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.accounts import plans
from apps.core.models import BaseModel
from apps.core.utils import add_months

CREATED = 'created'
PENDING = 'pending'
SUCCESS = 'success'
FAILED = 'failed'
REFUNDED = 'refunded'

VALIDITY_MONTHS = 1


class Payment(BaseModel):
    """
    One checkout for a paid plan. Validity starts when the payment is
    verified and runs one calendar month.
    """
    STATUS_CHOICES = [
        (CREATED, 'Created'),
        (PENDING, 'Pending'),
        (SUCCESS, 'Success'),
        (FAILED, 'Failed'),
        (REFUNDED, 'Refunded'),
    ]

    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='payments')
    gateway_order_id = models.CharField(max_length=100, unique=True)
    gateway_payment_id = models.CharField(max_length=100, blank=True, null=True)
    gateway_signature = models.CharField(max_length=255, blank=True, null=True)

    plan = models.CharField(max_length=20, choices=[c for c in plans.PLAN_CHOICES if c[0] != plans.FREE])
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3, default='INR')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=CREATED)

    valid_from = models.DateTimeField(blank=True, null=True)
    valid_until = models.DateTimeField(blank=True, null=True)
    receipt = models.CharField(max_length=100, blank=True, null=True)
    failure_reason = models.TextField(blank=True, null=True)
    refund_id = models.CharField(max_length=100, blank=True, null=True)
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)

    class Meta:
        db_table = 'billing_payments'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['account', 'status']),
        ]

    def __str__(self):
        return f"{self.gateway_order_id} ({self.plan}) [{self.status}]"

    def mark_success(self, payment_id: str, signature: str, now=None):
        now = now or timezone.now()
        self.status = SUCCESS
        self.gateway_payment_id = payment_id
        self.gateway_signature = signature
        self.valid_from = now
        self.valid_until = add_months(now, VALIDITY_MONTHS)

    def mark_failed(self, reason: str):
        self.status = FAILED
        self.failure_reason = reason
