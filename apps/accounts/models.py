"""
Accounts Models - Shop owners and their subscription state
"""
from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.utils import timezone

from apps.core.models import BaseModel
from . import plans


class Account(BaseModel):
    """
    A registered shop owner. Owns at most one Shop.
    Plan limits are always derived from ``plan``; usage counters are
    reset monthly by an external job.
    """
    name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    password = models.CharField(max_length=128)
    phone = models.CharField(max_length=10, blank=True, null=True)

    plan = models.CharField(max_length=20, choices=plans.PLAN_CHOICES, default=plans.FREE)
    plan_expiry = models.DateTimeField(blank=True, null=True)

    # Limits (copied from the plan table by apply_plan_limits)
    max_orders = models.PositiveIntegerField(default=plans.PLAN_LIMITS[plans.FREE]['max_orders'])
    max_messages = models.PositiveIntegerField(default=plans.PLAN_LIMITS[plans.FREE]['max_messages'])
    max_products = models.PositiveIntegerField(default=plans.PLAN_LIMITS[plans.FREE]['max_products'])
    max_customers = models.PositiveIntegerField(default=plans.PLAN_LIMITS[plans.FREE]['max_customers'])
    ai_queries = models.PositiveIntegerField(default=plans.PLAN_LIMITS[plans.FREE]['ai_queries'])

    # Monthly usage
    orders_this_month = models.PositiveIntegerField(default=0)
    messages_this_month = models.PositiveIntegerField(default=0)
    ai_queries_this_month = models.PositiveIntegerField(default=0)

    is_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    refresh_token = models.TextField(blank=True, null=True)
    last_login = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'accounts_accounts'
        verbose_name = 'Account'
        verbose_name_plural = 'Accounts'

    def __str__(self):
        return f"{self.name} ({self.email})"

    # DRF permission classes look for these
    is_authenticated = True
    is_anonymous = False

    def save(self, *args, **kwargs):
        self.email = (self.email or '').strip().lower()
        super().save(*args, **kwargs)

    def set_password(self, raw_password: str):
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)

    def apply_plan_limits(self):
        """Copy the plan's limits onto the account."""
        for field, value in plans.limits_for(self.plan).items():
            setattr(self, field, value)

    @property
    def plan_expired(self) -> bool:
        return (
            self.plan != plans.FREE
            and self.plan_expiry is not None
            and self.plan_expiry < timezone.now()
        )

    @property
    def plan_limits(self) -> dict:
        return {
            'maxOrders': self.max_orders,
            'maxMessages': self.max_messages,
            'maxProducts': self.max_products,
            'maxCustomers': self.max_customers,
            'aiQueries': self.ai_queries,
        }

    @property
    def usage(self) -> dict:
        return {
            'ordersThisMonth': self.orders_this_month,
            'messagesThisMonth': self.messages_this_month,
            'aiQueriesThisMonth': self.ai_queries_this_month,
        }
