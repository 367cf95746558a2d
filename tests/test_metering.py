"""
Tests for plan limits and usage metering
"""
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.accounts import plans
from apps.accounts.metering import downgrade_if_expired, enforce_plan_limit, increment_usage
from apps.core.exceptions import LimitExceededException, ValidationException

pytestmark = pytest.mark.django_db


def test_limits_follow_plan(account):
    assert account.max_orders == 20
    assert account.ai_queries == 10

    account.plan = plans.PRO
    account.apply_plan_limits()

    assert account.max_orders == plans.UNLIMITED
    assert account.max_messages == 2000


def test_unknown_plan_gets_free_limits():
    assert plans.limits_for('platinum') == plans.PLAN_LIMITS[plans.FREE]


def test_under_limit_passes(account):
    account.orders_this_month = 19
    enforce_plan_limit(account, 'orders')


def test_at_limit_raises(account):
    account.messages_this_month = 50

    with pytest.raises(LimitExceededException) as exc_info:
        enforce_plan_limit(account, 'messages')

    extra = exc_info.value.extra()
    assert extra['limitExceeded'] is True
    assert extra['currentPlan'] == 'free'
    assert extra['usage'] == {'current': 50, 'limit': 50}


def test_batch_must_fit_remaining_allowance(account):
    account.messages_this_month = 48
    enforce_plan_limit(account, 'messages', 2)

    with pytest.raises(LimitExceededException):
        enforce_plan_limit(account, 'messages', 3)


def test_enforce_does_not_increment(account):
    enforce_plan_limit(account, 'ai')
    account.refresh_from_db()

    assert account.ai_queries_this_month == 0


def test_increment_usage(account):
    increment_usage(account, 'messages', 3)
    increment_usage(account, 'messages', 0)

    assert account.messages_this_month == 3


def test_unknown_category(account):
    with pytest.raises(ValidationException):
        enforce_plan_limit(account, 'storage')


def test_expired_plan_downgrades_lazily(account):
    account.plan = plans.PRO
    account.plan_expiry = timezone.now() - timedelta(days=1)
    account.apply_plan_limits()
    account.orders_this_month = 25
    account.save()

    with pytest.raises(LimitExceededException):
        enforce_plan_limit(account, 'orders')

    account.refresh_from_db()
    assert account.plan == plans.FREE
    assert account.max_orders == 20


def test_active_paid_plan_is_kept(account):
    account.plan = plans.BASIC
    account.plan_expiry = timezone.now() + timedelta(days=10)
    account.apply_plan_limits()
    account.save()

    assert downgrade_if_expired(account) is False
    assert account.max_orders == 100
