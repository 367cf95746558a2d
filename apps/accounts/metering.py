"""
Usage metering against plan limits.

Metered actions (order creation, WhatsApp messages, AI queries) call
enforce_plan_limit() before doing any work and increment_usage() once
the action has succeeded.
"""
import logging

from django.db.models import F

from apps.core.exceptions import ValidationException, LimitExceededException
from . import plans
from .models import Account

logger = logging.getLogger(__name__)


def _columns(category: str):
    try:
        return plans.METERED_CATEGORIES[category]
    except KeyError:
        raise ValidationException(f"Unknown usage category: {category}", field="category")


def downgrade_if_expired(account: Account) -> bool:
    """
    Lazily move an expired paid plan back to free and recompute limits.
    Returns True when the account was downgraded.
    """
    if not account.plan_expired:
        return False

    logger.info(f"Plan {account.plan} expired for account {account.id}, downgrading to free")
    account.plan = plans.FREE
    account.apply_plan_limits()
    account.save(update_fields=[
        'plan', 'max_orders', 'max_messages', 'max_products',
        'max_customers', 'ai_queries', 'updated_at',
    ])
    return True


def enforce_plan_limit(account: Account, category: str, amount: int = 1) -> None:
    """
    Raise LimitExceededException when ``amount`` more actions would take the
    account past its monthly allowance for ``category``. Never increments
    anything.
    """
    usage_field, limit_field = _columns(category)
    downgrade_if_expired(account)

    current = getattr(account, usage_field)
    limit = getattr(account, limit_field)

    if current + amount > limit:
        logger.warning(f"Account {account.id} over {category} limit ({current}+{amount}/{limit})")
        raise LimitExceededException(category=category, current=current, limit=limit, plan=account.plan)


def increment_usage(account: Account, category: str, amount: int = 1) -> None:
    """Atomically add ``amount`` to the account's monthly counter."""
    if amount <= 0:
        return

    usage_field, _ = _columns(category)
    Account.objects.filter(pk=account.pk).update(**{usage_field: F(usage_field) + amount})
    account.refresh_from_db(fields=[usage_field])
    logger.debug(f"Account {account.id} {category} usage now {getattr(account, usage_field)}")
