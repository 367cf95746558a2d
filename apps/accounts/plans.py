"""
Subscription plans: monthly limits and prices.

Limits are a pure function of the plan name. "Unlimited" is the large
sentinel UNLIMITED rather than infinity so it fits an integer column.
"""
from typing import Dict

UNLIMITED = 999999

FREE = 'free'
BASIC = 'basic'
PRO = 'pro'
ENTERPRISE = 'enterprise'

PLAN_CHOICES = [
    (FREE, 'Free'),
    (BASIC, 'Basic'),
    (PRO, 'Pro'),
    (ENTERPRISE, 'Enterprise'),
]

PLAN_LIMITS: Dict[str, Dict[str, int]] = {
    FREE: {
        'max_orders': 20,
        'max_messages': 50,
        'max_products': 50,
        'max_customers': 100,
        'ai_queries': 10,
    },
    BASIC: {
        'max_orders': 100,
        'max_messages': 500,
        'max_products': 200,
        'max_customers': 500,
        'ai_queries': 50,
    },
    PRO: {
        'max_orders': UNLIMITED,
        'max_messages': 2000,
        'max_products': UNLIMITED,
        'max_customers': UNLIMITED,
        'ai_queries': 200,
    },
    ENTERPRISE: {
        'max_orders': UNLIMITED,
        'max_messages': UNLIMITED,
        'max_products': UNLIMITED,
        'max_customers': UNLIMITED,
        'ai_queries': UNLIMITED,
    },
}

# Paid plans, price in paise
PLAN_PRICES = {
    BASIC: {'amount': 19900, 'name': 'Basic'},
    PRO: {'amount': 49900, 'name': 'Pro'},
    ENTERPRISE: {'amount': 99900, 'name': 'Enterprise'},
}

PLAN_CATALOG = [
    {
        'id': FREE,
        'name': 'Free',
        'price': 0,
        'features': ['20 orders/month', '50 WhatsApp messages', '10 AI queries', 'Basic support'],
    },
    {
        'id': BASIC,
        'name': 'Basic',
        'price': 199,
        'features': ['100 orders/month', '500 WhatsApp messages', '50 AI queries', 'Email support'],
    },
    {
        'id': PRO,
        'name': 'Pro',
        'price': 499,
        'features': ['Unlimited orders', '2000 WhatsApp messages', '200 AI queries', 'Priority support'],
    },
    {
        'id': ENTERPRISE,
        'name': 'Enterprise',
        'price': 999,
        'features': ['Everything unlimited', 'Custom domain', 'API access', 'Dedicated support'],
    },
]

# Metered category -> (usage column, limit column)
METERED_CATEGORIES = {
    'orders': ('orders_this_month', 'max_orders'),
    'messages': ('messages_this_month', 'max_messages'),
    'ai': ('ai_queries_this_month', 'ai_queries'),
}


def limits_for(plan: str) -> Dict[str, int]:
    """Limits for a plan; unknown plans get the free tier."""
    return dict(PLAN_LIMITS.get(plan, PLAN_LIMITS[FREE]))
