"""
Dashboard analytics.

Read-only aggregation over a shop's orders, products and customers. All
windows are computed in the configured local time zone: "today" runs from
local midnight to midnight, weeks start on Sunday.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from django.db.models import Count, Sum
from django.db.models.functions import TruncDate, TruncMonth
from django.utils import timezone

from apps.catalog.models import Product
from apps.core.exceptions import ValidationException
from apps.core.utils import local_day_bounds
from apps.customers.models import Customer
from apps.orders.models import OPEN_STATUSES, Order

logger = logging.getLogger(__name__)

PERIODS = ('today', 'yesterday', 'week', 'month', 'year')
TREND_PERIODS = {
    # period -> (days back, bucket)
    'week': (7, 'day'),
    'month': (30, 'day'),
    'year': (365, 'month'),
}
TOP_PRODUCTS_LIMIT = 5
LOW_STOCK_LIMIT = 10
RECENT_ORDERS_LIMIT = 10


def calculate_percentage_change(current, previous) -> float:
    """
    (current - previous) / previous * 100, rounded to one decimal.
    A zero previous value gives 100 when current is positive, else 0.
    """
    current = Decimal(current or 0)
    previous = Decimal(previous or 0)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(float((current - previous) / previous * 100), 1)


def get_date_range(period: str = 'today', now: datetime = None) -> Tuple[datetime, datetime]:
    """
    Aware [start, end) bounds of ``period`` in local time. Open-ended
    periods (week, month, year) end at ``now``.
    """
    now = timezone.localtime(now or timezone.now())
    today = now.date()

    if period == 'today':
        return local_day_bounds(today)
    if period == 'yesterday':
        return local_day_bounds(today - timedelta(days=1))
    if period == 'week':
        # weekday(): Monday=0 .. Sunday=6
        days_since_sunday = (today.weekday() + 1) % 7
        start, _ = local_day_bounds(today - timedelta(days=days_since_sunday))
        return start, now
    if period == 'month':
        start, _ = local_day_bounds(today.replace(day=1))
        return start, now
    if period == 'year':
        start, _ = local_day_bounds(today.replace(month=1, day=1))
        return start, now
    raise ValidationException(f"Unknown period: {period}", field="period")


def _window_totals(shop, start: datetime, end: datetime) -> Dict[str, Any]:
    totals = (
        Order.objects
        .filter(shop=shop, created_at__gte=start, created_at__lt=end)
        .aggregate(orders=Count('id'), sales=Sum('final_total'))
    )
    return {'sales': totals['sales'] or Decimal('0'), 'orders': totals['orders']}


def build_dashboard(shop, now: datetime = None) -> Dict[str, Any]:
    now = now or timezone.now()
    windows = {period: _window_totals(shop, *get_date_range(period, now)) for period in PERIODS[:4]}
    today, yesterday = windows['today'], windows['yesterday']

    top_products = [
        {
            'id': str(p.id),
            'name': p.name,
            'totalSold': p.total_sold,
            'revenue': p.revenue,
            'stock': p.stock,
            'price': p.price,
            'unit': p.unit,
        }
        for p in (
            Product.objects
            .filter(shop=shop, is_active=True)
            .order_by('-total_sold', 'name')[:TOP_PRODUCTS_LIMIT]
        )
    ]

    low_stock_products = [
        {'id': str(p.id), 'name': p.name, 'stock': p.stock, 'unit': p.unit, 'price': p.price}
        for p in (
            Product.objects
            .filter(shop=shop, is_active=True, stock__lte=shop.low_stock_threshold)
            .order_by('stock', 'name')[:LOW_STOCK_LIMIT]
        )
    ]

    recent_orders = [
        {
            'id': str(o.id),
            'orderNumber': o.order_number,
            'customer': {'name': o.customer_name, 'phone': o.customer_phone},
            'status': o.status,
            'paymentStatus': o.payment_status,
            'finalTotal': o.final_total,
            'createdAt': o.created_at,
        }
        for o in Order.objects.filter(shop=shop).order_by('-created_at')[:RECENT_ORDERS_LIMIT]
    ]

    customers = Customer.objects.filter(shop=shop)
    return {
        'today': {
            'sales': today['sales'],
            'orders': today['orders'],
            'salesChange': calculate_percentage_change(today['sales'], yesterday['sales']),
        },
        'yesterday': yesterday,
        'week': windows['week'],
        'month': windows['month'],
        'topProducts': top_products,
        'lowStockProducts': low_stock_products,
        'recentOrders': recent_orders,
        'totals': {
            'customers': customers.filter(is_active=True).count(),
            'vipCustomers': customers.filter(segment='vip').count(),
            'products': Product.objects.filter(shop=shop, is_active=True).count(),
            'pendingOrders': Order.objects.filter(shop=shop, status__in=OPEN_STATUSES).count(),
        },
    }


def sales_trends(shop, period: str = 'week', now: datetime = None) -> List[Dict[str, Any]]:
    """
    Sales and order counts per local day (week, month) or month (year).
    """
    if period not in TREND_PERIODS:
        raise ValidationException(f"Unknown period: {period}", field="period")

    days_back, bucket = TREND_PERIODS[period]
    now = now or timezone.now()
    tz = timezone.get_current_timezone()
    trunc = TruncDate if bucket == 'day' else TruncMonth

    rows = (
        Order.objects
        .filter(shop=shop, created_at__gte=now - timedelta(days=days_back))
        .annotate(bucket=trunc('created_at', tzinfo=tz))
        .values('bucket')
        .annotate(totalSales=Sum('final_total'), orderCount=Count('id'))
        .order_by('bucket')
    )

    trends = []
    for row in rows:
        value = row['bucket']
        label = value.strftime('%Y-%m-%d') if bucket == 'day' else value.strftime('%Y-%m')
        trends.append({
            'period': label,
            'totalSales': row['totalSales'] or Decimal('0'),
            'orderCount': row['orderCount'],
        })
    return trends
