"""
Order placement and lifecycle.

place_order() is the single unit of work behind every new order: stock,
product stats, customer aggregates, shop counters, the daily sequence and
usage metering are all written inside one database transaction, so a
failure at any step leaves no partial side effects.
"""
import logging
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.metering import enforce_plan_limit, increment_usage
from apps.catalog.models import Product
from apps.core.exceptions import (
    InsufficientStockException,
    LimitExceededException,
    NotFoundException,
    ValidationException,
)
from apps.customers.models import Customer
from apps.shops.models import Shop
from .models import (
    CANCELLED,
    CONFIRMED,
    PENDING,
    STATUS_SEQUENCE,
    Order,
    OrderItem,
    OrderSequence,
)

logger = logging.getLogger(__name__)


def next_order_number(shop: Shop, now: datetime = None) -> str:
    """
    Allocate ``ORD-YYYYMMDD-NNNN`` for the shop's current local day.

    The per-(shop, day) counter row is locked and incremented, so two
    concurrent placements can never read the same value. Must run inside
    a transaction.
    """
    day = timezone.localdate(now or timezone.now())
    sequence, _ = OrderSequence.objects.select_for_update().get_or_create(shop=shop, day=day)
    OrderSequence.objects.filter(pk=sequence.pk).update(last_value=F('last_value') + 1)
    sequence.refresh_from_db(fields=['last_value'])
    return f"ORD-{day:%Y%m%d}-{sequence.last_value:04d}"


def _lock_products(shop: Shop, items: List[Dict[str, Any]]) -> Dict[str, Product]:
    product_ids = sorted({str(item['product_id']) for item in items})
    products = (
        Product.objects
        .select_for_update()
        .filter(shop=shop, pk__in=product_ids)
        .order_by('pk')
    )
    return {str(product.pk): product for product in products}


def _validate_lines(shop: Shop, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Check every line before anything is written. Quantities of repeated
    products are summed so the combined demand is checked against stock.
    """
    if not items:
        raise ValidationException("Order must have at least one item", field="items")

    products = _lock_products(shop, items)

    requested: Dict[str, int] = OrderedDict()
    for item in items:
        quantity = int(item['quantity'])
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1", field="items")
        product_id = str(item['product_id'])
        requested[product_id] = requested.get(product_id, 0) + quantity

    for product_id, quantity in requested.items():
        product = products.get(product_id)
        if product is None:
            raise NotFoundException("Product", product_id)
        if not product.is_active:
            raise ValidationException(f"{product.name} is not available", field="items")
        if product.stock < quantity:
            raise InsufficientStockException(product.name, product.stock, quantity)

    lines = []
    for item in items:
        product = products[str(item['product_id'])]
        quantity = int(item['quantity'])
        lines.append({
            'product': product,
            'name': product.name,
            'price': product.price,
            'quantity': quantity,
            'unit': product.unit,
            'subtotal': Decimal(product.price) * quantity,
        })
    return lines


def _resolve_customer(shop: Shop, name: str, phone: str, address: Optional[str]):
    customer, created = Customer.objects.select_for_update().get_or_create(
        shop=shop,
        phone=phone,
        defaults={
            'name': name,
            'address': {'street': address} if address else {},
        },
    )
    if created:
        logger.info(f"New customer {phone} for shop {shop.id}")
    return customer, created


@transaction.atomic
def place_order(
    shop: Shop,
    customer: Dict[str, Any],
    items: List[Dict[str, Any]],
    total=None,
    discount=0,
    source: str = 'manual',
    account=None,
    notes: str = None,
    delivery_date=None,
    delivery_time: str = None,
    placed_by: str = 'system',
) -> Order:
    """
    Validate stock for every line, then record the sale everywhere it shows
    up. ``account`` is the authenticated caller whose monthly order usage is
    metered; anonymous storefront orders pass None.
    """
    now = timezone.now()
    logger.info(f"Placing order for shop {shop.id}: {len(items)} line(s), source={source}")

    # 1-2. Validate all lines and snapshot prices
    lines = _validate_lines(shop, items)
    computed_total = sum((line['subtotal'] for line in lines), Decimal('0'))
    total = computed_total if total is None else Decimal(total)
    if total != computed_total:
        logger.warning(f"Client total {total} differs from line sum {computed_total} for shop {shop.id}")
    discount = Decimal(discount or 0)
    if discount < 0 or discount > total:
        raise ValidationException("Discount must be between 0 and the order total", field="discount")

    # 3. Stock and sales stats
    for line in lines:
        product = line['product']
        product.record_sale(line['quantity'])
        product.save(update_fields=['stock', 'total_sold', 'revenue', 'updated_at'])

    # 4. Customer
    customer_doc, customer_created = _resolve_customer(
        shop, customer['name'], customer['phone'], customer.get('address')
    )

    # 5-6. Order, items and initial history
    order = Order(
        shop=shop,
        order_number=next_order_number(shop, now),
        customer=customer_doc,
        customer_name=customer['name'],
        customer_phone=customer['phone'],
        customer_address=customer.get('address'),
        total=total,
        discount=discount,
        status=PENDING,
        payment_status='unpaid',
        source=source or 'manual',
        notes=notes,
        delivery_date=delivery_date,
        delivery_time=delivery_time,
    )
    order.save()
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=line['product'],
            name=line['name'],
            price=line['price'],
            quantity=line['quantity'],
            unit=line['unit'],
            subtotal=line['subtotal'],
        )
        for line in lines
    ])
    order.add_status_history(PENDING, placed_by)

    if shop.auto_confirm_orders:
        order.status = CONFIRMED
        order.save(update_fields=['status', 'updated_at'])
        order.add_status_history(CONFIRMED, 'auto-confirm')

    # 7. Customer aggregates and segment
    customer_doc.record_order(order.final_total, when=now)
    customer_doc.save()

    # 8. Shop counters
    counters = {
        'total_orders': F('total_orders') + 1,
        'total_revenue': F('total_revenue') + order.final_total,
    }
    if customer_created:
        counters['total_customers'] = F('total_customers') + 1
    Shop.objects.filter(pk=shop.pk).update(**counters)

    # 9. Usage metering for authenticated callers
    if account is not None:
        increment_usage(account, 'orders')

    logger.info(f"Order {order.order_number} placed for shop {shop.id}, final total {order.final_total}")
    return order


def update_order_status(order: Order, status: str, updated_by: str = 'system') -> Order:
    """
    Move an order along pending -> confirmed -> processing -> ready ->
    delivered (skipping ahead is allowed) or cancel it. Delivered and
    cancelled orders are final.
    """
    if status not in dict(Order.STATUS_CHOICES):
        raise ValidationException(f"Invalid status: {status}", field="status")

    with transaction.atomic():
        # transition is checked against the locked row
        order.status = Order.objects.select_for_update().values_list('status', flat=True).get(pk=order.pk)

        if order.is_terminal:
            raise ValidationException(f"Order {order.order_number} is already {order.status}", field="status")
        if status == order.status:
            raise ValidationException(f"Order {order.order_number} is already {status}", field="status")
        if status != CANCELLED and STATUS_SEQUENCE.index(status) < STATUS_SEQUENCE.index(order.status):
            raise ValidationException(
                f"Cannot move order from {order.status} back to {status}", field="status"
            )

        order.status = status
        order.save(update_fields=['status', 'updated_at'])
        order.add_status_history(status, updated_by)

    logger.info(f"Order {order.order_number} -> {status} by {updated_by}")
    return order


def derive_payment_status(paid_amount: Decimal, final_total: Decimal) -> str:
    if paid_amount <= 0:
        return 'unpaid'
    if paid_amount < final_total:
        return 'partial'
    return 'paid'


def update_order_payment(
    order: Order,
    payment_status: str = None,
    paid_amount=None,
    payment_method: str = None,
) -> Order:
    """Record a payment against an order."""
    if paid_amount is not None:
        paid_amount = Decimal(paid_amount)
        if paid_amount < 0 or paid_amount > order.final_total:
            raise ValidationException(
                f"Paid amount must be between 0 and {order.final_total}", field="paidAmount"
            )
        order.paid_amount = paid_amount
        if payment_status is None:
            payment_status = derive_payment_status(paid_amount, order.final_total)

    if payment_status is not None:
        if payment_status not in dict(Order.PAYMENT_STATUS_CHOICES):
            raise ValidationException(f"Invalid payment status: {payment_status}", field="paymentStatus")
        order.payment_status = payment_status
        if payment_status == 'paid' and paid_amount is None:
            order.paid_amount = order.final_total

    if payment_method is not None:
        order.payment_method = payment_method

    order.save(update_fields=['payment_status', 'paid_amount', 'payment_method', 'updated_at'])
    return order


def notify_order_placed(order: Order, dispatcher) -> Optional[Any]:
    """
    Send the order confirmation once the order has been committed.

    Skipped when the shop has notifications off, WhatsApp is not configured
    or the owner has no messages left this month. A failed send is logged as
    a failed Message and never undoes the order. Returns the Message, or
    None when nothing was attempted.
    """
    shop = order.shop
    if not shop.enable_whatsapp_notifications or not dispatcher.is_configured:
        return None

    owner = shop.owner
    try:
        enforce_plan_limit(owner, 'messages')
    except LimitExceededException:
        logger.info(f"Skipping confirmation for {order.order_number}: owner over messages limit")
        return None

    message, result = dispatcher.send_order_confirmation(order)
    if result.success:
        increment_usage(owner, 'messages')
    return message
