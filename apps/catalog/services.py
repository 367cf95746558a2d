"""
Catalog writes that also touch the shop's product counter.
"""
import logging
from typing import Any, Dict

from django.db import transaction
from django.db.models import F, Q, QuerySet

from apps.shops.models import Shop
from .models import Product

logger = logging.getLogger(__name__)


@transaction.atomic
def create_product(shop: Shop, data: Dict[str, Any]) -> Product:
    product = Product.objects.create(shop=shop, **data)
    Shop.objects.filter(pk=shop.pk).update(total_products=F('total_products') + 1)
    logger.info(f"Product {product.id} created for shop {shop.id}")
    return product


@transaction.atomic
def delete_product(product: Product) -> None:
    shop_id = product.shop_id
    product.delete()
    Shop.objects.filter(pk=shop_id).update(total_products=F('total_products') - 1)


def record_view(product: Product) -> None:
    Product.objects.filter(pk=product.pk).update(views=F('views') + 1)
    product.refresh_from_db(fields=['views'])


def filter_products(queryset: QuerySet, category: str = None, is_active: str = None,
                    search: str = None) -> QuerySet:
    if category:
        queryset = queryset.filter(category=category)
    if is_active is not None:
        queryset = queryset.filter(is_active=str(is_active).lower() == 'true')
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(description__icontains=search) | Q(category__icontains=search)
        )
    return queryset


def low_stock_products(shop: Shop) -> QuerySet:
    """Active products at or under the shop's threshold, emptiest first."""
    return (
        Product.objects
        .filter(shop=shop, is_active=True, stock__lte=shop.low_stock_threshold)
        .order_by('stock', 'name')
    )
