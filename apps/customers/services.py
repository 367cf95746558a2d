"""
Manual customer management.
"""
import logging
from typing import Any, Dict

from django.db import IntegrityError, transaction
from django.db.models import F, Q, QuerySet

from apps.core.exceptions import ConflictException
from apps.shops.models import Shop
from .models import Customer

logger = logging.getLogger(__name__)


def create_customer(shop: Shop, data: Dict[str, Any]) -> Customer:
    if Customer.objects.filter(shop=shop, phone=data['phone']).exists():
        raise ConflictException("Customer with this phone number already exists")

    try:
        with transaction.atomic():
            customer = Customer.objects.create(shop=shop, **data)
            Shop.objects.filter(pk=shop.pk).update(total_customers=F('total_customers') + 1)
    except IntegrityError:
        raise ConflictException("Customer with this phone number already exists")

    logger.info(f"Customer {customer.phone} added to shop {shop.id}")
    return customer


def update_customer(customer: Customer, data: Dict[str, Any]) -> Customer:
    phone = data.get('phone')
    if phone and phone != customer.phone:
        if Customer.objects.filter(shop_id=customer.shop_id, phone=phone).exists():
            raise ConflictException("Customer with this phone number already exists")

    for field, value in data.items():
        setattr(customer, field, value)
    try:
        with transaction.atomic():
            customer.save()
    except IntegrityError:
        raise ConflictException("Customer with this phone number already exists")
    return customer


def filter_customers(queryset: QuerySet, segment: str = None, search: str = None) -> QuerySet:
    if segment:
        queryset = queryset.filter(segment=segment)
    if search:
        queryset = queryset.filter(Q(name__icontains=search) | Q(phone__icontains=search))
    return queryset.order_by('-total_spent', '-created_at')
