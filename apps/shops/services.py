"""
Shop setup and settings.
"""
import logging
from typing import Any, Dict

from django.core.exceptions import ObjectDoesNotExist

from apps.accounts.models import Account
from apps.core.exceptions import NotFoundException, ValidationException
from .models import Shop

logger = logging.getLogger(__name__)


def get_owned_shop(account: Account) -> Shop:
    """The caller's shop; owners without one get a 404."""
    try:
        return account.shop
    except ObjectDoesNotExist:
        raise NotFoundException("Shop")


def create_shop(account: Account, data: Dict[str, Any]) -> Shop:
    if Shop.objects.filter(owner=account).exists():
        raise ValidationException("You already have a shop. Please edit existing shop.")

    shop = Shop.objects.create(owner=account, **data)
    logger.info(f"Shop {shop.id} created for account {account.id} at /{shop.public_slug}")
    return shop


def update_shop(shop: Shop, data: Dict[str, Any]) -> Shop:
    """Apply profile and settings changes. The public slug never changes."""
    data.pop('public_slug', None)
    for field, value in data.items():
        setattr(shop, field, value)
    shop.save()
    return shop


def get_public_shop(slug: str) -> Shop:
    shop = Shop.objects.filter(public_slug=slug, is_active=True).first()
    if shop is None:
        raise NotFoundException("Shop")
    return shop
