"""
Shops Models - One tenant per owning account
"""
import re

from django.core.validators import RegexValidator
from django.db import models

from apps.core.exceptions import ConflictException
from apps.core.models import BaseModel

SLUG_PATTERN = r'^[a-z0-9-]+$'
MAX_SLUG_ATTEMPTS = 1000


def slugify_shop_name(name: str) -> str:
    """
    Derive a URL-safe base slug from a shop name.

    "Rahul's Kirana Store!!" -> "rahul-s-kirana-store"
    """
    slug = (name or '').lower()
    slug = re.sub(r'[^a-z0-9\s-]', '-', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    slug = slug.strip('-')
    return slug or 'shop'


class Shop(BaseModel):
    """
    A tenant: one owner's storefront and data partition.
    """
    CATEGORY_CHOICES = [
        ('kirana', 'Kirana'),
        ('salon', 'Salon'),
        ('tailor', 'Tailor'),
        ('tiffin', 'Tiffin'),
        ('tuition', 'Tuition'),
        ('repair', 'Repair'),
        ('medical', 'Medical'),
        ('bakery', 'Bakery'),
        ('other', 'Other'),
    ]

    LANGUAGE_CHOICES = [
        ('en', 'English'),
        ('hi', 'Hindi'),
    ]

    owner = models.OneToOneField('accounts.Account', on_delete=models.CASCADE, related_name='shop')
    name = models.CharField(max_length=100)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    whatsapp = models.CharField(
        max_length=10, blank=True, null=True,
        validators=[RegexValidator(r'^[0-9]{10}$', 'Please provide a valid 10-digit WhatsApp number')]
    )
    email = models.EmailField(blank=True, null=True)
    address = models.JSONField(default=dict, blank=True, help_text="street, area, city, state, pincode, landmark")
    public_slug = models.CharField(
        max_length=120, unique=True, blank=True, null=True,
        validators=[RegexValidator(SLUG_PATTERN, 'Slug can only contain lowercase letters, numbers, and hyphens')]
    )
    logo = models.URLField(blank=True, null=True)
    description = models.TextField(max_length=500, blank=True, null=True)
    is_active = models.BooleanField(default=True)

    # Settings
    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default='en')
    currency = models.CharField(max_length=3, default='INR')
    timezone = models.CharField(max_length=64, default='Asia/Kolkata')
    auto_confirm_orders = models.BooleanField(default=False)
    low_stock_threshold = models.PositiveIntegerField(default=10)
    enable_whatsapp_notifications = models.BooleanField(default=True)

    business_hours = models.JSONField(default=dict, blank=True)

    # Aggregate counters, maintained with F() increments
    total_orders = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_customers = models.PositiveIntegerField(default=0)
    total_products = models.IntegerField(default=0)

    class Meta:
        db_table = 'shops_shops'
        verbose_name = 'Shop'
        verbose_name_plural = 'Shops'

    def __str__(self):
        return f"{self.name} ({self.public_slug})"

    def save(self, *args, **kwargs):
        # Slug is assigned once; renames keep the public URL stable
        assign_public_slug(self)
        super().save(*args, **kwargs)

    def generate_unique_slug(self) -> str:
        """
        Base slug from the name, suffixed -1, -2, ... until no other shop
        uses it. The shop's own row never counts as a collision.
        """
        base = slugify_shop_name(self.name)
        others = Shop.objects.exclude(pk=self.pk)

        candidate = base
        for counter in range(1, MAX_SLUG_ATTEMPTS + 1):
            if not others.filter(public_slug=candidate).exists():
                return candidate
            candidate = f"{base}-{counter}"

        raise ConflictException(f"Could not find a free public slug for '{self.name}'")


def assign_public_slug(shop: Shop) -> str:
    """Give ``shop`` a public slug unless it already has one."""
    if not shop.public_slug:
        shop.public_slug = shop.generate_unique_slug()
    return shop.public_slug
