"""
Catalog Models - Products sold by a shop
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import BaseModel

DEFAULT_LOW_STOCK_THRESHOLD = 10


class Product(BaseModel):
    """
    Product in a shop's catalog.
    Stock is never negative: decrements clamp at zero.
    """
    UNIT_CHOICES = [
        ('piece', 'Piece'),
        ('kg', 'Kilogram'),
        ('gram', 'Gram'),
        ('liter', 'Liter'),
        ('ml', 'Millilitre'),
        ('meter', 'Meter'),
        ('dozen', 'Dozen'),
        ('box', 'Box'),
        ('packet', 'Packet'),
        ('other', 'Other'),
    ]

    shop = models.ForeignKey('shops.Shop', on_delete=models.CASCADE, related_name='products')
    name = models.CharField(max_length=200)
    description = models.TextField(max_length=1000, blank=True, null=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    stock = models.PositiveIntegerField(default=0)
    unit = models.CharField(max_length=20, choices=UNIT_CHOICES, default='piece')
    category = models.CharField(max_length=100, default='general')
    image = models.URLField(blank=True, null=True)
    sku = models.CharField(max_length=50, blank=True, null=True)
    barcode = models.CharField(max_length=50, blank=True, null=True)
    cost_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)]
    )
    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)

    # Sales stats, maintained by order placement and product views
    total_sold = models.PositiveIntegerField(default=0)
    revenue = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    views = models.PositiveIntegerField(default=0)

    last_restocked = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'catalog_products'
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        indexes = [
            models.Index(fields=['shop', 'category']),
            models.Index(fields=['shop', 'is_active']),
            models.Index(fields=['shop', 'name']),
        ]

    def __str__(self):
        return f"{self.name} (₹{self.price})"

    @property
    def profit_margin(self) -> Decimal:
        """Margin over cost as a percentage, 0 when cost is unknown."""
        if self.cost_price and self.cost_price > 0:
            margin = (Decimal(self.price) - self.cost_price) / self.cost_price * 100
            return margin.quantize(Decimal('0.01'))
        return Decimal('0')

    def is_low_stock(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> bool:
        return self.stock <= threshold

    def adjust_stock(self, quantity: int, operation: str = 'subtract'):
        if operation == 'subtract':
            self.stock = max(0, self.stock - quantity)
        elif operation == 'add':
            self.stock += quantity
            self.last_restocked = timezone.now()
        else:
            raise ValueError(f"Unknown stock operation: {operation}")

    def record_sale(self, quantity: int):
        """Subtract sold units and add them to the sales stats."""
        self.adjust_stock(quantity, 'subtract')
        self.total_sold += quantity
        self.revenue = Decimal(self.revenue) + Decimal(self.price) * quantity
