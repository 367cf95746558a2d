"""
Tests for products and catalog services
"""
from decimal import Decimal

import pytest

from apps.catalog import services
from apps.catalog.models import Product

pytestmark = pytest.mark.django_db


class TestProduct:

    def test_stock_never_goes_negative(self, products):
        rice, _ = products

        rice.adjust_stock(25, 'subtract')

        assert rice.stock == 0

    def test_restock_sets_timestamp(self, products):
        rice, _ = products

        rice.adjust_stock(5, 'add')

        assert rice.stock == 15
        assert rice.last_restocked is not None

    def test_unknown_stock_operation(self, products):
        rice, _ = products

        with pytest.raises(ValueError):
            rice.adjust_stock(1, 'multiply')

    def test_profit_margin(self, shop):
        product = Product(shop=shop, name='Oil', price=Decimal('150'), cost_price=Decimal('120'))

        assert product.profit_margin == Decimal('25.00')

    def test_profit_margin_without_cost(self, shop):
        assert Product(shop=shop, name='Oil', price=Decimal('150')).profit_margin == Decimal('0')

    def test_low_stock_threshold_is_inclusive(self, products):
        rice, _ = products

        assert rice.is_low_stock(10) is True
        assert rice.is_low_stock(9) is False


class TestCatalogServices:

    def test_create_and_delete_track_counter(self, shop):
        product = services.create_product(shop, {'name': 'Sugar', 'price': Decimal('45')})
        shop.refresh_from_db()
        assert shop.total_products == 1

        services.delete_product(product)
        shop.refresh_from_db()
        assert shop.total_products == 0

    def test_filter_by_active_flag_and_search(self, shop, products):
        rice, _ = products
        rice.is_active = False
        rice.save()
        queryset = Product.objects.filter(shop=shop)

        assert [p.name for p in services.filter_products(queryset, is_active='false')] == ['Rice']
        assert [p.name for p in services.filter_products(queryset, search='da')] == ['Dal']

    def test_low_stock_excludes_inactive(self, shop, products):
        rice, dal = products
        Product.objects.filter(pk=rice.pk).update(stock=2, is_active=False)
        Product.objects.filter(pk=dal.pk).update(stock=4)

        assert [p.name for p in services.low_stock_products(shop)] == ['Dal']
