"""
Demo Data Generator for LocalBiz

Creates a demo owner account with a kirana shop, a product catalog and a
history of orders. Orders go through the real placement service, so stock,
customer segments and shop counters end up consistent.
"""
import os
import random
import sys
from decimal import Decimal

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.base')

import django
django.setup()

from faker import Faker
from apps.accounts.models import Account
from apps.catalog.services import create_product
from apps.core.exceptions import InsufficientStockException
from apps.orders.services import place_order, update_order_payment, update_order_status
from apps.shops.models import Shop

fake = Faker('en_IN')

DEMO_EMAIL = 'demo@localbiz.app'
DEMO_PASSWORD = 'demo1234'

PRODUCT_TEMPLATES = [
    # name, category, unit, min price, max price
    ('Basmati Rice', 'grains', 'kg', 80, 160),
    ('Toor Dal', 'pulses', 'kg', 110, 180),
    ('Moong Dal', 'pulses', 'kg', 100, 160),
    ('Sunflower Oil', 'oils', 'liter', 130, 200),
    ('Mustard Oil', 'oils', 'liter', 140, 210),
    ('Atta', 'grains', 'kg', 40, 60),
    ('Sugar', 'essentials', 'kg', 40, 50),
    ('Tea Leaves', 'beverages', 'packet', 120, 300),
    ('Milk', 'dairy', 'liter', 50, 70),
    ('Paneer', 'dairy', 'gram', 80, 120),
    ('Eggs', 'dairy', 'dozen', 70, 90),
    ('Bread', 'bakery', 'packet', 35, 55),
    ('Biscuits', 'snacks', 'packet', 10, 40),
    ('Namkeen', 'snacks', 'packet', 20, 60),
    ('Detergent', 'household', 'packet', 90, 250),
    ('Bath Soap', 'personal care', 'piece', 30, 60),
    ('Toothpaste', 'personal care', 'piece', 50, 120),
    ('Salt', 'essentials', 'kg', 20, 30),
    ('Turmeric Powder', 'spices', 'gram', 30, 70),
    ('Red Chilli Powder', 'spices', 'gram', 40, 90),
]


def create_owner():
    """Create the demo owner account."""
    print("Creating demo account...")
    account = Account(name=fake.name(), email=DEMO_EMAIL, phone=fake.numerify('9#########'))
    account.set_password(DEMO_PASSWORD)
    account.apply_plan_limits()
    account.save()
    return account


def create_shop(account):
    print("Creating shop...")
    return Shop.objects.create(
        owner=account,
        name=f"{fake.first_name()}'s Kirana Store",
        category='kirana',
        whatsapp=account.phone,
        address={'street': fake.street_address(), 'city': fake.city(), 'pincode': fake.postcode()},
        description='Daily groceries and essentials, delivered.',
        enable_whatsapp_notifications=False,
    )


def generate_products(shop):
    """Generate the catalog."""
    print(f"Generating {len(PRODUCT_TEMPLATES)} products...")
    products = []

    for name, category, unit, min_price, max_price in PRODUCT_TEMPLATES:
        price = Decimal(random.randint(min_price, max_price))
        product = create_product(shop, {
            'name': name,
            'category': category,
            'unit': unit,
            'price': price,
            'cost_price': (price * Decimal('0.8')).quantize(Decimal('1')),
            'stock': random.randint(5, 200),
            'sku': fake.unique.bothify('SKU-####'),
        })
        products.append(product)

    print(f"Created {len(products)} products")
    return products


def generate_customers(count=30):
    return [
        {'name': fake.name(), 'phone': fake.unique.numerify('9#########'), 'address': fake.street_address()}
        for _ in range(count)
    ]


def generate_orders(shop, account, products, customers, count=120):
    """Place orders through the placement service."""
    print(f"Placing {count} orders...")
    orders = []

    for _ in range(count):
        lines = random.sample(products, k=random.randint(1, 4))
        items = [{'product_id': p.id, 'quantity': random.randint(1, 3)} for p in lines]
        try:
            order = place_order(
                shop,
                customer=random.choice(customers),
                items=items,
                discount=random.choice([0, 0, 0, 5, 10]),
                source=random.choice(['shop', 'manual', 'whatsapp']),
                account=account,
                placed_by=account.name,
            )
        except InsufficientStockException:
            continue

        # Move some orders along their lifecycle
        for status in random.choice([[], ['confirmed'], ['confirmed', 'delivered'], ['cancelled']]):
            update_order_status(order, status, updated_by=account.name)
        if order.status == 'delivered':
            update_order_payment(order, paid_amount=order.final_total, payment_method=random.choice(['cash', 'upi']))
        orders.append(order)

    print(f"Placed {len(orders)} orders")
    return orders


def clear_all_data():
    """Remove the previous demo account and everything it owns."""
    print("Clearing existing demo data...")
    Account.objects.filter(email=DEMO_EMAIL).delete()


def main():
    print("=" * 60)
    print("LocalBiz Demo Data Generator")
    print("=" * 60)

    clear_all_data()

    account = create_owner()
    shop = create_shop(account)
    products = generate_products(shop)
    customers = generate_customers(30)
    orders = generate_orders(shop, account, products, customers, 120)

    shop.refresh_from_db()
    print("\n" + "=" * 60)
    print("Data Generation Complete!")
    print("=" * 60)
    print(f"\nSummary:")
    print(f"  - Login: {DEMO_EMAIL} / {DEMO_PASSWORD}")
    print(f"  - Storefront: /api/shop/public/{shop.public_slug}/")
    print(f"  - Products: {len(products)}")
    print(f"  - Orders: {len(orders)}")
    print(f"  - Customers: {shop.total_customers}")
    print(f"  - Revenue: {shop.total_revenue}")
    print()


if __name__ == '__main__':
    main()
