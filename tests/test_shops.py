"""
Tests for shop slugs and shop setup
"""
import pytest

from apps.core.exceptions import NotFoundException, ValidationException
from apps.shops import services
from apps.shops.models import Shop, slugify_shop_name

pytestmark = pytest.mark.django_db


class TestSlugify:

    def test_punctuation_and_spaces_collapse_to_hyphens(self):
        assert slugify_shop_name("Rahul's Kirana Store!!") == 'rahul-s-kirana-store'

    def test_repeated_separators(self):
        assert slugify_shop_name("  Fresh   --  Bakes  ") == 'fresh-bakes'

    def test_name_without_usable_characters(self):
        assert slugify_shop_name("!!!") == 'shop'
        assert slugify_shop_name("") == 'shop'


class TestPublicSlug:

    def test_assigned_on_create(self, shop):
        assert shop.public_slug == 'rahul-s-kirana-store'

    def test_collision_gets_numeric_suffix(self, shop, make_account):
        other = Shop.objects.create(owner=make_account(email='b@example.com'), name="Rahul's Kirana Store")
        third = Shop.objects.create(owner=make_account(email='c@example.com'), name="Rahul's Kirana Store")

        assert other.public_slug == 'rahul-s-kirana-store-1'
        assert third.public_slug == 'rahul-s-kirana-store-2'

    def test_resave_keeps_slug(self, shop):
        slug = shop.public_slug
        shop.name = 'Completely Different Name'
        shop.save()
        shop.refresh_from_db()

        assert shop.public_slug == slug

    def test_update_cannot_change_slug(self, shop):
        services.update_shop(shop, {'public_slug': 'hijacked', 'name': 'New Name'})
        shop.refresh_from_db()

        assert shop.public_slug == 'rahul-s-kirana-store'
        assert shop.name == 'New Name'


class TestShopServices:

    def test_one_shop_per_owner(self, shop, account):
        with pytest.raises(ValidationException):
            services.create_shop(account, {'name': 'Second Shop'})

    def test_owned_shop_missing(self, make_account):
        with pytest.raises(NotFoundException):
            services.get_owned_shop(make_account(email='noshop@example.com'))

    def test_inactive_shop_is_not_public(self, shop):
        shop.is_active = False
        shop.save()

        with pytest.raises(NotFoundException):
            services.get_public_shop(shop.public_slug)
