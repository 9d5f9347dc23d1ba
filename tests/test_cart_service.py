from decimal import Decimal

import pytest

from storefront.domain.errors import NotFoundError, ValidationError, VariantUnavailable
from storefront.repos.catalog_repo import CatalogRepo
from storefront.services.cart_service import CartService


@pytest.fixture
def carts(db):
    return CartService(db)


def test_add_uses_default_variant(carts, make_product):
    product = make_product(variants=[{"price": "90"}, {"price": "120", "is_default": True}])

    line = carts.add_to_cart("user-1", product.id, quantity=2)

    assert line["price"] == Decimal("120")
    assert line["selected_variant"].is_default
    assert not line["variant_inactive"]


def test_same_product_and_variant_merges(carts, make_product):
    product = make_product()

    carts.add_to_cart("user-1", product.id, quantity=1)
    carts.add_to_cart("user-1", product.id, quantity=2)

    cart = carts.get_cart("user-1")
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3


def test_different_variants_are_separate_lines(carts, make_product):
    product = make_product(variants=[{"price": "100", "is_default": True}, {"price": "180"}])
    large = next(v for v in product.variants if not v.is_default)

    carts.add_to_cart("user-1", product.id)
    carts.add_to_cart("user-1", product.id, variant_id=large.id)

    assert len(carts.get_cart("user-1")["items"]) == 2


def test_inactive_variant_rejected(carts, make_product):
    product = make_product(variants=[{"price": "100", "is_default": True}, {"price": "80", "is_active": False}])
    inactive = next(v for v in product.variants if not v.is_active)

    with pytest.raises(VariantUnavailable):
        carts.add_to_cart("user-1", product.id, variant_id=inactive.id)


def test_unknown_product(carts):
    with pytest.raises(NotFoundError):
        carts.add_to_cart("user-1", "missing")


def test_zero_quantity(carts, make_product):
    with pytest.raises(ValidationError):
        carts.add_to_cart("user-1", make_product().id, quantity=0)


def test_summary_totals_and_savings(carts, make_product):
    oil = make_product("Oil", variants=[{"price": "150", "original_price": "180", "is_default": True}])
    salt = make_product("Salt", variants=[{"price": "20", "is_default": True}])
    carts.add_to_cart("user-1", oil.id, quantity=2)
    carts.add_to_cart("user-1", salt.id, quantity=1)

    summary = carts.get_cart("user-1")["summary"]

    assert summary["item_total"] == Decimal("320")
    assert summary["savings"] == Decimal("60")
    assert summary["delivery_fee"] == Decimal("0.00")
    assert summary["total"] == summary["item_total"]


def test_pinned_variant_gone_is_flagged(carts, db, make_product):
    product = make_product(variants=[{"price": "100", "is_default": True}, {"price": "180"}])
    large = next(v for v in product.variants if not v.is_default)
    carts.add_to_cart("user-1", product.id, variant_id=large.id)
    large.is_active = False
    db.commit()

    line = carts.get_cart("user-1")["items"][0]

    assert line["variant_inactive"]
    assert line["selected_variant"].is_default


def test_update_and_remove(carts, make_product):
    line = carts.add_to_cart("user-1", make_product().id)

    assert carts.update_quantity("user-1", line["id"], 5)["quantity"] == 5
    carts.remove_item("user-1", line["id"])

    assert carts.get_cart("user-1")["items"] == []
    with pytest.raises(NotFoundError):
        carts.remove_item("user-1", line["id"])


def test_other_users_line_not_found(carts, make_product):
    line = carts.add_to_cart("user-1", make_product().id)

    with pytest.raises(NotFoundError):
        carts.update_quantity("user-2", line["id"], 2)


def test_clear(carts, make_product):
    product = make_product()
    carts.add_to_cart("user-1", product.id)
    carts.add_to_cart("user-2", product.id)

    assert carts.clear_cart("user-1") == 1
    assert len(carts.get_cart("user-2")["items"]) == 1


def test_stock_increment_is_a_no_op(db, make_product):
    product = make_product()

    CatalogRepo(db).increment_stock(product.id, 3)

    assert CatalogRepo(db).get_product(product.id).is_active
