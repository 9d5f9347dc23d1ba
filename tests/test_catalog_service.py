from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.domain.errors import NotFoundError, ValidationError
from storefront.services.catalog_service import CatalogService


@pytest.fixture
def catalog(db):
    return CatalogService(db)


class TestPresentation:
    def test_default_variant_sets_the_price(self, catalog, make_product):
        product = make_product(
            variants=[
                {"price": "90", "unit": "g", "weight": "500"},
                {"price": "160", "original_price": "200", "unit": "kg", "weight": "1", "is_default": True},
            ]
        )

        item = catalog.get_product(product.id)

        assert item["price"] == Decimal("160")
        assert item["original_price"] == Decimal("200")
        assert (item["weight"], item["unit"]) == ("1", "kg")
        assert len(item["variants"]) == 2
        assert not item["variant_inactive"]

    def test_first_active_when_default_is_inactive(self, catalog, make_product):
        product = make_product(
            variants=[{"price": "100", "is_default": True, "is_active": False}, {"price": "120"}]
        )

        item = catalog.get_product(product.id)

        assert item["price"] == Decimal("120")
        assert not item["variant_inactive"]

    def test_inactive_only_product_still_has_a_price(self, catalog, make_product):
        product = make_product(variants=[{"price": "75", "is_active": False}])

        item = catalog.get_product(product.id)

        assert item["price"] == Decimal("75")
        assert item["variant_inactive"]

    def test_product_without_variants_has_no_price(self, catalog, db, make_product):
        product = make_product()
        product.variants.clear()
        db.commit()

        item = catalog.get_product(product.id)

        assert item["price"] is None
        assert item["display_variant_id"] is None

    def test_variant_image_preferred(self, catalog, make_product):
        product = make_product(
            image_url="product.png",
            variants=[{"price": "10", "is_default": True, "image_url": "variant.png"}],
        )
        plain = make_product("Salt", image_url="product.png")

        assert catalog.get_product(product.id)["image_url"] == "variant.png"
        assert catalog.get_product(plain.id)["image_url"] == "product.png"

    def test_unknown_product(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.get_product("missing")


class TestListing:
    def test_only_active_products(self, catalog, make_product):
        make_product("Rice")
        make_product("Old Stock", is_active=False)

        page = catalog.list_products()

        assert [p["name"] for p in page["products"]] == ["Rice"]
        assert page["pagination"]["total"] == 1

    def test_newest_first_with_pagination(self, catalog, db, make_product):
        now = datetime.now(timezone.utc)
        products = []
        for i, name in enumerate(["A", "B", "C"]):
            product = make_product(name)
            product.created_at = now - timedelta(minutes=10 - i)
            products.append(product)
        db.commit()

        page = catalog.list_products(page=1, limit=2)

        assert [p["name"] for p in page["products"]] == ["C", "B"]
        assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    def test_sort_by_name(self, catalog, make_product):
        for name in ["Sugar", "Atta", "Moong"]:
            make_product(name)

        page = catalog.list_products(sort_by="name", order="asc")

        assert [p["name"] for p in page["products"]] == ["Atta", "Moong", "Sugar"]

    def test_category_filter(self, catalog, make_product):
        make_product("Rice", category_id="grains")
        make_product("Soap", category_id="household")

        page = catalog.list_products(category_id="grains")

        assert [p["name"] for p in page["products"]] == ["Rice"]

    def test_price_range_uses_display_price(self, catalog, make_product):
        make_product("Cheap", variants=[{"price": "50", "is_default": True}])
        make_product("Mid", variants=[{"price": "150", "is_default": True}, {"price": "20"}])
        make_product("Dear", variants=[{"price": "300", "is_default": True}])

        page = catalog.list_products(min_price=Decimal("100"), max_price=Decimal("200"))

        assert [p["name"] for p in page["products"]] == ["Mid"]
        assert page["pagination"]["total"] == 1

    @pytest.mark.parametrize(
        "kwargs",
        [{"sort_by": "price"}, {"order": "sideways"}, {"page": 0}, {"limit": 101}],
    )
    def test_rejects_bad_paging(self, catalog, kwargs):
        with pytest.raises(ValidationError):
            catalog.list_products(**kwargs)


class TestSearchAndFeatured:
    def test_search_is_case_insensitive(self, catalog, make_product):
        make_product("Basmati Rice")
        make_product("brown rice")
        make_product("Toor Dal")

        names = {p["name"] for p in catalog.search_products("RICE")}

        assert names == {"Basmati Rice", "brown rice"}

    def test_search_treats_wildcards_literally(self, catalog, make_product):
        make_product("Rice")
        make_product("Oil 50% off")

        assert [p["name"] for p in catalog.search_products("%")] == ["Oil 50% off"]

    def test_search_results_are_capped(self, catalog, make_product):
        for i in range(12):
            make_product(f"Rice {i:02d}")

        assert len(catalog.search_products("rice", limit=50)) == 10

    @pytest.mark.parametrize("term", [None, "", "   "])
    def test_search_needs_a_term(self, catalog, term):
        with pytest.raises(ValidationError):
            catalog.search_products(term)

    def test_featured(self, catalog, make_product):
        make_product("Mango", is_featured=True)
        make_product("Hidden Mango", is_featured=True, is_active=False)
        make_product("Onion")

        assert [p["name"] for p in catalog.featured_products()] == ["Mango"]
