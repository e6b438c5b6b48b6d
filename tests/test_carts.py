"""Tests for the cart aggregate: merge on add, quantity updates, removal."""

import pytest

import carts
from errors import NotFoundError, ValidationError
from schemas import CartItem


def _item(product_id="prod-001", quantity=1, price=50000.0):
    return CartItem(
        product_id=product_id,
        product_name=f"Laptop {product_id}",
        product_price=price,
        product_image=f"https://img.example.com/{product_id}.jpg",
        product_specs="16GB RAM, 512GB SSD",
        quantity=quantity,
    )


class TestGetCart:
    def test_empty_when_no_cart_exists(self, db):
        assert carts.get_cart(db, "user-1") == []

    def test_returns_items_of_own_cart_only(self, db):
        carts.add_item(db, "user-1", _item("prod-001"))
        carts.add_item(db, "user-2", _item("prod-002"))

        items = carts.get_cart(db, "user-1")
        assert [i["product_id"] for i in items] == ["prod-001"]


class TestAddItem:
    def test_first_add_creates_cart(self, db):
        carts.add_item(db, "user-1", _item())

        cart = db["cart"].find_one({"user_id": "user-1"})
        assert cart is not None
        assert len(cart["items"]) == 1
        assert cart["created_at"] is not None
        assert cart["updated_at"] is not None

    def test_distinct_products_each_get_quantity_one(self, db):
        product_ids = ["prod-001", "prod-002", "prod-003", "prod-004"]
        for pid in product_ids:
            carts.add_item(db, "user-1", _item(pid))

        items = carts.get_cart(db, "user-1")
        assert sorted(i["product_id"] for i in items) == product_ids
        assert all(i["quantity"] == 1 for i in items)

    @pytest.mark.parametrize("quantities", [[1, 1], [2, 3], [1, 4, 2]])
    def test_repeated_product_sums_quantities(self, db, quantities):
        for q in quantities:
            carts.add_item(db, "user-1", _item("prod-001", quantity=q))

        items = carts.get_cart(db, "user-1")
        assert len(items) == 1
        assert items[0]["quantity"] == sum(quantities)

    def test_merge_keeps_original_price_snapshot(self, db):
        carts.add_item(db, "user-1", _item("prod-001", price=50000.0))
        carts.add_item(db, "user-1", _item("prod-001", price=45000.0))

        items = carts.get_cart(db, "user-1")
        assert items[0]["product_price"] == 50000.0
        assert items[0]["quantity"] == 2

    def test_one_cart_document_per_user(self, db):
        carts.add_item(db, "user-1", _item("prod-001"))
        carts.add_item(db, "user-1", _item("prod-002"))

        assert db["cart"].count_documents({"user_id": "user-1"}) == 1


class TestUpdateItemQuantity:
    def test_sets_quantity(self, db):
        carts.add_item(db, "user-1", _item("prod-001", quantity=2))

        items = carts.update_item_quantity(db, "user-1", "prod-001", 5)
        assert items[0]["quantity"] == 5
        assert carts.get_cart(db, "user-1")[0]["quantity"] == 5

    @pytest.mark.parametrize("bad", [0, -1, -100, "3", 2.5, None, True])
    def test_rejects_invalid_quantity_without_touching_storage(self, db, bad):
        carts.add_item(db, "user-1", _item("prod-001", quantity=2))
        before = db["cart"].find_one({"user_id": "user-1"})

        with pytest.raises(ValidationError):
            carts.update_item_quantity(db, "user-1", "prod-001", bad)

        assert db["cart"].find_one({"user_id": "user-1"}) == before

    def test_invalid_quantity_checked_before_cart_lookup(self, db):
        with pytest.raises(ValidationError):
            carts.update_item_quantity(db, "no-cart-user", "prod-001", 0)

    def test_missing_cart(self, db):
        with pytest.raises(NotFoundError):
            carts.update_item_quantity(db, "user-1", "prod-001", 2)

    def test_missing_product(self, db):
        carts.add_item(db, "user-1", _item("prod-001"))

        with pytest.raises(NotFoundError):
            carts.update_item_quantity(db, "user-1", "prod-999", 2)


class TestRemoveItem:
    def test_removes_only_that_product(self, db):
        carts.add_item(db, "user-1", _item("prod-001"))
        carts.add_item(db, "user-1", _item("prod-002"))

        items = carts.remove_item(db, "user-1", "prod-001")
        assert [i["product_id"] for i in items] == ["prod-002"]

    def test_absent_product_leaves_cart_unchanged(self, db):
        carts.add_item(db, "user-1", _item("prod-001"))
        carts.add_item(db, "user-1", _item("prod-002"))

        with pytest.raises(NotFoundError):
            carts.remove_item(db, "user-1", "prod-999")

        assert len(carts.get_cart(db, "user-1")) == 2

    def test_missing_cart(self, db):
        with pytest.raises(NotFoundError):
            carts.remove_item(db, "user-1", "prod-001")


class TestClearCart:
    def test_empties_items_but_keeps_document(self, db):
        carts.add_item(db, "user-1", _item("prod-001"))

        assert carts.clear_cart(db, "user-1") is True
        cart = db["cart"].find_one({"user_id": "user-1"})
        assert cart is not None
        assert cart["items"] == []

    def test_no_cart(self, db):
        assert carts.clear_cart(db, "user-1") is False
