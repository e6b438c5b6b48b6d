"""
Shopping cart: one document per user in the `cart` collection.

Line items are snapshots of the product taken when it was added. Every
mutation reads the cart, edits the items list and writes the whole document
back, so two concurrent writes for the same user are last-write-wins.
"""
from typing import List

import structlog

from errors import NotFoundError, ValidationError
from schemas import Cart, CartItem, utcnow

logger = structlog.get_logger(__name__)


def _find(db, user_id: str):
    return db["cart"].find_one({"user_id": user_id})


def _save(db, cart: dict) -> None:
    cart["updated_at"] = utcnow()
    db["cart"].replace_one({"user_id": cart["user_id"]}, cart, upsert=True)


def get_cart(db, user_id: str) -> List[dict]:
    cart = _find(db, user_id)
    if not cart:
        return []
    return cart.get("items", [])


def add_item(db, user_id: str, item: CartItem) -> List[dict]:
    """Add `item` to the user's cart, creating the cart on first use.

    If the product is already in the cart its quantity grows by
    `item.quantity`; otherwise the item is appended.
    """
    cart = _find(db, user_id)
    if not cart:
        cart = {**Cart(user_id=user_id).model_dump(), "created_at": utcnow()}

    for existing in cart["items"]:
        if existing["product_id"] == item.product_id:
            existing["quantity"] += item.quantity
            break
    else:
        cart["items"].append(item.model_dump())

    _save(db, cart)
    logger.info("Cart item added", user_id=user_id, product_id=item.product_id, quantity=item.quantity)
    return cart["items"]


def update_item_quantity(db, user_id: str, product_id: str, quantity) -> List[dict]:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Quantity must be a positive number.")

    cart = _find(db, user_id)
    if not cart:
        raise NotFoundError("Cart not found for this user.")

    for existing in cart["items"]:
        if existing["product_id"] == product_id:
            existing["quantity"] = quantity
            break
    else:
        raise NotFoundError("Product not found in cart to update.")

    _save(db, cart)
    logger.info("Cart item quantity updated", user_id=user_id, product_id=product_id, quantity=quantity)
    return cart["items"]


def remove_item(db, user_id: str, product_id: str) -> List[dict]:
    cart = _find(db, user_id)
    if not cart:
        raise NotFoundError("Cart not found for this user.")

    before = len(cart["items"])
    cart["items"] = [i for i in cart["items"] if i["product_id"] != product_id]
    if len(cart["items"]) == before:
        raise NotFoundError("Product not found in cart to remove.")

    _save(db, cart)
    logger.info("Cart item removed", user_id=user_id, product_id=product_id)
    return cart["items"]


def clear_cart(db, user_id: str) -> bool:
    """Empty the user's cart, keeping the document. Returns False when there was no cart."""
    res = db["cart"].update_one(
        {"user_id": user_id},
        {"$set": {"items": [], "updated_at": utcnow()}},
    )
    return res.matched_count > 0
