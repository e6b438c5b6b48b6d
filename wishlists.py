"""Wishlist: one document per user, product membership only (no quantities)."""
from typing import List

import structlog

from errors import ConflictError, NotFoundError
from schemas import Wishlist, WishlistItem

logger = structlog.get_logger(__name__)


def get_wishlist(db, user_id: str) -> List[dict]:
    wishlist = db["wishlist"].find_one({"user_id": user_id})
    if not wishlist:
        return []
    return wishlist.get("items", [])


def add_item(db, user_id: str, item: WishlistItem) -> dict:
    wishlist = db["wishlist"].find_one({"user_id": user_id})
    if not wishlist:
        wishlist = Wishlist(user_id=user_id).model_dump()

    if any(str(i["product_id"]) == item.product_id for i in wishlist["items"]):
        raise ConflictError("Product is already in your wishlist.")

    entry = item.model_dump()
    wishlist["items"].append(entry)
    db["wishlist"].replace_one({"user_id": user_id}, wishlist, upsert=True)
    logger.info("Wishlist item added", user_id=user_id, product_id=item.product_id)
    return entry


def remove_item(db, user_id: str, product_id: str) -> None:
    wishlist = db["wishlist"].find_one({"user_id": user_id})
    if not wishlist:
        raise NotFoundError("Wishlist not found for this user.")

    before = len(wishlist["items"])
    wishlist["items"] = [i for i in wishlist["items"] if str(i["product_id"]) != product_id]
    if len(wishlist["items"]) == before:
        raise NotFoundError("Product not found in wishlist.")

    db["wishlist"].replace_one({"user_id": user_id}, wishlist)
    logger.info("Wishlist item removed", user_id=user_id, product_id=product_id)
