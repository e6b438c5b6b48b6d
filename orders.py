"""
Orders and checkout.

An order is a snapshot of a completed checkout: customer details, shipping
address, line items and totals are stored exactly as the client sent them.
Prices are not re-checked against the catalog and stock is not decremented.
After the insert succeeds the user's cart is emptied; the two writes are not
atomic, so a crash in between leaves the cart populated.

Only `status` changes after creation:

    pending -> processing -> shipped -> delivered
    any non-terminal state -> cancelled
"""
import re
from datetime import date, datetime, time
from typing import List, Optional
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field, model_validator
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

import carts
from auth import ADMIN, Identity, authorize
from errors import ConflictError, NotFoundError, ValidationError
from schemas import (
    ORDER_STATUSES,
    CustomerInfo,
    Order,
    OrderItem,
    PaymentMethod,
    ShippingAddress,
    utcnow,
)

logger = structlog.get_logger(__name__)

ORDER_ID_PREFIX = "ORD"

FULFILMENT_FLOW = ("pending", "processing", "shipped", "delivered")
TERMINAL_STATUSES = ("delivered", "cancelled")


class CheckoutBody(BaseModel):
    customer_info: CustomerInfo
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    items: List[OrderItem] = Field(..., min_length=1)
    subtotal: float
    shipping: float
    grand_total: float = Field(..., gt=0)
    razorpay_payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None

    @model_validator(mode="after")
    def razorpay_ids_present(self):
        if self.payment_method == "razorpay" and not (self.razorpay_payment_id and self.razorpay_order_id):
            raise ValueError("razorpay_payment_id and razorpay_order_id are required for razorpay payments")
        return self


class StatusBody(BaseModel):
    status: str


def generate_order_id(now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    millis = int(now.timestamp() * 1000)
    return f"{ORDER_ID_PREFIX}-{millis}-{uuid4().hex[:12].upper()}"


def can_transition(current: str, target: str) -> bool:
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if target == "cancelled":
        return True
    if current not in FULFILMENT_FLOW or target not in FULFILMENT_FLOW:
        return False
    return FULFILMENT_FLOW.index(target) > FULFILMENT_FLOW.index(current)


def place_order(db, identity: Identity, body: CheckoutBody) -> dict:
    if not body.items:
        raise ValidationError("Missing required order details.")

    order = Order(
        user_id=identity.id,
        order_id=generate_order_id(),
        **body.model_dump(),
    )
    doc = order.model_dump()
    now = utcnow()
    doc["created_at"] = now
    doc["updated_at"] = now

    try:
        db["order"].insert_one(doc)
    except DuplicateKeyError:
        logger.warning("Order id collision", order_id=order.order_id, user_id=identity.id)
        raise ConflictError("Order with this ID already exists. Please try again.")

    carts.clear_cart(db, identity.id)
    logger.info(
        "Order placed",
        order_id=order.order_id,
        user_id=identity.id,
        payment_method=order.payment_method,
        grand_total=order.grand_total,
    )
    return doc


def list_user_orders(db, user_id: str) -> List[dict]:
    return list(db["order"].find({"user_id": user_id}).sort("order_date", DESCENDING))


def get_user_order(db, user_id: str, order_id: str) -> dict:
    order = db["order"].find_one({"order_id": order_id, "user_id": user_id})
    if not order:
        raise NotFoundError("Order not found or you do not have permission to view it.")
    return order


def build_order_query(
    search: Optional[str] = None,
    status: Optional[str] = None,
    payment_method: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    amount_min: Optional[float] = None,
    amount_max: Optional[float] = None,
) -> dict:
    query: dict = {}

    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [
            {"order_id": pattern},
            {"customer_info.full_name": pattern},
            {"customer_info.email": pattern},
        ]

    if status:
        query["status"] = status

    if payment_method:
        query["payment_method"] = payment_method

    # Stored datetimes come back as naive UTC, so the bounds are naive too.
    if date_from or date_to:
        query["order_date"] = {}
        if date_from:
            query["order_date"]["$gte"] = datetime.combine(date_from, time.min)
        if date_to:
            query["order_date"]["$lte"] = datetime.combine(date_to, time.max)

    if amount_min is not None or amount_max is not None:
        query["grand_total"] = {}
        if amount_min is not None:
            query["grand_total"]["$gte"] = amount_min
        if amount_max is not None:
            query["grand_total"]["$lte"] = amount_max

    return query


def list_orders(db, identity: Identity, **filters) -> List[dict]:
    authorize(db, identity, ADMIN)
    query = build_order_query(**filters)
    return list(db["order"].find(query).sort("order_date", DESCENDING))


def update_status(db, identity: Identity, order_id: str, status: str) -> dict:
    """Move an order to `status`. Only admins may change status."""
    authorize(db, identity, ADMIN)
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid order status provided.")

    order = db["order"].find_one({"order_id": order_id})
    if not order:
        raise NotFoundError("Order not found.")

    current = order.get("status", "pending")
    if not can_transition(current, status):
        raise ValidationError(f"Cannot change order status from {current} to {status}.")

    if current != status:
        now = utcnow()
        res = db["order"].update_one(
            {"order_id": order_id, "status": current},
            {"$set": {"status": status, "updated_at": now}},
        )
        if res.matched_count == 0:
            logger.warning("Order status changed concurrently", order_id=order_id, expected_status=current)
            raise ConflictError("Order status was changed by someone else. Reload and try again.")
        order["status"] = status
        order["updated_at"] = now
        logger.info("Order status changed", order_id=order_id, from_status=current, to_status=status)
    return order
