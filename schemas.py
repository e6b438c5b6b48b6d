"""
Database Schemas for the Laptop Store

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name. Line items and the
customer/address value objects are embedded documents, copied at the time
of the action rather than referenced.
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentMethod = Literal["credit-card", "upi", "net-banking", "cash-on-delivery", "razorpay"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr
    password_hash: str = Field(..., description="Hashed password")
    is_admin: bool = False


class Product(BaseModel):
    name: str
    brand: Optional[str] = None
    description: str
    price: float = Field(..., ge=0)
    category: str
    stock: int = Field(..., ge=0)
    image_url: str
    specs: dict = {}


class CartItem(BaseModel):
    product_id: str
    product_name: str
    product_price: float = Field(..., ge=0)
    product_image: str
    product_specs: Optional[str] = None
    quantity: int = Field(1, ge=1)


class Cart(BaseModel):
    user_id: str
    items: List[CartItem] = []


class WishlistItem(BaseModel):
    product_id: str
    product_name: str
    product_image: Optional[str] = None
    product_price: float = Field(..., ge=0)
    product_category: Optional[str] = None
    added_at: datetime = Field(default_factory=utcnow)


class Wishlist(BaseModel):
    user_id: str
    items: List[WishlistItem] = []


class CustomerInfo(BaseModel):
    full_name: str
    email: EmailStr
    phone: str


class ShippingAddress(BaseModel):
    full_name: str
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    zip_code: str
    phone_number: str


class OrderItem(BaseModel):
    product_id: str
    product_name: str
    product_price: float = Field(..., ge=0)
    product_image: Optional[str] = None
    quantity: int = Field(..., ge=1)


class Order(BaseModel):
    user_id: str
    order_id: str
    order_date: datetime = Field(default_factory=utcnow)
    customer_info: CustomerInfo
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    items: List[OrderItem] = Field(..., min_length=1)
    subtotal: float
    shipping: float
    grand_total: float
    razorpay_payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    status: OrderStatus = "pending"


class Address(BaseModel):
    user_id: str
    full_name: str
    address_line1: str
    address_line2: str = ""
    city: str
    state: str
    zip_code: str
    phone_number: str
    is_default: bool = False

