import os
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, StrictInt

import addresses
import carts
import catalog
import orders
import users
import wishlists
from addresses import AddressBody, AddressUpdateBody
from auth import Identity, get_current_user, require_admin
from catalog import ProductUpdateBody
from database import db, ensure_indexes, get_db, serialize_doc
from errors import register_exception_handlers
from logging_config import add_context, clear_context, configure_logging
from orders import CheckoutBody, StatusBody
from payments import get_gateway
from schemas import CartItem, Product, WishlistItem
from users import LoginBody, RegisterBody

configure_logging()

app = FastAPI(title="Laptop Store API", version="1.0.0")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    clear_context()
    add_context(method=request.method, path=request.url.path)
    return await call_next(request)


@app.on_event("startup")
def on_startup():
    if db is not None:
        ensure_indexes(db)


# ----------------------- Models -----------------------
class CartQuantityBody(BaseModel):
    quantity: StrictInt


class WishlistAddBody(BaseModel):
    product_id: str
    product_name: str
    product_image: Optional[str] = None
    product_price: float = Field(..., ge=0)
    product_category: Optional[str] = None


class PaymentOrderBody(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in minor currency units")
    currency: str = "INR"
    receipt: Optional[str] = None


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "Laptop Store API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        if db is not None:
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
            response["collections"] = db.list_collection_names()[:10]
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ----------------------- Auth -----------------------
@app.post("/register")
def register(body: RegisterBody, db=Depends(get_db)):
    users.register(db, body)
    return {"message": "User registered successfully"}


@app.post("/login")
def login(body: LoginBody, db=Depends(get_db)):
    return users.login(db, body)


@app.post("/admin/login")
def admin_login(body: LoginBody, db=Depends(get_db)):
    return users.admin_login(db, body)


@app.get("/profile")
def profile(user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return serialize_doc(users.get_profile(db, user))


# ----------------------- Addresses -----------------------
@app.get("/addresses")
def list_addresses(user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return serialize_doc(addresses.list_addresses(db, user.id))


@app.post("/addresses", status_code=201)
def add_address(body: AddressBody, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return serialize_doc(addresses.add_address(db, user.id, body))


@app.put("/addresses/{address_id}")
def update_address(address_id: str, body: AddressUpdateBody, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return serialize_doc(addresses.update_address(db, user.id, address_id, body))


@app.delete("/addresses/{address_id}")
def delete_address(address_id: str, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    addresses.delete_address(db, user.id, address_id)
    return {"message": "Address deleted successfully"}


# ----------------------- Products -----------------------
@app.get("/products")
def list_products(q: Optional[str] = None, category: Optional[str] = None, db=Depends(get_db)):
    return {"products": serialize_doc(catalog.list_products(db, q, category))}


@app.get("/products/{product_id}")
def get_product(product_id: str, db=Depends(get_db)):
    return serialize_doc(catalog.get_product(db, product_id))


@app.get("/admin/products")
def admin_list_products(admin: Identity = Depends(require_admin), db=Depends(get_db)):
    return {"products": serialize_doc(catalog.list_products(db))}


@app.post("/admin/products", status_code=201)
def create_product(body: Product, admin: Identity = Depends(require_admin), db=Depends(get_db)):
    product = catalog.create_product(db, body)
    return {"message": "Product added successfully", "product": serialize_doc(product)}


@app.put("/admin/products/{product_id}")
def update_product(product_id: str, body: ProductUpdateBody, admin: Identity = Depends(require_admin), db=Depends(get_db)):
    product = catalog.update_product(db, product_id, body)
    return {"message": "Product updated successfully", "product": serialize_doc(product)}


@app.delete("/admin/products/{product_id}")
def delete_product(product_id: str, admin: Identity = Depends(require_admin), db=Depends(get_db)):
    catalog.delete_product(db, product_id)
    return {"message": "Product deleted successfully."}


# ----------------------- Cart -----------------------
@app.get("/cart")
def get_cart(user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return carts.get_cart(db, user.id)


@app.post("/cart/add")
def add_to_cart(body: CartItem, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    items = carts.add_item(db, user.id, body)
    return {"message": "Product added to cart successfully", "cart": items}


@app.put("/cart/update/{product_id}")
def update_cart_item(product_id: str, body: CartQuantityBody, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    items = carts.update_item_quantity(db, user.id, product_id, body.quantity)
    return {"message": "Cart item quantity updated successfully", "cart": items}


@app.delete("/cart/remove/{product_id}")
def remove_cart_item(product_id: str, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    items = carts.remove_item(db, user.id, product_id)
    return {"message": "Product removed from cart successfully", "cart": items}


# ----------------------- Wishlist -----------------------
wishlist_router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


@wishlist_router.get("")
def get_wishlist(user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return serialize_doc(wishlists.get_wishlist(db, user.id))


@wishlist_router.post("/add")
def add_to_wishlist(body: WishlistAddBody, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    item = wishlists.add_item(db, user.id, WishlistItem(**body.model_dump()))
    return {"message": "Product added to wishlist successfully.", "item": serialize_doc(item)}


@wishlist_router.delete("/remove/{product_id}")
def remove_from_wishlist(product_id: str, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    wishlists.remove_item(db, user.id, product_id)
    return {"message": "Product removed from wishlist successfully."}


app.include_router(wishlist_router)


# ----------------------- Payments -----------------------
@app.post("/create-razorpay-order")
def create_payment_order(body: PaymentOrderBody, user: Identity = Depends(get_current_user)):
    order = get_gateway().create_order(body.amount, body.currency, body.receipt)
    return {"order_id": order.id, "currency": order.currency, "amount": order.amount}


# ----------------------- Orders -----------------------
@app.post("/orders", status_code=201)
def place_order(body: CheckoutBody, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    order = orders.place_order(db, user, body)
    return {"message": "Order placed successfully!", "order_id": order["order_id"], "order": serialize_doc(order)}


@app.get("/orders/user")
def list_my_orders(user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return serialize_doc(orders.list_user_orders(db, user.id))


@app.get("/orders/{order_id}")
def get_my_order(order_id: str, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return {"order": serialize_doc(orders.get_user_order(db, user.id, order_id))}


# ----------------------- Admin -----------------------
@app.get("/admin/orders")
def admin_list_orders(
    search: Optional[str] = None,
    status: Optional[str] = None,
    payment_method: Optional[str] = Query(None, alias="paymentMethod"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    amount_min: Optional[float] = Query(None, alias="amountMin"),
    amount_max: Optional[float] = Query(None, alias="amountMax"),
    user: Identity = Depends(get_current_user),
    db=Depends(get_db),
):
    result = orders.list_orders(
        db,
        user,
        search=search,
        status=status,
        payment_method=payment_method,
        date_from=date_from,
        date_to=date_to,
        amount_min=amount_min,
        amount_max=amount_max,
    )
    return {"orders": serialize_doc(result)}


@app.put("/admin/orders/{order_id}/status")
def admin_update_order_status(order_id: str, body: StatusBody, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    order = orders.update_status(db, user, order_id, body.status)
    return {"message": "Order status updated successfully!", "order": serialize_doc(order)}


@app.get("/admin/users")
def admin_list_users(user: Identity = Depends(get_current_user), db=Depends(get_db)):
    return {"users": serialize_doc(users.list_customers(db, user))}


@app.delete("/admin/users/{user_id}")
def admin_delete_user(user_id: str, user: Identity = Depends(get_current_user), db=Depends(get_db)):
    users.delete_user(db, user, user_id)
    return {"message": "User and associated data deleted successfully!"}


@app.post("/seed")
def seed(db=Depends(get_db)):
    return catalog.seed_demo_data(db)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
