"""Product catalog and demo seed data."""
import re
from typing import List, Optional

import structlog
from pydantic import BaseModel, Field

from auth import hash_password, oid
from database import create_document
from errors import NotFoundError
from schemas import Product, User, utcnow

logger = structlog.get_logger(__name__)


class ProductUpdateBody(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    specs: Optional[dict] = None


def list_products(db, q: Optional[str] = None, category: Optional[str] = None) -> List[dict]:
    filt = {}
    if q:
        filt["name"] = {"$regex": re.escape(q), "$options": "i"}
    if category:
        filt["category"] = category
    return list(db["product"].find(filt))


def get_product(db, product_id: str) -> dict:
    item = db["product"].find_one({"_id": oid(product_id)})
    if not item:
        raise NotFoundError("Product not found.")
    return item


def create_product(db, body: Product) -> dict:
    pid = create_document("product", body, database=db)
    logger.info("Product created", product_id=pid, name=body.name)
    return db["product"].find_one({"_id": oid(pid)})


def update_product(db, product_id: str, body: ProductUpdateBody) -> dict:
    update = body.model_dump(exclude_none=True)
    update["updated_at"] = utcnow()
    res = db["product"].update_one({"_id": oid(product_id)}, {"$set": update})
    if res.matched_count == 0:
        raise NotFoundError("Product not found.")
    logger.info("Product updated", product_id=product_id, fields=sorted(update))
    return db["product"].find_one({"_id": oid(product_id)})


def delete_product(db, product_id: str) -> None:
    res = db["product"].delete_one({"_id": oid(product_id)})
    if res.deleted_count == 0:
        raise NotFoundError("Product not found.")
    logger.info("Product deleted", product_id=product_id)


# ----------------------- Seed Demo Data -----------------------
DEMO_PRODUCTS = [
    {
        "name": "ThinkPad X1 Carbon",
        "brand": "Lenovo",
        "description": "Business-class ultrabook with a legendary keyboard.",
        "price": 119999,
        "category": "Business",
        "stock": 10,
        "image_url": "https://images.unsplash.com/photo-1517336714731-489689fd1ca8",
        "specs": {"cpu": "i7", "ram": "16GB", "storage": "512GB SSD"},
    },
    {
        "name": "MacBook Air M2",
        "brand": "Apple",
        "description": "Ultra portable with M2 performance.",
        "price": 124999,
        "category": "Ultrabook",
        "stock": 12,
        "image_url": "https://images.unsplash.com/photo-1611186871348-b1ce696e52c9",
        "specs": {"ram": "8GB", "storage": "256GB SSD"},
    },
    {
        "name": "ROG Strix G16",
        "brand": "ASUS",
        "description": "High refresh rate gaming laptop.",
        "price": 149999,
        "category": "Gaming",
        "stock": 6,
        "image_url": "https://images.unsplash.com/photo-1603302576837-37561b2e2302",
        "specs": {"cpu": "i9", "gpu": "RTX 4070", "ram": "16GB"},
    },
    {
        "name": "Inspiron 15",
        "brand": "Dell",
        "description": "Everyday laptop for home and study.",
        "price": 54999,
        "category": "Everyday",
        "stock": 25,
        "image_url": "https://images.unsplash.com/photo-1588872657578-7efd1f1555ed",
        "specs": {"cpu": "Ryzen 5", "ram": "8GB", "storage": "512GB SSD"},
    },
    {
        "name": "Pavilion Aero 13",
        "brand": "HP",
        "description": "Lightweight magnesium chassis under a kilo.",
        "price": 72999,
        "category": "Ultrabook",
        "stock": 15,
        "image_url": "https://images.unsplash.com/photo-1496181133206-80ce9b88a853",
        "specs": {"cpu": "Ryzen 7", "ram": "16GB"},
    },
    {
        "name": "Chromebook Plus",
        "brand": "Acer",
        "description": "Fast, simple and secure.",
        "price": 32999,
        "category": "Everyday",
        "stock": 30,
        "image_url": "https://images.unsplash.com/photo-1525547719571-a2d4ac8945e2",
        "specs": {"ram": "8GB", "storage": "128GB"},
    },
]

DEMO_ADMIN_EMAIL = "admin@shop.com"
DEMO_ADMIN_PASSWORD = "admin123"


def seed_demo_data(db) -> dict:
    if db["product"].count_documents({}) > 0:
        return {"seeded": False, "message": "Products already exist"}
    for p in DEMO_PRODUCTS:
        create_document("product", Product(**p), database=db)
    if db["user"].count_documents({"is_admin": True}) == 0:
        admin = User(name="Admin", email=DEMO_ADMIN_EMAIL, password_hash=hash_password(DEMO_ADMIN_PASSWORD), is_admin=True)
        create_document("user", admin, database=db)
    logger.info("Demo data seeded", products=len(DEMO_PRODUCTS))
    return {"seeded": True, "products": db["product"].count_documents({})}
