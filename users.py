"""
Identity store: registration, login and admin user management.

Deleting a user also deletes everything they own: orders, cart, wishlist and
addresses. The deletes run one after another and are not transactional.
"""
from typing import List

import structlog
from pydantic import BaseModel, EmailStr
from pymongo.errors import DuplicateKeyError

from auth import ADMIN, Identity, authorize, hash_password, oid, token_for
from database import create_document
from errors import AuthorizationError, NotFoundError, ValidationError
from schemas import User

logger = structlog.get_logger(__name__)

PUBLIC_FIELDS = {"password_hash": 0}


class RegisterBody(BaseModel):
    name: str
    email: EmailStr
    password: str


class LoginBody(BaseModel):
    email: EmailStr
    password: str


def public_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "is_admin": bool(user.get("is_admin", False)),
    }


def register(db, body: RegisterBody) -> str:
    if db["user"].find_one({"email": body.email}):
        raise ValidationError("User already exists")
    user = User(name=body.name, email=body.email, password_hash=hash_password(body.password), is_admin=False)
    try:
        user_id = create_document("user", user, database=db)
    except DuplicateKeyError:
        raise ValidationError("User already exists")
    logger.info("User registered", user_id=user_id)
    return user_id


def login(db, body: LoginBody) -> dict:
    user = db["user"].find_one({"email": body.email})
    if not user or user.get("password_hash") != hash_password(body.password):
        raise ValidationError("Invalid email or password")
    return {"token": token_for(user), "user": public_user(user)}


def admin_login(db, body: LoginBody) -> dict:
    result = login(db, body)
    if not result["user"]["is_admin"]:
        logger.warning("Admin login refused", user_id=result["user"]["id"])
        raise AuthorizationError("Access denied. Not an administrator.")
    return result


def get_profile(db, identity: Identity) -> dict:
    user = db["user"].find_one({"_id": oid(identity.id)}, PUBLIC_FIELDS)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_customers(db, identity: Identity) -> List[dict]:
    authorize(db, identity, ADMIN)
    return list(db["user"].find({"is_admin": False}, PUBLIC_FIELDS))


def delete_user(db, identity: Identity, user_id: str) -> None:
    admin = authorize(db, identity, ADMIN)

    if user_id == str(admin["_id"]):
        raise ValidationError("Admins cannot delete their own account from this panel.")

    target = db["user"].find_one({"_id": oid(user_id)})
    if not target:
        raise NotFoundError("User not found.")
    if target.get("is_admin"):
        raise AuthorizationError("Cannot delete another administrator account from this panel.")

    db["user"].delete_one({"_id": target["_id"]})
    orders = db["order"].delete_many({"user_id": user_id}).deleted_count
    db["cart"].delete_one({"user_id": user_id})
    db["wishlist"].delete_one({"user_id": user_id})
    addresses = db["address"].delete_many({"user_id": user_id}).deleted_count
    logger.info(
        "User deleted",
        user_id=user_id,
        deleted_by=identity.id,
        orders=orders,
        addresses=addresses,
    )
