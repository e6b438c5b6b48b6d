"""
Token authentication and the admin capability guard.

Routes trust the identity claims decoded from the token. Admin routes go one
step further and re-read the user record, so a revoked admin flag takes
effect before the token expires.
"""
import hashlib
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from database import get_db
from errors import AuthenticationError, AuthorizationError, ValidationError

JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
JWT_ALGO = "HS256"
TOKEN_TTL_MINUTES = int(os.getenv("TOKEN_TTL_MINUTES", 60))

ADMIN = "admin"

security = HTTPBearer(auto_error=False)


class Identity(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def oid(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise ValidationError("Invalid id format")


def create_token(payload: dict) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=TOKEN_TTL_MINUTES)
    to_encode = {**payload, "exp": exp}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGO)


def token_for(user: dict) -> str:
    return create_token({
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "is_admin": bool(user.get("is_admin", False)),
    })


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGO])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Token is not valid")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_auth_token: Optional[str] = Header(default=None),
) -> Identity:
    token = credentials.credentials if credentials else x_auth_token
    if not token:
        raise AuthenticationError("No token, authorization denied")
    payload = decode_token(token)
    if not ObjectId.is_valid(payload.get("id") or ""):
        raise AuthenticationError("Invalid token payload")
    return Identity(
        id=payload["id"],
        name=payload.get("name"),
        email=payload.get("email"),
        is_admin=bool(payload.get("is_admin", False)),
    )


def authorize(db, identity: Identity, capability: str) -> dict:
    """Check `capability` against the stored user record and return that record.

    Token claims are not consulted: the flag is read from the user collection.
    """
    if capability != ADMIN:
        raise ValueError(f"Unknown capability: {capability}")
    if not ObjectId.is_valid(identity.id):
        raise AuthorizationError("Access denied. Admins only.")
    user = db["user"].find_one({"_id": ObjectId(identity.id)})
    if not user or not user.get("is_admin"):
        raise AuthorizationError("Access denied. Admins only.")
    return user


def require_admin(identity: Identity = Depends(get_current_user), db=Depends(get_db)) -> Identity:
    authorize(db, identity, ADMIN)
    return identity
