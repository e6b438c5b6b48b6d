"""Per-user shipping address book. Every lookup filters on (address id, owner)."""
from typing import List, Optional

import structlog
from pydantic import BaseModel

from auth import oid
from database import create_document, get_documents
from errors import NotFoundError
from schemas import Address, utcnow

logger = structlog.get_logger(__name__)


class AddressBody(BaseModel):
    full_name: str
    address_line1: str
    address_line2: str = ""
    city: str
    state: str
    zip_code: str
    phone_number: str
    is_default: bool = False


class AddressUpdateBody(BaseModel):
    full_name: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone_number: Optional[str] = None
    is_default: Optional[bool] = None


def list_addresses(db, user_id: str) -> List[dict]:
    return get_documents("address", {"user_id": user_id}, database=db)


def add_address(db, user_id: str, body: AddressBody) -> dict:
    address = Address(user_id=user_id, **body.model_dump())
    address_id = create_document("address", address, database=db)
    logger.info("Address added", user_id=user_id, address_id=address_id)
    return db["address"].find_one({"_id": oid(address_id)})


def update_address(db, user_id: str, address_id: str, body: AddressUpdateBody) -> dict:
    update = body.model_dump(exclude_none=True)
    update["updated_at"] = utcnow()
    res = db["address"].update_one({"_id": oid(address_id), "user_id": user_id}, {"$set": update})
    if res.matched_count == 0:
        raise NotFoundError("Address not found or not authorized")
    return db["address"].find_one({"_id": oid(address_id)})


def delete_address(db, user_id: str, address_id: str) -> None:
    res = db["address"].delete_one({"_id": oid(address_id), "user_id": user_id})
    if res.deleted_count == 0:
        raise NotFoundError("Address not found or not authorized")
    logger.info("Address deleted", user_id=user_id, address_id=address_id)
