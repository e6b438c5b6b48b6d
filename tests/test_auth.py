from datetime import datetime, timedelta, timezone

import jwt
import pytest
from bson import ObjectId

import auth
from auth import ADMIN, Identity, authorize, create_token, decode_token, token_for
from errors import AuthenticationError, AuthorizationError


class TestTokens:
    def test_token_carries_identity_claims(self, customer):
        payload = decode_token(token_for(customer))

        assert payload["id"] == str(customer["_id"])
        assert payload["name"] == "Asha Rao"
        assert payload["email"] == "asha@mail.com"
        assert payload["is_admin"] is False

    def test_token_expires_after_one_hour(self, customer):
        payload = decode_token(token_for(customer))

        issued_for = payload["exp"] - datetime.now(timezone.utc).timestamp()
        assert 59 * 60 < issued_for <= 60 * 60

    def test_expired_token(self):
        token = jwt.encode(
            {"id": "abc", "exp": datetime.now(timezone.utc) - timedelta(seconds=5)},
            auth.JWT_SECRET,
            algorithm=auth.JWT_ALGO,
        )
        with pytest.raises(AuthenticationError, match="expired"):
            decode_token(token)

    def test_wrong_signature(self):
        token = jwt.encode({"id": "abc"}, "not-the-secret", algorithm="HS256")
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_garbage(self):
        with pytest.raises(AuthenticationError):
            decode_token("not.a.token")

    def test_create_token_keeps_payload(self):
        payload = decode_token(create_token({"id": "u1", "is_admin": True}))
        assert payload["is_admin"] is True


class TestAuthorize:
    def test_admin_allowed(self, db, admin_identity, admin):
        assert authorize(db, admin_identity, ADMIN)["_id"] == admin["_id"]

    def test_customer_denied(self, db, identity):
        with pytest.raises(AuthorizationError):
            authorize(db, identity, ADMIN)

    def test_flag_is_read_from_store(self, db, admin, admin_identity):
        db["user"].update_one({"_id": admin["_id"]}, {"$set": {"is_admin": False}})

        with pytest.raises(AuthorizationError):
            authorize(db, admin_identity, ADMIN)

    def test_deleted_user_denied(self, db):
        ghost = Identity(id=str(ObjectId()), is_admin=True)
        with pytest.raises(AuthorizationError):
            authorize(db, ghost, ADMIN)

    def test_unknown_capability(self, db, admin_identity):
        with pytest.raises(ValueError):
            authorize(db, admin_identity, "superuser")

    def test_non_objectid_identity_denied(self, db):
        with pytest.raises(AuthorizationError):
            authorize(db, Identity(id="not-an-oid", is_admin=True), ADMIN)


def test_token_with_non_objectid_id_is_401(client):
    token = create_token({"id": "not-an-oid", "is_admin": True})

    response = client.get("/admin/orders", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token payload"
