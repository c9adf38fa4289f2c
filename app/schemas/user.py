"""
app/schemas/user.py

Purpose: User request and response schemas

- Request bodies for the JSON account endpoints (camelCase on the wire)
- Response serialization of stored user documents (password never included)
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.models.user import ADDRESS_FIELDS


# ============================================================================
# REQUESTS
# ============================================================================

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {"email": "anna@example.com", "password": "s3cret-pass"}
        }


class UpdateUserInfoRequest(BaseModel):
    """
    Profile changes; the current password must be re-supplied.
    """
    password: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")

    class Config:
        populate_by_name = True


class AddressRequest(BaseModel):
    """
    Address to add, or to merge into the address with the same `_id`.
    """
    id: Optional[str] = Field(None, alias="_id")
    address_type: Optional[str] = Field(None, alias="addressType")
    country: Optional[str] = None
    city: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    zip_code: Optional[Any] = Field(None, alias="zipCode")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "addressType": "home",
                "country": "IN",
                "city": "Pune",
                "address1": "12 MG Road",
                "zipCode": "411001",
            }
        }

    def stored_fields(self) -> Dict[str, Any]:
        """Supplied address fields keyed by their stored names."""
        supplied = self.model_dump(by_alias=True, exclude_unset=True, exclude={"id"})
        return {
            ADDRESS_FIELDS[key]: value
            for key, value in supplied.items()
            if key in ADDRESS_FIELDS
        }


class UpdatePasswordRequest(BaseModel):
    old_password: Optional[str] = Field(None, alias="oldPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")

    class Config:
        populate_by_name = True


# ============================================================================
# RESPONSES
# ============================================================================

class AddressOut(BaseModel):
    id: str = Field(..., alias="_id")
    address_type: Optional[str] = Field(None, alias="addressType")
    country: Optional[str] = None
    city: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    zip_code: Optional[Any] = Field(None, alias="zipCode")

    class Config:
        populate_by_name = True


class PublicUserOut(BaseModel):
    """
    Projection of another user's record visible to non-admin callers.
    """
    id: str = Field(..., alias="_id")
    name: str
    avatar: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "PublicUserOut":
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            avatar=doc.get("avatar"),
            created_at=doc.get("created_at"),
        )


class UserOut(PublicUserOut):
    email: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    pan_card: Optional[str] = Field(None, alias="panCard")
    gender: Optional[str] = None
    addresses: List[AddressOut] = []
    role: Optional[str] = None
    referral_code: Optional[str] = Field(None, alias="referralCode")
    referred_by: Optional[str] = Field(None, alias="referredBy")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserOut":
        referred_by = doc.get("referred_by")
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            avatar=doc.get("avatar"),
            created_at=doc.get("created_at"),
            email=doc.get("email"),
            phone_number=doc.get("phone_number"),
            pan_card=doc.get("pan_card"),
            gender=doc.get("gender"),
            addresses=[
                AddressOut(id=str(address["_id"]), **{k: v for k, v in address.items() if k != "_id"})
                for address in doc.get("addresses", [])
            ],
            role=doc.get("role"),
            referral_code=doc.get("referral_code"),
            referred_by=str(referred_by) if referred_by else None,
        )


def serialize_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Converts a stored user document to its camelCase JSON form.
    """
    return UserOut.from_document(doc).model_dump(by_alias=True, mode="json")


def serialize_public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    return PublicUserOut.from_document(doc).model_dump(by_alias=True, mode="json")
