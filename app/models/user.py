"""
app/models/user.py

Purpose: User document model

- Identity fields (name, email, phone, PAN card, gender)
- Avatar reference and embedded addresses
- Own referral code and referred-by link
"""

from typing import Any, Dict, Optional

from bson import ObjectId

from utils.constants import ROLE_USER
from utils.time_utils import utcnow

# Wire (camelCase) name -> stored field name
ADDRESS_FIELDS = {
    "addressType": "address_type",
    "country": "country",
    "city": "city",
    "address1": "address1",
    "address2": "address2",
    "zipCode": "zip_code",
}


def new_user_document(
    name: str,
    password_hash: str,
    phone_number: str,
    pan_card: str,
    gender: str,
    avatar: str,
    referral_code: str,
    email: Optional[str] = None,
    referred_by: Optional[ObjectId] = None,
    role: str = ROLE_USER,
) -> Dict[str, Any]:
    """
    Builds a new user document ready for insertion.

    The email key is left out entirely when no email is given so the
    unique sparse index on it ignores the document.
    """
    document = {
        "name": name,
        "password": password_hash,
        "phone_number": phone_number,
        "pan_card": pan_card,
        "gender": gender,
        "avatar": avatar,
        "addresses": [],
        "role": role,
        "referral_code": referral_code,
        "referred_by": referred_by,
        "created_at": utcnow(),
    }
    if email:
        document["email"] = email
    return document


def new_address_document(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Builds an embedded address with its own id.

    Args:
        fields: Stored-name address fields (address_type, city, ...)
    """
    address = {"_id": ObjectId()}
    for stored_name in ADDRESS_FIELDS.values():
        address[stored_name] = fields.get(stored_name)
    return address
