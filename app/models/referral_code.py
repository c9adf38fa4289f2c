"""
app/models/referral_code.py

Purpose: Referral code document model

- Code owned by exactly one user
- Usage entries, one per redeeming user
"""

from typing import Any, Dict, Optional

from bson import ObjectId

from utils.time_utils import utcnow


def new_referral_code_document(code: str, user_id: ObjectId, user_name: str) -> Dict[str, Any]:
    return {
        "code": code,
        "user_id": user_id,
        "user_name": user_name,
        "usages": [],
        "usage_count": 0,
        "created_at": utcnow(),
    }


def new_usage_entry(user_id: ObjectId, user_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "user_name": user_name,
        "used_at": utcnow(),
    }
