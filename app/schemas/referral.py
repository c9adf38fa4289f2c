"""
app/schemas/referral.py

Purpose: Referral request and response schemas
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class ApplyReferralRequest(BaseModel):
    referral_code: Optional[str] = Field(None, alias="referralCode")
    user_id: Optional[str] = Field(None, alias="userId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"referralCode": "ANNA7K2Q"}
        }


class ReferrerOut(BaseModel):
    name: str
    referral_code: str = Field(..., alias="referralCode")

    class Config:
        populate_by_name = True


class ReferralUsageOut(BaseModel):
    user_id: str = Field(..., alias="userId")
    user_name: Optional[str] = Field(None, alias="userName")
    used_at: Optional[datetime] = Field(None, alias="usedAt")

    class Config:
        populate_by_name = True


class ReferralStatsOut(BaseModel):
    code: str
    usage_count: int = Field(0, alias="usageCount")
    usages: List[ReferralUsageOut] = []

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ReferralStatsOut":
        return cls(
            code=doc["code"],
            usage_count=doc.get("usage_count", 0),
            usages=[
                ReferralUsageOut(
                    user_id=str(usage["user_id"]),
                    user_name=usage.get("user_name"),
                    used_at=usage.get("used_at"),
                )
                for usage in doc.get("usages", [])
            ],
        )
