"""
Kafiza Backend — Roaster Schemas
==================================

What:  Request and response models for /api/roasters.
How:   Business type and subscription tier are closed enums; anything else is
       rejected with a 400 before the store is touched.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from kafiza.schemas.common import CamelModel, normalize_email


class BusinessType(str, Enum):
    ROASTERY = "roastery"
    CAFE = "cafe"
    BOTH = "both"


class SubscriptionTier(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class RoasterLocation(CamelModel):
    city: str = Field(min_length=1, max_length=100)
    region: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1, max_length=300)


class RoasterLocationUpdate(CamelModel):
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    region: Optional[str] = Field(default=None, min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, min_length=1, max_length=300)


class RoasterContact(CamelModel):
    email: str
    phone: str = Field(min_length=1, max_length=40)
    website: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class RoasterContactUpdate(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, min_length=1, max_length=40)
    website: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v)


class RoasterCreate(CamelModel):
    """
    Body of POST /api/roasters.

    Example:
        {
            "businessName": "Torra Clara",
            "ownerName": "Ana Costa",
            "location": {"city": "São Paulo", "region": "SP", "address": "Rua Augusta 100"},
            "contact": {"email": "ana@torraclara.com", "phone": "+55 11 99999-0000"},
            "businessType": "roastery",
            "subscriptionTier": "premium"
        }
    """
    business_name: str = Field(min_length=1, max_length=200)
    owner_name: str = Field(min_length=1, max_length=200)
    location: RoasterLocation
    contact: RoasterContact
    business_type: BusinessType
    description: str = Field(min_length=1, max_length=5000)
    subscription_tier: SubscriptionTier


class RoasterUpdate(CamelModel):
    """Body of PUT /api/roasters/{id}. Null and missing fields are left untouched."""
    business_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    owner_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[RoasterLocationUpdate] = None
    contact: Optional[RoasterContactUpdate] = None
    business_type: Optional[BusinessType] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    subscription_tier: Optional[SubscriptionTier] = None


class SubscriptionTierUpdate(CamelModel):
    """Body of PUT /api/roasters/{id}/subscription-tier."""
    subscription_tier: SubscriptionTier


class RoasterResponse(CamelModel):
    """Full representation of a stored roaster."""
    id: uuid.UUID
    business_name: str
    owner_name: str
    location: RoasterLocation
    contact: RoasterContact
    business_type: BusinessType
    description: str
    subscription_tier: SubscriptionTier
    total_orders: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
