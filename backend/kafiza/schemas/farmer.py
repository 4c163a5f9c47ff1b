"""
Kafiza Backend — Farmer Schemas
=================================

What:  Request and response models for /api/farmers.
How:   `FarmerCreate` requires the identity and contact fields; `FarmerUpdate`
       makes every field optional so only the fields a client sends are
       applied. Nested update models are optional too, which lets a client
       change `contact.phone` without resending the email.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from kafiza.schemas.common import CamelModel, clean_tags, normalize_email


class Coordinates(CamelModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class FarmerLocation(CamelModel):
    state: str = Field(min_length=1, max_length=100)
    city: str = Field(min_length=1, max_length=100)
    coordinates: Optional[Coordinates] = None


class FarmerLocationUpdate(CamelModel):
    state: Optional[str] = Field(default=None, min_length=1, max_length=100)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    coordinates: Optional[Coordinates] = None


class FarmerContact(CamelModel):
    email: str
    phone: Optional[str] = None
    whatsapp: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class FarmerContactUpdate(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v)


class FarmerCreate(CamelModel):
    """
    Body of POST /api/farmers.

    Example:
        {
            "name": "João Silva",
            "farmName": "Fazenda Boa Vista",
            "location": {"state": "Minas Gerais", "city": "Carmo de Minas"},
            "coffeeTypes": ["Arabica", "Bourbon"],
            "contact": {"email": "joao@boavista.com.br"},
            "description": "Family farm at 1,100m"
        }
    """
    name: str = Field(min_length=1, max_length=200)
    farm_name: str = Field(min_length=1, max_length=200)
    location: FarmerLocation
    coffee_types: List[str] = Field(min_length=1)
    certifications: List[str] = Field(default_factory=list)
    contact: FarmerContact
    description: str = Field(min_length=1, max_length=5000)
    images: List[str] = Field(default_factory=list)
    rating: Optional[float] = Field(default=None, ge=0, le=5)

    @field_validator("coffee_types")
    @classmethod
    def validate_coffee_types(cls, v: List[str]) -> List[str]:
        cleaned = clean_tags(v)
        if not cleaned:
            raise ValueError("Coffee types must be a non-empty array")
        return cleaned

    @field_validator("certifications")
    @classmethod
    def validate_certifications(cls, v: List[str]) -> List[str]:
        return clean_tags(v)


class FarmerUpdate(CamelModel):
    """Body of PUT /api/farmers/{id}. Null and missing fields are left untouched."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    farm_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[FarmerLocationUpdate] = None
    coffee_types: Optional[List[str]] = Field(default=None, min_length=1)
    certifications: Optional[List[str]] = None
    contact: Optional[FarmerContactUpdate] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    images: Optional[List[str]] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)

    @field_validator("coffee_types")
    @classmethod
    def validate_coffee_types(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        cleaned = clean_tags(v)
        if cleaned is not None and not cleaned:
            raise ValueError("Coffee types must be a non-empty array")
        return cleaned

    @field_validator("certifications")
    @classmethod
    def validate_certifications(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return clean_tags(v)


class FarmerResponse(CamelModel):
    """Full representation of a stored farmer."""
    id: uuid.UUID
    name: str
    farm_name: str
    location: FarmerLocation
    coffee_types: List[str]
    certifications: List[str]
    contact: FarmerContact
    description: str
    images: List[str]
    rating: Optional[float] = None
    total_orders: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
