"""
Kafiza Backend — Farmer SQLAlchemy Model
==========================================

What:  ORM model for the `farmers` collection (coffee farmers in Brazil).
How:   Scalar fields are columns; `location` and `contact` are JSON documents
       and `coffee_types`, `certifications`, `images` are JSON string lists.

Query Patterns:
    - Active listing: WHERE is_active ORDER BY created_at DESC LIMIT :limit OFFSET :skip
    - Search: is_active AND (location.state ILIKE .. OR location.city ILIKE ..
      OR coffee_types ILIKE .. OR certifications ILIKE .. OR farm_name ILIKE ..)
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kafiza.database import Base
from kafiza.models.base import ResourceMixin


class Farmer(ResourceMixin, Base):
    """A coffee farmer offering green coffee to roasters."""

    __tablename__ = "farmers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    farm_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # {"state": str, "city": str, "coordinates": {"latitude": float, "longitude": float} | null}
    location: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    coffee_types: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    certifications: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # {"email": str, "phone": str | null, "whatsapp": str | null}
    contact: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    __table_args__ = (
        Index("idx_farmers_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Farmer(id={self.id}, farm_name='{self.farm_name}', is_active={self.is_active})>"
