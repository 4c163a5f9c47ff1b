"""
Kafiza Backend — Roaster SQLAlchemy Model
===========================================

What:  ORM model for the `roasters` collection (coffee roasters in New Zealand).
How:   Enumerated fields (`business_type`, `subscription_tier`) are short
       strings validated at the API boundary; `location` and `contact` are
       JSON documents.
"""

from typing import Any, Dict

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kafiza.database import Base
from kafiza.models.base import ResourceMixin


class Roaster(ResourceMixin, Base):
    """A roastery or cafe buying coffee from farmers."""

    __tablename__ = "roasters"

    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # {"city": str, "region": str, "address": str}
    location: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    # {"email": str, "phone": str, "website": str | null}
    contact: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    # roastery | cafe | both
    business_type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # basic | premium | enterprise
    subscription_tier: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    __table_args__ = (
        Index("idx_roasters_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Roaster(id={self.id}, business_name='{self.business_name}', "
            f"tier='{self.subscription_tier}')>"
        )
