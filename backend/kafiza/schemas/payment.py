"""
Kafiza Backend — Payment Schemas
==================================

What:  Request and response models for POST /api/payments/create-intent.
How:   Amounts arrive in major units (12.50) and leave in minor units (1250).
"""

from typing import Dict, Optional

from pydantic import Field, field_validator

from kafiza.schemas.common import CamelModel


class PaymentIntentCreate(CamelModel):
    amount: float = Field(gt=0, le=1_000_000, description="Amount in major currency units")
    currency: str = Field(pattern=r"^[A-Za-z]{3}$", description="ISO 4217 code")
    customer_id: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=500)
    metadata: Optional[Dict[str, str]] = None

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v: str) -> str:
        return v.lower()


class PaymentIntentResponse(CamelModel):
    """
    A provisional payment intent.

    `client_secret` is what a browser checkout would hand to the payment
    provider; no provider is contacted yet.
    """
    payment_intent_id: str
    client_secret: str
    amount: int = Field(description="Amount in minor currency units")
    currency: str
    status: str
    customer_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None
