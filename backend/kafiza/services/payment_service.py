"""
Kafiza Backend — Payment Intent Service
=========================================

What:  Issues provisional payment intents for roaster checkouts.
How:   No payment provider is contacted. The service converts the amount to
       minor units, mints an intent id and client secret, and logs the
       intent so it can be reconciled once a provider is wired in.
Who:   Called by POST /api/payments/create-intent.
"""

import logging
import secrets

from kafiza.schemas.payment import PaymentIntentCreate, PaymentIntentResponse

logger = logging.getLogger(__name__)

INITIAL_STATUS = "requires_payment_method"


class PaymentService:
    """Stateless payment intent issuer."""

    async def create_intent(self, request: PaymentIntentCreate) -> PaymentIntentResponse:
        # 12.345 → 1235; the provider expects integer minor units
        amount_minor = int(round(request.amount * 100))
        intent_id = f"pi_{secrets.token_hex(12)}"
        client_secret = f"{intent_id}_secret_{secrets.token_hex(12)}"

        logger.info(
            "Payment intent %s created: %d %s (customer=%s)",
            intent_id,
            amount_minor,
            request.currency,
            request.customer_id or "-",
        )
        return PaymentIntentResponse(
            payment_intent_id=intent_id,
            client_secret=client_secret,
            amount=amount_minor,
            currency=request.currency,
            status=INITIAL_STATUS,
            customer_id=request.customer_id,
            description=request.description,
            metadata=request.metadata,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
payment_service = PaymentService()
