"""
Kafiza Backend — Payment Routes
=================================

What:  POST /api/payments/create-intent, the entry point of roaster checkout.
How:   The body is validated by PaymentIntentCreate (amount > 0, 3-letter
       currency); the service returns a provisional intent.
"""

from fastapi import APIRouter, status

from kafiza.routes.methods import record_methods
from kafiza.routes.resources import ERROR_RESPONSES, options_response
from kafiza.schemas.common import ApiResponse
from kafiza.schemas.payment import PaymentIntentCreate, PaymentIntentResponse
from kafiza.services.payment_service import payment_service

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post(
    "/create-intent",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[PaymentIntentResponse],
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Create a payment intent",
)
async def create_payment_intent(body: PaymentIntentCreate) -> ApiResponse[PaymentIntentResponse]:
    intent = await payment_service.create_intent(body)
    return ApiResponse(data=intent, message="Payment intent created")


router.add_api_route("/create-intent", options_response, methods=["OPTIONS"], include_in_schema=False)
record_methods(router, "/create-intent", "POST", "OPTIONS")
