"""
Kafiza Backend — Roaster Routes
=================================

What:  /api/roasters and /api/roasters/{id} from the resource router factory,
       plus PUT /api/roasters/{id}/subscription-tier.
"""

from fastapi import Depends

from kafiza.database import ConnectionManager, get_connection_manager
from kafiza.routes.methods import record_methods
from kafiza.routes.resources import NOT_FOUND_RESPONSES, build_resource_router, options_response
from kafiza.schemas.common import ApiResponse
from kafiza.schemas.roaster import RoasterCreate, RoasterResponse, RoasterUpdate, SubscriptionTierUpdate
from kafiza.services.roasters import ROASTERS, RoasterRepository, roaster_repository

router = build_resource_router(
    ROASTERS,
    create_schema=RoasterCreate,
    update_schema=RoasterUpdate,
    repository_factory=roaster_repository,
    tag="Roasters",
)

TIER_PATH = "/roasters/{resource_id}/subscription-tier"


@router.put(
    TIER_PATH,
    response_model=ApiResponse[RoasterResponse],
    response_model_exclude_none=True,
    responses=NOT_FOUND_RESPONSES,
    summary="Change a roaster's subscription tier",
)
async def update_subscription_tier(
    resource_id: str,
    body: SubscriptionTierUpdate,
    connections: ConnectionManager = Depends(get_connection_manager),
) -> ApiResponse[RoasterResponse]:
    repository = RoasterRepository(connections)
    roaster = await repository.update_subscription_tier(resource_id, body.subscription_tier)
    return ApiResponse(data=roaster, message="Subscription tier updated successfully")


router.add_api_route(TIER_PATH, options_response, methods=["OPTIONS"], include_in_schema=False)
record_methods(router, TIER_PATH, "PUT", "OPTIONS")
