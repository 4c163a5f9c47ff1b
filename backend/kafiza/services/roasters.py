"""
Kafiza Backend — Roaster Resource Kind
========================================

What:  The descriptor for roasters plus the roaster-only tier change.
Search: location.city, location.region, business type, subscription tier,
        business name; busiest roasters (total orders) first.
Filter: `tier` lists every active roaster on one subscription tier.
"""

import logging
from typing import Any, Union

from kafiza.database import ConnectionManager
from kafiza.exceptions import ValidationError
from kafiza.models.roaster import Roaster
from kafiza.schemas.roaster import RoasterResponse, RoasterUpdate, SubscriptionTier
from kafiza.services.repository import ResourceKind, ResourceRepository

logger = logging.getLogger(__name__)

TIERS = tuple(tier.value for tier in SubscriptionTier)

ROASTERS = ResourceKind(
    name="roaster",
    collection="roasters",
    model=Roaster,
    response_schema=RoasterResponse,
    sort_fields={
        "createdAt": "created_at",
        "updatedAt": "updated_at",
        "businessName": "business_name",
        "ownerName": "owner_name",
        "businessType": "business_type",
        "subscriptionTier": "subscription_tier",
        "totalOrders": "total_orders",
    },
    search_fields=(
        ("location", "city"),
        ("location", "region"),
        "business_type",
        "subscription_tier",
        "business_name",
    ),
    search_sort=("totalOrders", "desc"),
    category_filters={"tier": ("subscription_tier", TIERS)},
)


class RoasterRepository(ResourceRepository):
    """Roaster repository with the subscription tier shortcut."""

    def __init__(self, connections: ConnectionManager):
        super().__init__(ROASTERS, connections)

    async def update_subscription_tier(
        self, resource_id: Any, tier: Union[SubscriptionTier, str]
    ) -> RoasterResponse:
        """
        Moves an active roaster to another subscription tier.

        Raises:
            ValidationError: Bad id or unknown tier
            NotFoundError: No active roaster has this id
        """
        self._parse_id(resource_id)
        try:
            tier = SubscriptionTier(tier)
        except ValueError:
            raise ValidationError(
                f"Invalid subscription tier. Must be one of: {', '.join(TIERS)}",
                field="subscriptionTier",
            )
        roaster = await self.update(resource_id, RoasterUpdate(subscription_tier=tier))
        logger.info("Roaster %s moved to tier %s", roaster.id, tier.value)
        return roaster


def roaster_repository(connections: ConnectionManager) -> RoasterRepository:
    return RoasterRepository(connections)
