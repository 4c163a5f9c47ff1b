"""
Kafiza Backend — Farmer Routes
================================

What:  /api/farmers and /api/farmers/{id}, built by the resource router factory.
"""

from kafiza.routes.resources import build_resource_router
from kafiza.schemas.farmer import FarmerCreate, FarmerUpdate
from kafiza.services.farmers import FARMERS, farmer_repository

router = build_resource_router(
    FARMERS,
    create_schema=FarmerCreate,
    update_schema=FarmerUpdate,
    repository_factory=farmer_repository,
    tag="Farmers",
)
