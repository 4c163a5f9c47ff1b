"""
Kafiza Backend — Farmer Resource Kind
=======================================

What:  The descriptor that turns the generic repository into the farmers API.
Search: location.state, location.city, coffee types, certifications, farm name;
        best-rated first unless the client picks a sort.
"""

from kafiza.database import ConnectionManager
from kafiza.models.farmer import Farmer
from kafiza.schemas.farmer import FarmerResponse
from kafiza.services.repository import ResourceKind, ResourceRepository

FARMERS = ResourceKind(
    name="farmer",
    collection="farmers",
    model=Farmer,
    response_schema=FarmerResponse,
    sort_fields={
        "createdAt": "created_at",
        "updatedAt": "updated_at",
        "name": "name",
        "farmName": "farm_name",
        "rating": "rating",
        "totalOrders": "total_orders",
    },
    search_fields=(
        ("location", "state"),
        ("location", "city"),
        "coffee_types",
        "certifications",
        "farm_name",
    ),
    search_sort=("rating", "desc"),
)


def farmer_repository(connections: ConnectionManager) -> ResourceRepository:
    return ResourceRepository(FARMERS, connections)
