"""
Kafiza Backend — ORM Models
=============================

Importing this package registers every collection with `Base.metadata`,
which Alembic and `ConnectionManager.get_collection()` both rely on.
"""

from kafiza.models.farmer import Farmer
from kafiza.models.roaster import Roaster

__all__ = ["Farmer", "Roaster"]
