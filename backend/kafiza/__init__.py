"""
Kafiza Backend — Application Package Initializer
================================================

What: Marks the `kafiza` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (Resource Repository)  │  ← Validation, soft delete, paging
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │    Database (Connection Manager)    │  ← Cached async engine, collections
    └─────────────────────────────────────┘

    Farmers and roasters share every layer except their schemas and their
    ResourceKind descriptor.
"""

__version__ = "1.0.0"
