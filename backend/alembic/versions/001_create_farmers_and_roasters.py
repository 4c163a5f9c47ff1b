"""Create farmers and roasters collections

Revision ID: 001
Revises: None
Create Date: 2026-10-16 00:00:00.000000+00:00

What:  Creates the `farmers` and `roasters` tables.
How:   Nested documents (location, contact) and string lists are JSON columns.
       Rows are never deleted by the API; `is_active` marks soft deletes.

Rollback: downgrade() drops both tables (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _resource_columns():
    """Identity, timestamps, soft-delete flag and order counter shared by both tables."""
    return [
        sa.Column("id", sa.Uuid(), nullable=False, comment="Unique identifier, assigned at creation"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="When the record was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Last mutation: create, update or soft delete (UTC)",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("total_orders", sa.Integer(), nullable=False, server_default=sa.text("0")),
    ]


def upgrade() -> None:
    op.create_table(
        "farmers",
        *_resource_columns(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("farm_name", sa.String(200), nullable=False),
        # {"state", "city", "coordinates": {"latitude", "longitude"} | null}
        sa.Column("location", sa.JSON(), nullable=False),
        sa.Column("coffee_types", sa.JSON(), nullable=False),
        sa.Column("certifications", sa.JSON(), nullable=False),
        # {"email", "phone", "whatsapp"}
        sa.Column("contact", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=True, comment="Average rating, 0 to 5"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_farmers_is_active", "farmers", ["is_active"])
    op.create_index("idx_farmers_created_at", "farmers", [sa.text("created_at DESC")])

    op.create_table(
        "roasters",
        *_resource_columns(),
        sa.Column("business_name", sa.String(200), nullable=False),
        sa.Column("owner_name", sa.String(200), nullable=False),
        # {"city", "region", "address"}
        sa.Column("location", sa.JSON(), nullable=False),
        # {"email", "phone", "website"}
        sa.Column("contact", sa.JSON(), nullable=False),
        sa.Column("business_type", sa.String(20), nullable=False, comment="roastery, cafe or both"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "subscription_tier",
            sa.String(20),
            nullable=False,
            comment="basic, premium or enterprise",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_roasters_is_active", "roasters", ["is_active"])
    op.create_index("ix_roasters_subscription_tier", "roasters", ["subscription_tier"])
    op.create_index("idx_roasters_created_at", "roasters", [sa.text("created_at DESC")])


def downgrade() -> None:
    """Drop both tables. WARNING: destructive."""
    op.drop_index("idx_roasters_created_at", table_name="roasters")
    op.drop_index("ix_roasters_subscription_tier", table_name="roasters")
    op.drop_index("ix_roasters_is_active", table_name="roasters")
    op.drop_table("roasters")
    op.drop_index("idx_farmers_created_at", table_name="farmers")
    op.drop_index("ix_farmers_is_active", table_name="farmers")
    op.drop_table("farmers")
