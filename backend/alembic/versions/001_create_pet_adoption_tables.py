"""Create users, pets and adoptions tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema for the adoption workflow.
How:   Portable column types (sa.Uuid, sa.JSON) so the same revision runs on
       PostgreSQL and on SQLite for local development.

Key indexes:
    idx_pets_status                   → public listing filters on status
    idx_adoptions_pet_status          → status recomputation counts per pet
    uq_adoptions_active_application   → one Pending/Approved application per
                                        (pet, applicant); partial, so past
                                        Rejected/Cancelled rows do not block
                                        a fresh application

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_WHERE = sa.text("status IN ('Pending', 'Approved')")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, comment="Lower-cased login email"),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("address", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "pets",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("breed", sa.String(120), nullable=True),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("age_unit", sa.String(10), nullable=False),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.Column("size", sa.String(10), nullable=False),
        sa.Column("color", sa.String(60), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("special_needs", sa.JSON(), nullable=False),
        sa.Column("adoption_fee", sa.Float(), nullable=False),
        sa.Column("location_city", sa.String(120), nullable=True),
        sa.Column("location_state", sa.String(120), nullable=True),
        sa.Column("location_country", sa.String(120), nullable=True),
        sa.Column("vaccinated", sa.Boolean(), nullable=False),
        sa.Column("spayed_neutered", sa.Boolean(), nullable=False),
        sa.Column("health_notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'Available'"),
            comment="Available, Pending, Adopted, Not Available",
        ),
        sa.Column("posted_by_id", sa.Uuid(), nullable=False),
        sa.Column("adopted_by_id", sa.Uuid(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["posted_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["adopted_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_pets_status", "pets", ["status"])
    op.create_index("idx_pets_created_at", "pets", [sa.text("created_at DESC")])

    op.create_table(
        "adoptions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("pet_id", sa.Uuid(), nullable=False),
        sa.Column("applicant_id", sa.Uuid(), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'Pending'"),
            comment="Pending, Approved, Rejected, Cancelled",
        ),
        sa.Column(
            "application_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("review_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by_id", sa.Uuid(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("applicant_info", sa.JSON(), nullable=False),
        sa.Column("contact_info", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["pet_id"], ["pets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["applicant_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["reviewed_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_adoptions_pet_status", "adoptions", ["pet_id", "status"])
    op.create_index("idx_adoptions_applicant", "adoptions", ["applicant_id"])
    op.create_index(
        "uq_adoptions_active_application",
        "adoptions",
        ["pet_id", "applicant_id"],
        unique=True,
        postgresql_where=ACTIVE_WHERE,
        sqlite_where=ACTIVE_WHERE,
    )


def downgrade() -> None:
    op.drop_index("uq_adoptions_active_application", table_name="adoptions")
    op.drop_index("idx_adoptions_applicant", table_name="adoptions")
    op.drop_index("idx_adoptions_pet_status", table_name="adoptions")
    op.drop_table("adoptions")
    op.drop_index("idx_pets_created_at", table_name="pets")
    op.drop_index("idx_pets_status", table_name="pets")
    op.drop_table("pets")
    op.drop_table("users")
