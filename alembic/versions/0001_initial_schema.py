"""Initial ShelterSync schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    user_role_enum = sa.Enum("adopter", "shelter", "admin", name="userrole")
    pet_status_enum = sa.Enum("available", "pending", "adopted", name="petstatus")
    pet_size_enum = sa.Enum(
        "small", "medium", "large", "extra-large", name="petsize"
    )
    pet_energy_enum = sa.Enum("low", "medium", "high", name="petenergy")
    request_status_enum = sa.Enum(
        "pending", "approved", "rejected", "withdrawn", name="adoptionrequeststatus"
    )
    priority_enum = sa.Enum("low", "medium", "high", name="adoptionpriority")

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("location", sa.String(length=100)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("login_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("lock_until", sa.DateTime(timezone=True)),
        sa.Column(
            "email_verified", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("email_verification_token", sa.String(length=128)),
        sa.Column("password_reset_token_hash", sa.String(length=128)),
        sa.Column("password_reset_expires_at", sa.DateTime(timezone=True)),
        sa.Column("password_changed_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "pets",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "shelter_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("breed", sa.String(length=50)),
        sa.Column("age", sa.Integer()),
        sa.Column("health_notes", sa.String(length=500)),
        sa.Column("image_url", sa.String(length=512)),
        sa.Column("location", sa.String(length=100)),
        sa.Column("status", pet_status_enum, nullable=False),
        sa.Column(
            "adopted_by_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
        ),
        sa.Column("adopted_at", sa.DateTime(timezone=True)),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "vaccinated", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "spayed_neutered", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "house_trained", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "good_with_kids", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "good_with_pets", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("size", pet_size_enum, nullable=False),
        sa.Column("energy", pet_energy_enum, nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_pets_shelter_id", "pets", ["shelter_id"])
    op.create_index("ix_pets_breed", "pets", ["breed"])
    op.create_index("ix_pets_status", "pets", ["status"])

    op.create_table(
        "adoption_requests",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "pet_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("pets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "adopter_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "shelter_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.String(length=1000), nullable=False),
        sa.Column("status", request_status_enum, nullable=False),
        sa.Column("shelter_response", sa.String(length=1000)),
        sa.Column("responded_at", sa.DateTime(timezone=True)),
        sa.Column(
            "responded_by_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
        ),
        sa.Column("priority", priority_enum, nullable=False),
        sa.Column("adopter_info", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_adoption_requests_pet_id", "adoption_requests", ["pet_id"])
    op.create_index("ix_adoption_requests_status", "adoption_requests", ["status"])
    op.create_index(
        "ix_adoption_requests_shelter_status",
        "adoption_requests",
        ["shelter_id", "status"],
    )
    op.create_index(
        "ix_adoption_requests_adopter_status",
        "adoption_requests",
        ["adopter_id", "status"],
    )
    op.create_index(
        "ux_adoption_requests_pending_pet_adopter",
        "adoption_requests",
        ["pet_id", "adopter_id"],
        unique=True,
        sqlite_where=sa.text("status = 'pending'"),
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "adoption_notes",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "request_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("adoption_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "author_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.String(length=500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_adoption_notes_request_id", "adoption_notes", ["request_id"]
    )


def downgrade() -> None:
    op.drop_table("adoption_notes")
    op.drop_index(
        "ux_adoption_requests_pending_pet_adopter", table_name="adoption_requests"
    )
    op.drop_table("adoption_requests")
    op.drop_table("pets")
    op.drop_table("users")
    bind = op.get_bind()
    for enum_name in (
        "adoptionpriority",
        "adoptionrequeststatus",
        "petenergy",
        "petsize",
        "petstatus",
        "userrole",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
