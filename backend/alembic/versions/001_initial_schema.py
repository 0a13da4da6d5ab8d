"""Initial schema — departments, users, subscriptions.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(191), nullable=False, unique=True),
        sa.Column("head", sa.String(191), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(191), nullable=False),
        sa.Column("email", sa.String(191), nullable=False, unique=True),
        sa.Column("department_id", sa.Integer, sa.ForeignKey("departments.id"), nullable=True),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("subscription_code", sa.String(36), nullable=False, unique=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("item_id", sa.Integer, nullable=False),
        sa.Column("item_name", sa.String(191), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="requested"),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(191), nullable=True),
        sa.Column("returned_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_subscriptions_user_item", "subscriptions", ["user_id", "item_id"],
    )
    op.create_index(
        "ux_subscriptions_active_pair", "subscriptions", ["user_id", "item_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'returned'"),
        sqlite_where=sa.text("status <> 'returned'"),
    )


def downgrade() -> None:
    op.drop_index("ux_subscriptions_active_pair", table_name="subscriptions")
    op.drop_index("ix_subscriptions_user_item", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("users")
    op.drop_table("departments")
