"""Initial schema: companies, owners, tracking numbers and statuses

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Companies ---
    op.create_table(
        "companies",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("public_id", sa.String(191), unique=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    # --- Owners ---
    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("public_id", sa.String(191), unique=True, nullable=False),
        sa.Column("company_id", UUID(as_uuid=True), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_orders_company", "orders", ["company_id"])

    op.create_table(
        "entities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("public_id", sa.String(191), unique=True, nullable=False),
        sa.Column("company_id", UUID(as_uuid=True), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_entities_company", "entities", ["company_id"])

    # --- Tracking numbers ---
    op.create_table(
        "tracking_numbers",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("public_id", sa.String(191), unique=True, nullable=False),
        sa.Column("tracking_number", sa.String(64), unique=True, nullable=False),
        sa.Column("company_id", UUID(as_uuid=True), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("api_key", sa.String(255), nullable=True),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=True),
        sa.Column("owner_type", sa.String(50), nullable=True),
        sa.Column("region", sa.String(8), nullable=False),
        sa.Column("qr_code", sa.Text, nullable=True),
        sa.Column("barcode", sa.Text, nullable=True),
        sa.Column("status_id", UUID(as_uuid=True), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_tracking_numbers_owner", "tracking_numbers", ["owner_type", "owner_id"])
    op.create_index("idx_tracking_numbers_company", "tracking_numbers", ["company_id"])
    op.create_check_constraint(
        "ck_tracking_numbers_owner_type",
        "tracking_numbers",
        "owner_type IS NULL OR owner_type IN ('order', 'entity')",
    )

    # --- Tracking statuses (append-only) ---
    op.create_table(
        "tracking_statuses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("public_id", sa.String(191), unique=True, nullable=False),
        sa.Column(
            "tracking_number_id",
            UUID(as_uuid=True),
            sa.ForeignKey("tracking_numbers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("company_id", UUID(as_uuid=True), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("status", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("details", sa.Text, nullable=True),
        sa.Column("latitude", sa.Float, nullable=False, server_default="0"),
        sa.Column("longitude", sa.Float, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index(
        "idx_tracking_statuses_latest", "tracking_statuses", ["tracking_number_id", "created_at"]
    )

    op.create_foreign_key(
        "fk_tracking_numbers_status_id",
        "tracking_numbers",
        "tracking_statuses",
        ["status_id"],
        ["id"],
    )


def downgrade() -> None:
    op.drop_constraint("fk_tracking_numbers_status_id", "tracking_numbers", type_="foreignkey")
    op.drop_table("tracking_statuses")
    op.drop_table("tracking_numbers")
    op.drop_table("entities")
    op.drop_table("orders")
    op.drop_table("companies")
