"""add_device_import_columns

Revision ID: d7e5a3c1f0b8
Revises: c4f1e2a9b7d3
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "d7e5a3c1f0b8"
down_revision: Union[str, Sequence[str], None] = "c4f1e2a9b7d3"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    for table in ("device_brands", "device_series", "device_types", "devices"):
        op.add_column(table, sa.Column("sort", sa.Integer(), nullable=False, server_default="0"))

    op.add_column("device_types", sa.Column("brand_id", sa.LargeBinary(length=16), nullable=True))
    op.create_foreign_key(
        "fk_device_types_brand_id", "device_types", "device_brands", ["brand_id"], ["id"]
    )

    op.add_column("devices", sa.Column("keywords", sa.String(length=255), nullable=True))
    op.create_index("ix_devices_code", "devices", ["code"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_devices_code", table_name="devices")
    op.drop_column("devices", "keywords")
    op.drop_constraint("fk_device_types_brand_id", "device_types", type_="foreignkey")
    op.drop_column("device_types", "brand_id")
    for table in ("device_brands", "device_series", "device_types", "devices"):
        op.drop_column(table, "sort")
