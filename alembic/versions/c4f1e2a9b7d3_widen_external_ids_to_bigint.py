"""widen_external_ids_to_bigint

Revision ID: c4f1e2a9b7d3
Revises: 8a2c4e6f1d90
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "c4f1e2a9b7d3"
down_revision: Union[str, Sequence[str], None] = "8a2c4e6f1d90"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Remote ids and numeric product numbers do not fit INTEGER.
COLUMNS = [
    ("external_product_mappings", "top_data_id"),
    ("mapping_cache", "external_id"),
    ("device_brands", "ws_id"),
    ("device_series", "ws_id"),
    ("device_types", "ws_id"),
    ("devices", "ws_id"),
]


def upgrade() -> None:
    """Upgrade schema."""
    for table, column in COLUMNS:
        op.alter_column(
            table,
            column,
            existing_type=sa.Integer(),
            type_=sa.BigInteger(),
            existing_nullable=False,
        )


def downgrade() -> None:
    """Downgrade schema."""
    # Fails when a stored id exceeds the INTEGER range
    for table, column in COLUMNS:
        op.alter_column(
            table,
            column,
            existing_type=sa.BigInteger(),
            type_=sa.Integer(),
            existing_nullable=False,
        )
