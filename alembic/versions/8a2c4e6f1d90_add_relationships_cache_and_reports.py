"""add_relationships_cache_and_reports

Revision ID: 8a2c4e6f1d90
Revises: 3e8d1f0a6b21
Create Date: 2026-10-05
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8a2c4e6f1d90"
down_revision: Union[str, Sequence[str], None] = "3e8d1f0a6b21"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "product_relationships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("linked_product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("linked_product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("relationship_type", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "product_id",
            "product_version_id",
            "linked_product_id",
            "linked_product_version_id",
            "relationship_type",
            name="uq_product_relationships_link",
        ),
    )
    op.create_index("ix_product_relationships_product_id", "product_relationships", ["product_id"])
    op.create_index("ix_product_relationships_relationship_type", "product_relationships", ["relationship_type"])

    op.create_table(
        "cross_selling_groups",
        sa.Column("id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("relationship_type", sa.String(length=32), nullable=False),
        sa.Column("name_translations_json", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("sort_by", sa.String(length=32), nullable=False),
        sa.Column("sort_direction", sa.String(length=4), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("limit", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "product_version_id", "relationship_type", name="uq_cross_selling_groups_owner"),
    )
    op.create_index("ix_cross_selling_groups_product_id", "cross_selling_groups", ["product_id"])

    op.create_table(
        "cross_selling_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("cross_selling_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["cross_selling_id"], ["cross_selling_groups.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cross_selling_assignments_cross_selling_id", "cross_selling_assignments", ["cross_selling_id"])

    op.create_table(
        "mapping_cache",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("mapping_type", sa.String(length=16), nullable=False),
        sa.Column("external_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mapping_cache_type_external_id", "mapping_cache", ["mapping_type", "external_id"])
    op.create_index("ix_mapping_cache_created_at", "mapping_cache", ["created_at"])

    op.create_table(
        "job_reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_type", sa.String(length=50), nullable=False),
        sa.Column("job_status", sa.String(length=20), nullable=False),
        sa.Column("command_line", sa.Text(), nullable=False),
        sa.Column("pid", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("report_data_json", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_job_reports_job_status", "job_reports", ["job_status"])
    op.create_index("ix_job_reports_started_at", "job_reports", ["started_at"])


def downgrade() -> None:
    op.drop_index("ix_job_reports_started_at", table_name="job_reports")
    op.drop_index("ix_job_reports_job_status", table_name="job_reports")
    op.drop_table("job_reports")
    op.drop_index("ix_mapping_cache_created_at", table_name="mapping_cache")
    op.drop_index("ix_mapping_cache_type_external_id", table_name="mapping_cache")
    op.drop_table("mapping_cache")
    op.drop_index("ix_cross_selling_assignments_cross_selling_id", table_name="cross_selling_assignments")
    op.drop_table("cross_selling_assignments")
    op.drop_index("ix_cross_selling_groups_product_id", table_name="cross_selling_groups")
    op.drop_table("cross_selling_groups")
    op.drop_index("ix_product_relationships_relationship_type", table_name="product_relationships")
    op.drop_index("ix_product_relationships_product_id", table_name="product_relationships")
    op.drop_table("product_relationships")
