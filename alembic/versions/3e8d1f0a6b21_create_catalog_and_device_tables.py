"""create_catalog_and_device_tables

Revision ID: 3e8d1f0a6b21
Revises:
Create Date: 2026-09-28
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3e8d1f0a6b21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("parent_id", sa.LargeBinary(length=16), nullable=True),
        sa.Column("product_number", sa.String(length=64), nullable=False),
        sa.Column("ean", sa.String(length=64), nullable=True),
        sa.Column("manufacturer_number", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("custom_fields_json", sa.Text(), nullable=True),
        sa.Column("category_tree_json", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", "version_id"),
    )
    op.create_index("ix_products_parent_id", "products", ["parent_id"])
    op.create_index("ix_products_product_number", "products", ["product_number"])

    op.create_table(
        "product_property_values",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("group_name", sa.String(length=255), nullable=False),
        sa.Column("option_name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_product_property_values_product_id", "product_property_values", ["product_id"])
    op.create_index("ix_product_property_values_group_name", "product_property_values", ["group_name"])

    op.create_table(
        "categories",
        sa.Column("id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("parent_id", sa.LargeBinary(length=16), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("use_global_settings", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("import_settings_json", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["parent_id"], ["categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "external_product_mappings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("top_data_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_external_product_mappings_top_data_id", "external_product_mappings", ["top_data_id"])
    op.create_index("ix_external_product_mappings_product_id", "external_product_mappings", ["product_id"])

    for table in ("device_brands", "device_types"):
        op.create_table(
            table,
            sa.Column("id", sa.LargeBinary(length=16), nullable=False),
            sa.Column("ws_id", sa.Integer(), nullable=False),
            sa.Column("code", sa.String(length=255), nullable=False),
            sa.Column("label", sa.String(length=255), nullable=False),
            sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_ws_id", table, ["ws_id"])
        op.create_index(f"ix_{table}_enabled", table, ["enabled"])

    op.create_table(
        "device_series",
        sa.Column("id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("ws_id", sa.Integer(), nullable=False),
        sa.Column("brand_id", sa.LargeBinary(length=16), nullable=True),
        sa.Column("code", sa.String(length=255), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["brand_id"], ["device_brands.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_device_series_ws_id", "device_series", ["ws_id"])
    op.create_index("ix_device_series_enabled", "device_series", ["enabled"])

    op.create_table(
        "devices",
        sa.Column("id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("ws_id", sa.Integer(), nullable=False),
        sa.Column("brand_id", sa.LargeBinary(length=16), nullable=True),
        sa.Column("series_id", sa.LargeBinary(length=16), nullable=True),
        sa.Column("type_id", sa.LargeBinary(length=16), nullable=True),
        sa.Column("code", sa.String(length=255), nullable=False),
        sa.Column("model", sa.String(length=255), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["brand_id"], ["device_brands.id"]),
        sa.ForeignKeyConstraint(["series_id"], ["device_series.id"]),
        sa.ForeignKeyConstraint(["type_id"], ["device_types.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_devices_ws_id", "devices", ["ws_id"])
    op.create_index("ix_devices_enabled", "devices", ["enabled"])

    op.create_table(
        "device_product_links",
        sa.Column("device_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("product_version_id", sa.LargeBinary(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["device_id"], ["devices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("device_id", "product_id", "product_version_id"),
    )
    op.create_index("ix_device_product_links_product_id", "device_product_links", ["product_id"])


def downgrade() -> None:
    op.drop_index("ix_device_product_links_product_id", table_name="device_product_links")
    op.drop_table("device_product_links")
    op.drop_index("ix_devices_enabled", table_name="devices")
    op.drop_index("ix_devices_ws_id", table_name="devices")
    op.drop_table("devices")
    op.drop_index("ix_device_series_enabled", table_name="device_series")
    op.drop_index("ix_device_series_ws_id", table_name="device_series")
    op.drop_table("device_series")
    for table in ("device_types", "device_brands"):
        op.drop_index(f"ix_{table}_enabled", table_name=table)
        op.drop_index(f"ix_{table}_ws_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_external_product_mappings_product_id", table_name="external_product_mappings")
    op.drop_index("ix_external_product_mappings_top_data_id", table_name="external_product_mappings")
    op.drop_table("external_product_mappings")
    op.drop_table("categories")
    op.drop_index("ix_product_property_values_group_name", table_name="product_property_values")
    op.drop_index("ix_product_property_values_product_id", table_name="product_property_values")
    op.drop_table("product_property_values")
    op.drop_index("ix_products_product_number", table_name="products")
    op.drop_index("ix_products_parent_id", table_name="products")
    op.drop_table("products")
