"""Local catalog models.

These tables belong to the shop catalog. The sync engine only reads them
(identifiers, attribute values, category paths and per-category overrides).
Ids are 16-byte binary UUIDs; `version_id` distinguishes product revisions.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, LargeBinary, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog_sync.stores.postgres import Base


def generate_binary_id() -> bytes:
    """Generate a random 16-byte id."""
    return uuid4().bytes


class Product(Base):
    """Product revision in the local catalog."""

    __tablename__ = "products"

    id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, default=generate_binary_id)
    version_id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True)

    # Set iff this product is a variant of a configurable parent
    parent_id: Mapped[bytes | None] = mapped_column(LargeBinary(16), index=True)

    product_number: Mapped[str] = mapped_column(String(64), index=True)
    ean: Mapped[str | None] = mapped_column(String(64))
    manufacturer_number: Mapped[str | None] = mapped_column(String(255))
    name: Mapped[str | None] = mapped_column(String(255))

    # JSON object of custom field name -> value
    custom_fields_json: Mapped[str | None] = mapped_column(Text)

    # JSON list of hex category ids, root first
    category_tree_json: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product {self.product_number}>"


class ProductPropertyValue(Base):
    """Property-group option assigned to a product (e.g. group "EAN" -> "4006381333931")."""

    __tablename__ = "product_property_values"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[bytes] = mapped_column(LargeBinary(16), index=True)
    product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16))
    group_name: Mapped[str] = mapped_column(String(255), index=True)
    option_name: Mapped[str] = mapped_column(String(255))


class Category(Base):
    """Category with optional relationship import overrides."""

    __tablename__ = "categories"

    id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, default=generate_binary_id)
    parent_id: Mapped[bytes | None] = mapped_column(ForeignKey("categories.id"))
    name: Mapped[str] = mapped_column(String(255))

    # When True the category inherits (no override block of its own)
    use_global_settings: Mapped[bool] = mapped_column(Boolean, default=True)

    # JSON object of option key -> bool (e.g. {"importSimilar": true})
    import_settings_json: Mapped[str | None] = mapped_column(Text)
