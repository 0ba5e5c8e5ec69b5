"""Product -> product relationships and their cross-selling mirrors."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, LargeBinary, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog_sync.models.product import generate_binary_id
from catalog_sync.stores.postgres import Base


class ProductRelationship(Base):
    """Directional link (source -> target) tagged by relationship type."""

    __tablename__ = "product_relationships"
    __table_args__ = (
        UniqueConstraint(
            "product_id",
            "product_version_id",
            "linked_product_id",
            "linked_product_version_id",
            "relationship_type",
            name="uq_product_relationships_link",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[bytes] = mapped_column(LargeBinary(16), index=True)
    product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16))
    linked_product_id: Mapped[bytes] = mapped_column(LargeBinary(16))
    linked_product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16))

    # similar, alternate, related, bundled, variant, color_variant, capacity_variant
    relationship_type: Mapped[str] = mapped_column(String(32), index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class CrossSellingGroup(Base):
    """Storefront cross-selling list; at most one per (product, relationship type)."""

    __tablename__ = "cross_selling_groups"
    __table_args__ = (
        UniqueConstraint("product_id", "product_version_id", "relationship_type", name="uq_cross_selling_groups_owner"),
    )

    id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, default=generate_binary_id)
    product_id: Mapped[bytes] = mapped_column(LargeBinary(16), index=True)
    product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16))
    relationship_type: Mapped[str] = mapped_column(String(32))

    # JSON object locale -> display name
    name_translations_json: Mapped[str] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer)
    type: Mapped[str] = mapped_column(String(32), default="productList")
    sort_by: Mapped[str] = mapped_column(String(32), default="name")
    sort_direction: Mapped[str] = mapped_column(String(4), default="ASC")
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    limit: Mapped[int] = mapped_column(Integer, default=24)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class CrossSellingAssignment(Base):
    __tablename__ = "cross_selling_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    cross_selling_id: Mapped[bytes] = mapped_column(
        ForeignKey("cross_selling_groups.id", ondelete="CASCADE"),
        index=True,
    )
    product_id: Mapped[bytes] = mapped_column(LargeBinary(16))
    product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16))
    position: Mapped[int] = mapped_column(Integer)
