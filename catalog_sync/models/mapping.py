"""Mapping models: external catalog id -> local product revision."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, LargeBinary, String, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog_sync.stores.postgres import Base


class ExternalProductMapping(Base):
    """One external id -> local ref row; rebuilt by the mapping strategy each run."""

    __tablename__ = "external_product_mappings"

    id: Mapped[int] = mapped_column(primary_key=True)
    top_data_id: Mapped[int] = mapped_column(BigInteger, index=True)
    product_id: Mapped[bytes] = mapped_column(LargeBinary(16), index=True)
    product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class MappingCacheEntry(Base):
    """Durable cache of EAN/OEM/PCD matches, reused across runs until it expires."""

    __tablename__ = "mapping_cache"
    __table_args__ = (Index("ix_mapping_cache_type_external_id", "mapping_type", "external_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    mapping_type: Mapped[str] = mapped_column(String(16))  # EAN, OEM, PCD
    external_id: Mapped[int] = mapped_column(BigInteger)
    product_id: Mapped[bytes] = mapped_column(LargeBinary(16))
    product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
