"""Device catalog models.

`enabled` on every entity is derived by the device linking step:
a device is enabled iff it is linked to at least one local product,
and a brand/series/type iff at least one enabled device references it.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, LargeBinary, String, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog_sync.models.product import generate_binary_id
from catalog_sync.stores.postgres import Base


class Brand(Base):
    __tablename__ = "device_brands"

    id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, default=generate_binary_id)
    ws_id: Mapped[int] = mapped_column(BigInteger, index=True)
    code: Mapped[str] = mapped_column(String(255))
    label: Mapped[str] = mapped_column(String(255))
    sort: Mapped[int] = mapped_column(Integer, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, index=True)


class Series(Base):
    __tablename__ = "device_series"

    id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, default=generate_binary_id)
    ws_id: Mapped[int] = mapped_column(BigInteger, index=True)
    brand_id: Mapped[bytes | None] = mapped_column(ForeignKey("device_brands.id"))
    code: Mapped[str] = mapped_column(String(255))
    label: Mapped[str] = mapped_column(String(255))
    sort: Mapped[int] = mapped_column(Integer, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, index=True)


class DeviceType(Base):
    __tablename__ = "device_types"

    id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, default=generate_binary_id)
    ws_id: Mapped[int] = mapped_column(BigInteger, index=True)
    brand_id: Mapped[bytes | None] = mapped_column(ForeignKey("device_brands.id"))
    code: Mapped[str] = mapped_column(String(255))
    label: Mapped[str] = mapped_column(String(255))
    sort: Mapped[int] = mapped_column(Integer, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, index=True)


class Device(Base):
    """Device (printer, phone, ...) from the remote catalog.

    Several local rows may share one ws_id. `code` is unique per brand and
    model name.
    """

    __tablename__ = "devices"

    id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, default=generate_binary_id)
    ws_id: Mapped[int] = mapped_column(BigInteger, index=True)
    brand_id: Mapped[bytes | None] = mapped_column(ForeignKey("device_brands.id"))
    series_id: Mapped[bytes | None] = mapped_column(ForeignKey("device_series.id"))
    type_id: Mapped[bytes | None] = mapped_column(ForeignKey("device_types.id"))
    code: Mapped[str] = mapped_column(String(255), index=True)
    model: Mapped[str | None] = mapped_column(String(255))
    keywords: Mapped[str | None] = mapped_column(String(255))
    sort: Mapped[int] = mapped_column(Integer, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    def __repr__(self) -> str:
        return f"<Device ws_id={self.ws_id} {self.code}>"


class DeviceProductLink(Base):
    __tablename__ = "device_product_links"

    device_id: Mapped[bytes] = mapped_column(
        ForeignKey("devices.id", ondelete="CASCADE"),
        primary_key=True,
    )
    product_id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True, index=True)
    product_version_id: Mapped[bytes] = mapped_column(LargeBinary(16), primary_key=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
