"""SQLAlchemy ORM models.

Models represent database tables:
- products / product_property_values / categories: local catalog (read side)
- external_product_mappings: external catalog id -> local product revision
- mapping_cache: durable cache of resolved EAN/OEM/PCD matches
- device_brands / device_series / device_types / devices: device catalog with derived enabled flags
- device_product_links: device <-> product applicability
- product_relationships: typed product -> product links
- cross_selling_groups / cross_selling_assignments: storefront mirror of relationships
- job_reports: persisted import run reports
"""

from catalog_sync.models.device import Brand, Device, DeviceProductLink, DeviceType, Series
from catalog_sync.models.mapping import ExternalProductMapping, MappingCacheEntry
from catalog_sync.models.product import Category, Product, ProductPropertyValue
from catalog_sync.models.relationship import CrossSellingAssignment, CrossSellingGroup, ProductRelationship
from catalog_sync.models.report import JobReport

__all__ = [
    "Brand",
    "Category",
    "CrossSellingAssignment",
    "CrossSellingGroup",
    "Device",
    "DeviceProductLink",
    "DeviceType",
    "ExternalProductMapping",
    "JobReport",
    "MappingCacheEntry",
    "Product",
    "ProductPropertyValue",
    "ProductRelationship",
    "Series",
]
