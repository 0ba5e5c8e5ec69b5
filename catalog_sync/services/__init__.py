"""Business logic services.

Services handle:
- Mapping strategies (external catalog id -> local product revision)
- Device <-> product linking and device/brand/series/type availability
- Product <-> product relationships and cross-selling
- Remote catalog webservice access
- Run reports and counters
"""
