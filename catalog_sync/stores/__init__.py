"""Data stores for persistence and locking.

Stores handle:
- PostgreSQL: DB session management, the SQL catalog store (batch reads/writes)
- Redis: single-run import lock, short-lived JSON cache

No reconciliation logic in stores - that belongs in services.
"""
