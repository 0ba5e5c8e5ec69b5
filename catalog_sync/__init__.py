"""Catalog reconciliation and relationship synchronization."""

__version__ = "0.1.0"
