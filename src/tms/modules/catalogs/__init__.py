"""Catalogs: shared lookup tables (statuses, types, action kinds)."""
