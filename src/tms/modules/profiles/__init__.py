"""Profiles: named role bundles, one per user."""
