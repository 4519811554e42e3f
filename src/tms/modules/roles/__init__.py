"""Roles: the permission units referenced by session tokens."""
