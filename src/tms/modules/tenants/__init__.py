"""Tenants: the organizations that own users, profiles and roles."""
