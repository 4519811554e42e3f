"""Users: accounts of a tenant."""
