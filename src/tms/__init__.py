"""Transport management back office: tenant-scoped identity and permissions."""

__version__ = "0.1.0"
