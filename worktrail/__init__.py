"""Worktrail: multi-tenant workspace API."""

__version__ = "0.1.0"
