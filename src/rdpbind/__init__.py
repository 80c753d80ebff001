"""Bind an issued TLS certificate to the Remote Desktop listener."""

__version__ = "1.0.0"
