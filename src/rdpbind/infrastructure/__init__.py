"""
Infrastructure abstraction layer for the host being configured.

This module provides store interfaces and implementations for:
- The machine certificate store (read only)
- The terminal-services configuration surface

Supports multiple providers via factory pattern:
- local: JSON-file machine model for development
- windows: PowerShell (local or WinRM) against a Windows host
"""

from rdpbind.infrastructure.factory import InfrastructureFactory

__all__ = ["InfrastructureFactory"]
