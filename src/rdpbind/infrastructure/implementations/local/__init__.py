"""Local file-based infrastructure implementations for development."""

from rdpbind.infrastructure.implementations.local.certificate_store import (
    LocalCertificateStore,
)
from rdpbind.infrastructure.implementations.local.configuration_store import (
    LocalConfigurationStore,
)

__all__ = [
    "LocalCertificateStore",
    "LocalConfigurationStore",
]
