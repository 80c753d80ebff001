"""Abstract repository interfaces for infrastructure operations."""

from rdpbind.infrastructure.repositories.certificate_store import (
    CertificateStore,
    StoredCertificate,
)
from rdpbind.infrastructure.repositories.configuration_store import (
    ConfigurationRecord,
    ConfigurationStore,
    ConfigurationTarget,
)

__all__ = [
    "CertificateStore",
    "ConfigurationRecord",
    "ConfigurationStore",
    "ConfigurationTarget",
    "StoredCertificate",
]
