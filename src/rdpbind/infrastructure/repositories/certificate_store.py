"""
Abstract interface for the machine-wide certificate store.

The store is owned by the operating system; this program only reads it:
- Thumbprint lookup of a single certificate
- Listing of every certificate for diagnostics
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredCertificate:
    """
    Certificate record as exposed by the certificate store.

    Attributes:
        thumbprint: SHA-1 fingerprint (hex string)
        friendly_name: Human-assigned display label
        subject: Certificate subject distinguished name
        not_after: Expiration timestamp, if known
        store_path: Location of the certificate inside the store
    """

    thumbprint: str
    friendly_name: str
    subject: str = ""
    not_after: datetime | None = None
    store_path: str = ""

    def matches(self, thumbprint: str) -> bool:
        """Thumbprint comparison, case-insensitive like the Windows cert provider."""
        return self.thumbprint.upper() == thumbprint.upper()


class CertificateStore(ABC):
    """
    Abstract interface for certificate store lookups.

    Implementations are read-only from the binder's perspective.
    """

    @abstractmethod
    def find_by_thumbprint(self, thumbprint: str) -> list[StoredCertificate]:
        """
        Find certificates whose thumbprint equals the given one.

        Args:
            thumbprint: Whitespace-free thumbprint

        Returns:
            Matching certificates (normally zero or one)

        Raises:
            StoreError: If the store cannot be queried
        """
        pass

    @abstractmethod
    def list_certificates(self) -> list[StoredCertificate]:
        """
        List every certificate in the store.

        Returns:
            All certificate records
        """
        pass
