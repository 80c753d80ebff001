"""
Abstract interface for the terminal-services configuration surface.

Every target exposes records with a single settable field, the certificate
identifier. Writes go through commit() which reports success or failure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from rdpbind.models.targets import ConfigurationTarget


@dataclass
class ConfigurationRecord:
    """
    One record fetched from a configuration target.

    Attributes:
        target: Target the record belongs to
        key: Identity of the record inside its target (terminal or service name)
        certificate_identifier: Thumbprint currently bound (empty if none)
    """

    target: ConfigurationTarget
    key: str
    certificate_identifier: str = ""


class ConfigurationStore(ABC):
    """
    Abstract interface for reading and committing configuration records.

    Stores own the lifecycle of their records; the binder only sets the
    certificate identifier and asks for a commit.
    """

    @abstractmethod
    def list_records(
        self, target: ConfigurationTarget, name_filter: str | None = None
    ) -> list[ConfigurationRecord]:
        """
        Fetch the current records of a target.

        Args:
            target: Target to read
            name_filter: Only return records whose key equals this name

        Returns:
            Zero or more records

        Raises:
            StoreError: If the target cannot be read
        """
        pass

    @abstractmethod
    def commit(self, record: ConfigurationRecord, certificate_identifier: str) -> bool:
        """
        Set the certificate identifier on a record and persist it.

        Args:
            record: Record previously returned by list_records()
            certificate_identifier: Thumbprint to bind

        Returns:
            True if the commit succeeded, False otherwise
        """
        pass

    @abstractmethod
    def write_persisted_key(self, certificate_identifier: str) -> bool:
        """
        Write the thumbprint to the persisted (registry) key.

        Args:
            certificate_identifier: Thumbprint to bind

        Returns:
            True if the write succeeded, False otherwise
        """
        pass

    @abstractmethod
    def restart_service(self, service_name: str) -> bool:
        """
        Restart a service so it picks up the new certificate.

        Args:
            service_name: Service to restart

        Returns:
            True if the restart succeeded, False otherwise
        """
        pass
