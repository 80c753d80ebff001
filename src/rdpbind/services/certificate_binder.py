"""
Certificate binder service for the Remote Desktop listener.

Binds a certificate, already present in the machine certificate store,
to the Remote Desktop configuration:
1. Normalize the thumbprint (strip whitespace)
2. Locate the certificate in the certificate store
3. Confirm its friendly name
4. Commit the thumbprint to the general setting, the listener and the
   Remote Desktop service record

Notes:
- Nothing is written before the certificate is located and its friendly
  name confirmed
- Targets are committed one after the other; without atomic mode a
  failure leaves earlier targets updated
- The persisted registry key and the service restart are available but
  never run as part of bind()
"""

from loguru import logger

from rdpbind.infrastructure import InfrastructureFactory
from rdpbind.infrastructure.repositories import (
    CertificateStore,
    ConfigurationRecord,
    ConfigurationStore,
    ConfigurationTarget,
    StoredCertificate,
)
from rdpbind.models.binding import BindingResult
from rdpbind.models.errors import (
    ApplyError,
    NotFoundError,
    StoreError,
    TargetAbsent,
    ValidationError,
)

# (record, certificate identifier held before the commit)
Journal = list[tuple[ConfigurationRecord, str]]


class CertificateBinder:
    """
    Applies a certificate thumbprint to the Remote Desktop configuration.

    Stores are injected so the binder runs unchanged against a Windows
    host or the local JSON machine model.
    """

    def __init__(
        self,
        certificate_store: CertificateStore,
        configuration_store: ConfigurationStore,
        service_name: str = "TermService",
        atomic: bool = False,
    ):
        """
        Initialize the binder.

        Args:
            certificate_store: Store the certificate is looked up in
            configuration_store: Store receiving the thumbprint
            service_name: Service record updated after the listener
            atomic: Restore committed records when a later target fails
        """
        self.certificate_store = certificate_store
        self.configuration_store = configuration_store
        self.service_name = service_name
        self.atomic = atomic

    @classmethod
    def from_factory(
        cls,
        factory: InfrastructureFactory,
        service_name: str = "TermService",
        atomic: bool = False,
    ) -> "CertificateBinder":
        """Create a binder with the stores of an infrastructure factory."""
        return cls(
            certificate_store=factory.get_certificate_store(),
            configuration_store=factory.get_configuration_store(),
            service_name=service_name,
            atomic=atomic,
        )

    @staticmethod
    def normalize(identifier: str | None) -> str:
        """
        Remove every whitespace character from a thumbprint.

        Thumbprints copied from the certificate dialog come as
        space-separated byte pairs. Case is left untouched.

        Args:
            identifier: Raw thumbprint, None is treated as empty

        Returns:
            Thumbprint without whitespace
        """
        return "".join((identifier or "").split())

    def locate(self, thumbprint: str) -> StoredCertificate:
        """
        Find the certificate with the given thumbprint.

        Args:
            thumbprint: Normalized thumbprint

        Returns:
            The first matching certificate

        Raises:
            NotFoundError: If no certificate matches or the store cannot be read
        """
        if not thumbprint:
            raise NotFoundError(thumbprint, "empty thumbprint")

        try:
            matches = self.certificate_store.find_by_thumbprint(thumbprint)
        except StoreError as e:
            raise NotFoundError(thumbprint, str(e)) from e

        if not matches:
            raise NotFoundError(thumbprint)

        if len(matches) > 1:
            logger.debug(
                f"{len(matches)} certificates match {thumbprint}, using "
                f"{matches[0].store_path or 'the first one'}"
            )

        return matches[0]

    def validate_label(self, certificate: StoredCertificate, expected_label: str) -> None:
        """
        Confirm the certificate's friendly name.

        Raises:
            ValidationError: If the friendly name differs in any character
        """
        if certificate.friendly_name != expected_label:
            raise ValidationError(expected_label, certificate.friendly_name)

    def _apply_target(
        self,
        target: ConfigurationTarget,
        thumbprint: str,
        name_filter: str | None = None,
        journal: Journal | None = None,
    ) -> list[ConfigurationRecord]:
        try:
            records = self.configuration_store.list_records(target, name_filter)
        except StoreError as e:
            raise ApplyError(target, str(e)) from e

        if not records and name_filter is not None:
            raise TargetAbsent(target, name_filter)

        for record in records:
            previous = record.certificate_identifier
            try:
                committed = self.configuration_store.commit(record, thumbprint)
            except StoreError as e:
                raise ApplyError(target, str(e)) from e

            if not committed:
                raise ApplyError(target, f"commit of '{record.key}' reported failure")

            if journal is not None:
                journal.append((record, previous))
            logger.debug(f"Committed {thumbprint} to {target.description} '{record.key}'")

        return records

    def apply_general_setting(
        self, thumbprint: str, journal: Journal | None = None
    ) -> list[ConfigurationRecord]:
        """Commit the thumbprint to every terminal-services general setting."""
        return self._apply_target(
            ConfigurationTarget.GENERAL_SETTING, thumbprint, journal=journal
        )

    def apply_listener(
        self, thumbprint: str, journal: Journal | None = None
    ) -> list[ConfigurationRecord]:
        """Commit the thumbprint to the Remote Desktop listener."""
        return self._apply_target(ConfigurationTarget.LISTENER, thumbprint, journal=journal)

    def apply_service(
        self, thumbprint: str, journal: Journal | None = None
    ) -> list[ConfigurationRecord]:
        """
        Commit the thumbprint to the Remote Desktop service record.

        Raises:
            TargetAbsent: If no service with the configured name exists
            ApplyError: If the commit fails
        """
        return self._apply_target(
            ConfigurationTarget.SERVICE,
            thumbprint,
            name_filter=self.service_name,
            journal=journal,
        )

    def apply_persisted_key(self, thumbprint: str) -> None:
        """
        Write the thumbprint to the persisted registry key.

        Not part of bind(); callers opt in explicitly.

        Raises:
            ApplyError: If the write fails
        """
        try:
            written = self.configuration_store.write_persisted_key(thumbprint)
        except StoreError as e:
            raise ApplyError(ConfigurationTarget.PERSISTED_KEY, str(e)) from e

        if not written:
            raise ApplyError(ConfigurationTarget.PERSISTED_KEY)

        logger.debug(f"Wrote {thumbprint} to the persisted registry key")

    def restart_service(self) -> None:
        """
        Restart the Remote Desktop service.

        Not part of bind(); restarting drops active sessions.

        Raises:
            ApplyError: If the restart fails
        """
        try:
            restarted = self.configuration_store.restart_service(self.service_name)
        except StoreError as e:
            raise ApplyError(ConfigurationTarget.SERVICE, str(e)) from e

        if not restarted:
            raise ApplyError(
                ConfigurationTarget.SERVICE, f"restart of '{self.service_name}' failed"
            )

        logger.debug(f"Restarted service {self.service_name}")

    def rollback(self, journal: Journal) -> None:
        """Re-commit previous identifiers, most recent first. Best effort."""
        for record, previous in reversed(journal):
            try:
                restored = self.configuration_store.commit(record, previous)
            except StoreError as e:
                logger.error(
                    f"Could not restore {record.target.description} '{record.key}': {e}"
                )
                continue

            if restored:
                logger.debug(f"Restored {record.target.description} '{record.key}'")
            else:
                logger.error(
                    f"Could not restore {record.target.description} '{record.key}'"
                )

    def bind(self, identifier: str | None, expected_label: str | None) -> BindingResult:
        """
        Bind the certificate to the Remote Desktop configuration.

        Args:
            identifier: Certificate thumbprint, whitespace allowed
            expected_label: Friendly name the certificate must carry

        Returns:
            BindingResult with the confirmation message

        Raises:
            NotFoundError: If no certificate matches the thumbprint
            ValidationError: If the friendly name does not match
            ApplyError: If committing to a target fails
        """
        thumbprint = self.normalize(identifier)
        expected_label = expected_label or ""

        certificate = self.locate(thumbprint)
        self.validate_label(certificate, expected_label)

        # Apply the store's spelling of the thumbprint
        thumbprint = certificate.thumbprint
        journal: Journal = []
        applied: list[ConfigurationTarget] = []
        skipped: list[ConfigurationTarget] = []

        try:
            self.apply_general_setting(thumbprint, journal)
            applied.append(ConfigurationTarget.GENERAL_SETTING)

            self.apply_listener(thumbprint, journal)
            applied.append(ConfigurationTarget.LISTENER)

            try:
                self.apply_service(thumbprint, journal)
                applied.append(ConfigurationTarget.SERVICE)
            except TargetAbsent as e:
                logger.info(f"{e}, skipping")
                skipped.append(ConfigurationTarget.SERVICE)
        except ApplyError:
            if self.atomic and journal:
                logger.debug(f"Restoring {len(journal)} committed record(s)")
                self.rollback(journal)
            raise

        return BindingResult(
            thumbprint=thumbprint,
            friendly_name=certificate.friendly_name,
            message=f"Applied certificate to RDP: {certificate.friendly_name} ({thumbprint})",
            applied_targets=applied,
            skipped_targets=skipped,
        )
