"""
Local file-based certificate store implementation.

Models the machine certificate store as a JSON file:
    {base_dir}/
        certificates.json

Used for development, rehearsals and tests on machines without a
Windows certificate store.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from loguru import logger

from rdpbind.infrastructure.repositories.certificate_store import (
    CertificateStore,
    StoredCertificate,
)
from rdpbind.models.errors import StoreError


class LocalCertificateStore(CertificateStore):
    """File-based certificate store for local development."""

    def __init__(self, base_dir: str | Path = "./.rdpbind"):
        """
        Initialize local certificate store.

        Args:
            base_dir: Base directory holding certificates.json
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.store_path = self.base_dir / "certificates.json"

        logger.debug(f"Initialized LocalCertificateStore at {self.store_path}")

    def _cert_to_dict(self, cert: StoredCertificate) -> dict[str, Any]:
        """Convert StoredCertificate to JSON-serializable dict."""
        return {
            "thumbprint": cert.thumbprint,
            "friendly_name": cert.friendly_name,
            "subject": cert.subject,
            "not_after": cert.not_after.isoformat() if cert.not_after else None,
            "store_path": cert.store_path,
        }

    def _dict_to_cert(self, data: dict[str, Any]) -> StoredCertificate:
        """Convert dict to StoredCertificate."""
        not_after = data.get("not_after")
        return StoredCertificate(
            thumbprint=data["thumbprint"],
            friendly_name=data.get("friendly_name", ""),
            subject=data.get("subject", ""),
            not_after=datetime.fromisoformat(not_after) if not_after else None,
            store_path=data.get("store_path", ""),
        )

    def _load(self) -> list[dict[str, Any]]:
        if not self.store_path.exists():
            return []
        try:
            return json.loads(self.store_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read certificate store {self.store_path}: {e}") from e

    def _save(self, entries: list[dict[str, Any]]) -> None:
        try:
            self.store_path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Cannot write certificate store {self.store_path}: {e}") from e

    def add_certificate(self, certificate: StoredCertificate) -> None:
        """Store a certificate record, replacing one with the same thumbprint."""
        entries = [
            entry
            for entry in self._load()
            if not self._dict_to_cert(entry).matches(certificate.thumbprint)
        ]
        entries.append(self._cert_to_dict(certificate))
        self._save(entries)

        logger.debug(
            f"Stored certificate {certificate.thumbprint} "
            f"({certificate.friendly_name}) in local store"
        )

    def import_pem(self, pem_path: str | Path, friendly_name: str) -> StoredCertificate:
        """
        Import a PEM certificate, computing its SHA-1 thumbprint.

        Args:
            pem_path: Path to a PEM-encoded certificate
            friendly_name: Label to attach to the record

        Returns:
            The stored certificate record

        Raises:
            StoreError: If the file cannot be read or holds no PEM certificate
        """
        try:
            cert = x509.load_pem_x509_certificate(Path(pem_path).read_bytes())
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot import certificate from {pem_path}: {e}") from e

        stored = StoredCertificate(
            thumbprint=cert.fingerprint(hashes.SHA1()).hex().upper(),
            friendly_name=friendly_name,
            subject=cert.subject.rfc4514_string(),
            not_after=cert.not_valid_after_utc,
            store_path=str(self.store_path),
        )
        self.add_certificate(stored)
        return stored

    def find_by_thumbprint(self, thumbprint: str) -> list[StoredCertificate]:
        """Find certificates by thumbprint (case-insensitive)."""
        return [cert for cert in self.list_certificates() if cert.matches(thumbprint)]

    def list_certificates(self) -> list[StoredCertificate]:
        """List all stored certificates."""
        return [self._dict_to_cert(entry) for entry in self._load()]
