"""
Windows certificate store implementation.

Reads Cert:\\LocalMachine through PowerShell. The certificate provider
compares thumbprints case-insensitively (PowerShell ``-eq``).
"""

from datetime import UTC, datetime
from typing import Any

from loguru import logger

from rdpbind.infrastructure.implementations.windows.powershell import (
    PowerShellSession,
    ps_quote,
)
from rdpbind.infrastructure.repositories.certificate_store import (
    CertificateStore,
    StoredCertificate,
)
from rdpbind.models.errors import StoreError

_SELECT_CERTIFICATE = (
    "Select-Object Thumbprint, FriendlyName, Subject, "
    "@{n='NotAfter';e={$_.NotAfter.ToUniversalTime().ToString('s')}}, "
    "@{n='StorePath';e={$_.PSParentPath}}"
)


def build_certificate_query(thumbprint: str | None = None) -> str:
    """PowerShell listing LocalMachine certificates as JSON, optionally by thumbprint."""
    condition = "-not $_.PSIsContainer"
    if thumbprint is not None:
        condition += f" -and $_.Thumbprint -eq {ps_quote(thumbprint)}"

    return (
        "$ErrorActionPreference = 'Stop'\n"
        "$certs = @(Get-ChildItem -Path Cert:\\LocalMachine -Recurse "
        f"| Where-Object {{ {condition} }} | {_SELECT_CERTIFICATE})\n"
        "ConvertTo-Json -Compress -Depth 3 -InputObject $certs"
    )


class WindowsCertificateStore(CertificateStore):
    """Certificate lookups against the LocalMachine certificate store."""

    def __init__(self, session: PowerShellSession):
        """
        Initialize Windows certificate store.

        Args:
            session: PowerShell transport to the target host
        """
        self.session = session

    def _to_certificate(self, data: dict[str, Any]) -> StoredCertificate:
        not_after = data.get("NotAfter")
        return StoredCertificate(
            thumbprint=data["Thumbprint"],
            friendly_name=data.get("FriendlyName") or "",
            subject=data.get("Subject") or "",
            not_after=(
                datetime.fromisoformat(not_after).replace(tzinfo=UTC) if not_after else None
            ),
            store_path=data.get("StorePath") or "",
        )

    def _query(self, thumbprint: str | None) -> list[StoredCertificate]:
        result = self.session.run_ps(build_certificate_query(thumbprint))
        if not result.ok:
            raise StoreError(
                f"Certificate store query failed ({result.status_code}): "
                f"{result.std_err.strip()}"
            )
        return [self._to_certificate(item) for item in result.json()]

    def find_by_thumbprint(self, thumbprint: str) -> list[StoredCertificate]:
        """Find certificates in Cert:\\LocalMachine by thumbprint."""
        certificates = self._query(thumbprint)
        logger.debug(f"Found {len(certificates)} certificate(s) for {thumbprint}")
        return certificates

    def list_certificates(self) -> list[StoredCertificate]:
        """List every certificate in Cert:\\LocalMachine."""
        return self._query(None)
