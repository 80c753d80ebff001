"""
Windows terminal-services configuration store.

Targets map onto the host as follows:
- general setting: Win32_TSGeneralSetting (root\\cimv2\\TerminalServices)
- listener: Win32_TSGeneralSetting filtered by TerminalName
- service: Win32_Service filtered by Name, certificate kept under
  HKLM:\\SYSTEM\\CurrentControlSet\\Services\\<name>\\Parameters
- persisted key: SSLCertificateSHA1Hash (binary) under the WinStations key
"""

from loguru import logger

from rdpbind.infrastructure.implementations.windows.powershell import (
    PowerShellResult,
    PowerShellSession,
    ps_quote,
    wql_filter,
)
from rdpbind.infrastructure.repositories.configuration_store import (
    ConfigurationRecord,
    ConfigurationStore,
    ConfigurationTarget,
)
from rdpbind.models.errors import StoreError

TS_NAMESPACE = "root\\cimv2\\TerminalServices"
TS_GENERAL_SETTING_CLASS = "Win32_TSGeneralSetting"
CERTIFICATE_VALUE_NAME = "SSLCertificateSHA1Hash"
SERVICES_KEY = "HKLM:\\SYSTEM\\CurrentControlSet\\Services"
WINSTATIONS_KEY = "HKLM:\\SYSTEM\\CurrentControlSet\\Control\\Terminal Server\\WinStations"

_PREAMBLE = "$ErrorActionPreference = 'Stop'\n"


def _ts_setting_query(wql: str | None) -> str:
    query = (
        f"Get-CimInstance -Namespace {ps_quote(TS_NAMESPACE)} "
        f"-ClassName {TS_GENERAL_SETTING_CLASS}"
    )
    if wql is not None:
        query += f" -Filter {ps_quote(wql)}"
    return query


def build_ts_setting_list(wql: str | None = None) -> str:
    """List Win32_TSGeneralSetting instances as {Key, CertificateIdentifier}."""
    return (
        _PREAMBLE
        + f"$records = @({_ts_setting_query(wql)} | Select-Object "
        "@{n='Key';e={$_.TerminalName}}, "
        f"@{{n='CertificateIdentifier';e={{$_.{CERTIFICATE_VALUE_NAME}}}}})\n"
        "ConvertTo-Json -Compress -InputObject $records"
    )


def build_ts_setting_commit(terminal_name: str, thumbprint: str) -> str:
    """Set SSLCertificateSHA1Hash on one Win32_TSGeneralSetting instance."""
    return (
        _PREAMBLE
        + f"$setting = {_ts_setting_query(wql_filter('TerminalName', terminal_name))}\n"
        "if (-not $setting) { throw 'Terminal setting not found' }\n"
        "Set-CimInstance -InputObject $setting "
        f"-Property @{{ {CERTIFICATE_VALUE_NAME} = {ps_quote(thumbprint)} }}"
    )


def build_service_list(service_name: str) -> str:
    """List the named service with the certificate stored in its Parameters key."""
    return (
        _PREAMBLE
        + "$records = @(Get-CimInstance -ClassName Win32_Service "
        f"-Filter {ps_quote(wql_filter('Name', service_name))} | ForEach-Object {{\n"
        f"    $key = Join-Path {ps_quote(SERVICES_KEY)} (Join-Path $_.Name 'Parameters')\n"
        f"    $value = Get-ItemProperty -Path $key -Name {CERTIFICATE_VALUE_NAME} "
        "-ErrorAction SilentlyContinue\n"
        "    [pscustomobject]@{ Key = $_.Name; "
        f"CertificateIdentifier = $value.{CERTIFICATE_VALUE_NAME} }}\n"
        "})\n"
        "ConvertTo-Json -Compress -InputObject $records"
    )


def build_service_commit(service_name: str, thumbprint: str) -> str:
    """Store the thumbprint in the service's Parameters key."""
    key = f"{SERVICES_KEY}\\{service_name}\\Parameters"
    return (
        _PREAMBLE
        + f"if (-not (Test-Path -Path {ps_quote(key)})) "
        f"{{ New-Item -Path {ps_quote(key)} -Force | Out-Null }}\n"
        f"Set-ItemProperty -Path {ps_quote(key)} -Name {CERTIFICATE_VALUE_NAME} "
        f"-Value {ps_quote(thumbprint)}"
    )


def build_persisted_key_write(terminal_name: str, thumbprint: str) -> str:
    """Write the thumbprint as binary SSLCertificateSHA1Hash under WinStations."""
    key = f"{WINSTATIONS_KEY}\\{terminal_name}"
    return (
        _PREAMBLE
        + f"$hex = {ps_quote(thumbprint)}\n"
        "$bytes = [byte[]]@(for ($i = 0; $i -lt $hex.Length; $i += 2) "
        "{ [Convert]::ToByte($hex.Substring($i, 2), 16) })\n"
        f"Set-ItemProperty -Path {ps_quote(key)} -Name {CERTIFICATE_VALUE_NAME} "
        "-Type Binary -Value $bytes"
    )


def build_service_restart(service_name: str) -> str:
    """Restart a Windows service."""
    return _PREAMBLE + f"Restart-Service -Name {ps_quote(service_name)} -Force"


class WindowsConfigurationStore(ConfigurationStore):
    """Terminal-services configuration of a Windows host."""

    def __init__(
        self,
        session: PowerShellSession,
        service_name: str = "TermService",
        listener_terminal_name: str = "RDP-Tcp",
    ):
        """
        Initialize Windows configuration store.

        Args:
            session: PowerShell transport to the target host
            service_name: Service used when no name filter is given
            listener_terminal_name: TerminalName of the RDP listener
        """
        self.session = session
        self.service_name = service_name
        self.listener_terminal_name = listener_terminal_name

    def _run(self, script: str) -> PowerShellResult:
        result = self.session.run_ps(script)
        if not result.ok:
            logger.debug(f"PowerShell failed ({result.status_code}): {result.std_err}")
        return result

    def list_records(
        self, target: ConfigurationTarget, name_filter: str | None = None
    ) -> list[ConfigurationRecord]:
        """Fetch records of a target through CIM."""
        if target == ConfigurationTarget.GENERAL_SETTING:
            wql = wql_filter("TerminalName", name_filter) if name_filter else None
            script = build_ts_setting_list(wql)
        elif target == ConfigurationTarget.LISTENER:
            script = build_ts_setting_list(
                wql_filter("TerminalName", name_filter or self.listener_terminal_name)
            )
        elif target == ConfigurationTarget.SERVICE:
            script = build_service_list(name_filter or self.service_name)
        else:
            raise ValueError(f"Target {target.value} has no records")

        result = self._run(script)
        if not result.ok:
            raise StoreError(
                f"Reading {target.description} failed: {result.std_err.strip()}"
            )

        return [
            ConfigurationRecord(
                target=target,
                key=item["Key"],
                certificate_identifier=item.get("CertificateIdentifier") or "",
            )
            for item in result.json()
        ]

    def commit(self, record: ConfigurationRecord, certificate_identifier: str) -> bool:
        """Write the thumbprint to the record's CIM instance or registry key."""
        if record.target == ConfigurationTarget.SERVICE:
            script = build_service_commit(record.key, certificate_identifier)
        else:
            script = build_ts_setting_commit(record.key, certificate_identifier)

        result = self._run(script)
        if not result.ok:
            logger.debug(
                f"Commit to {record.target.description} '{record.key}' failed: "
                f"{result.std_err.strip()}"
            )
            return False

        record.certificate_identifier = certificate_identifier
        return True

    def write_persisted_key(self, certificate_identifier: str) -> bool:
        """Write SSLCertificateSHA1Hash under the listener's WinStations key."""
        result = self._run(
            build_persisted_key_write(self.listener_terminal_name, certificate_identifier)
        )
        if not result.ok:
            logger.debug(f"Writing persisted key failed: {result.std_err.strip()}")
        return result.ok

    def restart_service(self, service_name: str) -> bool:
        """Restart the service with Restart-Service."""
        result = self._run(build_service_restart(service_name))
        if not result.ok:
            logger.debug(
                f"Restarting service '{service_name}' failed: {result.std_err.strip()}"
            )
        return result.ok
