"""Windows infrastructure implementations driven through PowerShell."""

from rdpbind.infrastructure.implementations.windows.certificate_store import (
    WindowsCertificateStore,
)
from rdpbind.infrastructure.implementations.windows.configuration_store import (
    WindowsConfigurationStore,
)
from rdpbind.infrastructure.implementations.windows.powershell import (
    LocalPowerShellSession,
    PowerShellResult,
    PowerShellSession,
    RemotePowerShellSession,
)

__all__ = [
    "LocalPowerShellSession",
    "PowerShellResult",
    "PowerShellSession",
    "RemotePowerShellSession",
    "WindowsCertificateStore",
    "WindowsConfigurationStore",
]
