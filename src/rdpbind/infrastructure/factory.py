"""
Infrastructure factory for provider selection.

Selects appropriate store implementations based on configuration:
- local: JSON-file machine model for development and rehearsals
- windows: Certificate store and terminal-services settings of a
  Windows host, through local PowerShell or WinRM

Usage:
    from rdpbind.infrastructure import InfrastructureFactory
    from rdpbind.config import get_settings

    # Option 1: From settings
    settings = get_settings()
    factory = InfrastructureFactory.from_settings(settings)

    # Option 2: Manual configuration
    factory = InfrastructureFactory(provider="local", base_dir="/tmp/rdp")

    # Get stores
    certificate_store = factory.get_certificate_store()
    configuration_store = factory.get_configuration_store()
"""

from typing import TYPE_CHECKING, Literal

from loguru import logger

from rdpbind.infrastructure.repositories import (
    CertificateStore,
    ConfigurationStore,
)

if TYPE_CHECKING:
    from rdpbind.config import Settings
    from rdpbind.infrastructure.implementations.windows import PowerShellSession

InfrastructureProvider = Literal["local", "windows"]


class InfrastructureFactory:
    """
    Factory for creating store instances.

    Provides dependency injection for the binder; tests construct it with
    provider="local" and a temporary base_dir.
    """

    def __init__(self, provider: InfrastructureProvider | None = None, **config):
        """
        Initialize infrastructure factory.

        Args:
            provider: Infrastructure provider ("local", "windows").
                     If None, uses "local" as default.
            **config: Provider-specific configuration options

        Raises:
            ValueError: If provider is not supported
        """
        if provider is None:
            provider = "local"

        if provider not in ("local", "windows"):
            raise ValueError(f"Unsupported provider: {provider}")

        self.provider = provider
        self.config = config
        self._session: "PowerShellSession | None" = None

        logger.debug(f"Initialized InfrastructureFactory with provider: {provider}")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "InfrastructureFactory":
        """
        Create factory from Settings object.

        Args:
            settings: Application settings from config.py

        Returns:
            InfrastructureFactory configured from settings
        """
        config = {
            "base_dir": settings.infrastructure_base_dir,
            "service_name": settings.service_name,
            "listener_terminal_name": settings.listener_terminal_name,
            "powershell_executable": settings.powershell_executable,
            "powershell_timeout_seconds": settings.powershell_timeout_seconds,
            "winrm_host": settings.winrm_host,
            "winrm_endpoint": settings.get_winrm_endpoint(),
            "winrm_username": settings.winrm_username,
            "winrm_password": settings.winrm_password,
            "winrm_transport": settings.winrm_transport,
            "winrm_server_cert_validation": settings.winrm_server_cert_validation,
        }

        return cls(provider=settings.infrastructure_provider, **config)

    def get_powershell_session(self) -> "PowerShellSession":
        """
        Get the PowerShell transport for the windows provider.

        A WinRM session is used when a host is configured, otherwise
        PowerShell runs on this machine. The session is shared by all
        stores created by this factory.

        Returns:
            PowerShellSession implementation
        """
        if self._session is not None:
            return self._session

        from rdpbind.infrastructure.implementations.windows import (
            LocalPowerShellSession,
            RemotePowerShellSession,
        )

        timeout = self.config.get("powershell_timeout_seconds", 60)

        if self.config.get("winrm_host"):
            self._session = RemotePowerShellSession(
                endpoint=self.config["winrm_endpoint"],
                username=self.config.get("winrm_username", ""),
                password=self.config.get("winrm_password", ""),
                transport=self.config.get("winrm_transport", "ntlm"),
                server_cert_validation=self.config.get(
                    "winrm_server_cert_validation", "validate"
                ),
                timeout_seconds=timeout,
            )
        else:
            self._session = LocalPowerShellSession(
                executable=self.config.get("powershell_executable", "powershell.exe"),
                timeout_seconds=timeout,
            )

        return self._session

    def get_certificate_store(self) -> CertificateStore:
        """
        Get certificate store for configured provider.

        Returns:
            CertificateStore implementation
        """
        if self.provider == "local":
            from rdpbind.infrastructure.implementations.local import (
                LocalCertificateStore,
            )

            return LocalCertificateStore(base_dir=self.config.get("base_dir", "./.rdpbind"))

        from rdpbind.infrastructure.implementations.windows import (
            WindowsCertificateStore,
        )

        return WindowsCertificateStore(session=self.get_powershell_session())

    def get_configuration_store(self) -> ConfigurationStore:
        """
        Get configuration store for configured provider.

        Returns:
            ConfigurationStore implementation
        """
        service_name = self.config.get("service_name", "TermService")
        listener_terminal_name = self.config.get("listener_terminal_name", "RDP-Tcp")

        if self.provider == "local":
            from rdpbind.infrastructure.implementations.local import (
                LocalConfigurationStore,
            )

            return LocalConfigurationStore(
                base_dir=self.config.get("base_dir", "./.rdpbind"),
                service_name=service_name,
                listener_terminal_name=listener_terminal_name,
            )

        from rdpbind.infrastructure.implementations.windows import (
            WindowsConfigurationStore,
        )

        return WindowsConfigurationStore(
            session=self.get_powershell_session(),
            service_name=service_name,
            listener_terminal_name=listener_terminal_name,
        )
