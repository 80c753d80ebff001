"""
Application configuration and environment variables.

This module unifies configuration using pydantic-settings.
Variables can come from:
1. .env file
2. System environment variables (have priority)
3. Default values

Naming convention:
- In Python code: snake_case (infrastructure_provider)
- In .env or ENV vars: UPPER_CASE (INFRASTRUCTURE_PROVIDER)
- Pydantic automatically converts between both
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified application configuration.

    All variables can be defined in:
    - .env file: VARIABLE_NAME=value
    - Environment variables: export VARIABLE_NAME=value

    Example:
        # In .env or as environment variable:
        INFRASTRUCTURE_PROVIDER=windows
        LOG_LEVEL=DEBUG
        WINRM_HOST=rdp01.example.org
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allows using uppercase or lowercase
        extra="ignore",  # Ignores extra variables in .env
    )

    # ============================================================================
    # PROJECT SETTINGS
    # ============================================================================
    project_name: str = Field(default="rdpbind", description="Project name")
    project_description: str = Field(
        default="Binds an issued TLS certificate to the Remote Desktop listener",
        description="Project description",
    )

    # ============================================================================
    # LOGGING SETTINGS
    # ============================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | run_id={extra[run_id]} | {name}:{function}:{line} - {message}",  # noqa: E501
        description="Log format",
    )
    logger_enqueue: bool = Field(
        default=False, description="Enqueue logs using multiprocessing"
    )

    # ============================================================================
    # INFRASTRUCTURE SETTINGS
    # ============================================================================
    infrastructure_provider: str = Field(
        default="local",
        description="Infrastructure provider (local, windows)",
    )
    infrastructure_base_dir: str = Field(
        default="./.rdpbind",
        description="Base directory for the local machine model (certificates, configuration)",
    )

    # ============================================================================
    # BINDING SETTINGS
    # ============================================================================
    service_name: str = Field(
        default="TermService",
        description="Name of the Remote Desktop service record to update",
    )
    listener_terminal_name: str = Field(
        default="RDP-Tcp",
        description="TerminalName of the Remote Desktop listener",
    )
    atomic_apply: bool = Field(
        default=False,
        description="Restore already committed targets when a later target fails",
    )

    # ============================================================================
    # POWERSHELL / WINRM SETTINGS (windows provider)
    # ============================================================================
    powershell_executable: str = Field(
        default="powershell.exe", description="PowerShell executable for local runs"
    )
    powershell_timeout_seconds: int = Field(
        default=60, description="Timeout applied to every PowerShell invocation"
    )
    winrm_host: str = Field(
        default="",
        description="Remote host reached through WinRM (empty runs PowerShell locally)",
    )
    winrm_username: str = Field(default="", description="WinRM user name")
    winrm_password: str = Field(default="", description="WinRM password")
    winrm_transport: str = Field(
        default="ntlm", description="WinRM transport (ntlm, kerberos, credssp)"
    )
    winrm_use_https: bool = Field(default=False, description="Use HTTPS for WinRM")
    winrm_port: int = Field(default=5985, description="WinRM port")
    winrm_server_cert_validation: str = Field(
        default="validate",
        description="WinRM server certificate validation (validate, ignore)",
    )

    # ============================================================================
    # HELPER METHODS
    # ============================================================================

    def get_winrm_endpoint(self) -> str:
        """
        Get the WinRM endpoint URL.

        Returns:
            str: Endpoint URL built from host, port and scheme.
        """
        scheme = "https" if self.winrm_use_https else "http"
        return f"{scheme}://{self.winrm_host}:{self.winrm_port}/wsman"


# ============================================================================
# SINGLETON PATTERN - Global settings instance
# ============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings (LRU cached).

    This function is cached, so the .env file is only read once.
    To refresh the configuration, clear the cache:
        get_settings.cache_clear()

    Returns:
        Settings: Application configuration instance.
    """
    return Settings()


settings = get_settings()
