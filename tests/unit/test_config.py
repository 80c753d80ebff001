"""Tests for configuration settings."""

from unittest.mock import patch

from rdpbind.config import Settings, get_settings


def test_defaults():
    """Test default settings."""
    settings = Settings()

    assert settings.service_name == "TermService"
    assert settings.listener_terminal_name == "RDP-Tcp"
    assert settings.atomic_apply is False
    assert settings.powershell_timeout_seconds == 60


def test_environment_overrides():
    """Test environment variables override defaults (upper case names)."""
    with patch.dict(
        "os.environ",
        {"INFRASTRUCTURE_PROVIDER": "windows", "ATOMIC_APPLY": "true", "WINRM_PORT": "5986"},
    ):
        settings = Settings()

    assert settings.infrastructure_provider == "windows"
    assert settings.atomic_apply is True
    assert settings.winrm_port == 5986


def test_winrm_endpoint():
    """Test WinRM endpoint construction."""
    assert (
        Settings(winrm_host="rdp01", winrm_port=5985).get_winrm_endpoint()
        == "http://rdp01:5985/wsman"
    )
    assert (
        Settings(winrm_host="rdp01", winrm_use_https=True, winrm_port=5986).get_winrm_endpoint()
        == "https://rdp01:5986/wsman"
    )


def test_get_settings_is_cached():
    """Test get_settings returns the cached instance."""
    assert get_settings() is get_settings()
