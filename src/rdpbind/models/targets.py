"""Configuration surfaces a certificate thumbprint is committed to."""

from enum import Enum


class ConfigurationTarget(str, Enum):
    """Configuration surfaces that can carry the RDP certificate thumbprint."""

    GENERAL_SETTING = "general_setting"
    LISTENER = "listener"
    SERVICE = "service"
    PERSISTED_KEY = "persisted_key"

    @property
    def description(self) -> str:
        return {
            ConfigurationTarget.GENERAL_SETTING: "terminal services general setting",
            ConfigurationTarget.LISTENER: "remote desktop listener",
            ConfigurationTarget.SERVICE: "remote desktop service",
            ConfigurationTarget.PERSISTED_KEY: "persisted registry key",
        }[self]
