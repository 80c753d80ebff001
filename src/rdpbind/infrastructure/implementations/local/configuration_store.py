"""
Local file-based configuration store implementation.

Models the terminal-services configuration surface as a JSON file:
    {base_dir}/
        configuration.json

Layout of configuration.json:
    {
        "general_settings": [{"key": "RDP-Tcp", "certificate_identifier": ""}],
        "listeners": [{"key": "RDP-Tcp", "certificate_identifier": ""}],
        "services": [{"key": "TermService", "certificate_identifier": ""}],
        "persisted_key": "",
        "restarts": [],
        "fail_commits": []
    }

"fail_commits" lists target names whose commits report failure, which
allows rehearsing the failure paths without a Windows host.
"""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from rdpbind.infrastructure.repositories.configuration_store import (
    ConfigurationRecord,
    ConfigurationStore,
    ConfigurationTarget,
)
from rdpbind.models.errors import StoreError

# Section of configuration.json holding each target's records
_SECTIONS = {
    ConfigurationTarget.GENERAL_SETTING: "general_settings",
    ConfigurationTarget.LISTENER: "listeners",
    ConfigurationTarget.SERVICE: "services",
}


def default_state(
    service_name: str = "TermService", listener_terminal_name: str = "RDP-Tcp"
) -> dict[str, Any]:
    """Configuration of a freshly installed host with no certificate bound."""
    return {
        "general_settings": [
            {"key": listener_terminal_name, "certificate_identifier": ""}
        ],
        "listeners": [{"key": listener_terminal_name, "certificate_identifier": ""}],
        "services": [{"key": service_name, "certificate_identifier": ""}],
        "persisted_key": "",
        "restarts": [],
        "fail_commits": [],
    }


class LocalConfigurationStore(ConfigurationStore):
    """File-based terminal-services configuration for local development."""

    def __init__(
        self,
        base_dir: str | Path = "./.rdpbind",
        service_name: str = "TermService",
        listener_terminal_name: str = "RDP-Tcp",
    ):
        """
        Initialize local configuration store.

        Creates configuration.json with a default host layout if missing.

        Args:
            base_dir: Base directory holding configuration.json
            service_name: Service record created in the default layout
            listener_terminal_name: Listener record created in the default layout
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.state_path = self.base_dir / "configuration.json"

        if not self.state_path.exists():
            self.save_state(default_state(service_name, listener_terminal_name))

        logger.debug(f"Initialized LocalConfigurationStore at {self.state_path}")

    def load_state(self) -> dict[str, Any]:
        """Read configuration.json."""
        try:
            return json.loads(self.state_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(
                f"Cannot read configuration state {self.state_path}: {e}"
            ) from e

    def save_state(self, state: dict[str, Any]) -> None:
        """Write configuration.json."""
        try:
            self.state_path.write_text(json.dumps(state, indent=2), encoding="utf-8")
        except OSError as e:
            raise StoreError(
                f"Cannot write configuration state {self.state_path}: {e}"
            ) from e

    def _should_fail(self, state: dict[str, Any], target: ConfigurationTarget) -> bool:
        return target.value in state.get("fail_commits", [])

    def list_records(
        self, target: ConfigurationTarget, name_filter: str | None = None
    ) -> list[ConfigurationRecord]:
        """Fetch records of a target from configuration.json."""
        if target not in _SECTIONS:
            raise ValueError(f"Target {target.value} has no records")

        state = self.load_state()
        return [
            ConfigurationRecord(
                target=target,
                key=entry["key"],
                certificate_identifier=entry.get("certificate_identifier", ""),
            )
            for entry in state.get(_SECTIONS[target], [])
            if name_filter is None or entry["key"] == name_filter
        ]

    def commit(self, record: ConfigurationRecord, certificate_identifier: str) -> bool:
        """Set the certificate identifier on the matching entry and save."""
        state = self.load_state()

        if self._should_fail(state, record.target):
            logger.debug(f"Commit to {record.target.value} '{record.key}' rejected")
            return False

        for entry in state.get(_SECTIONS[record.target], []):
            if entry["key"] == record.key:
                entry["certificate_identifier"] = certificate_identifier
                break
        else:
            logger.debug(f"Record {record.target.value} '{record.key}' vanished")
            return False

        self.save_state(state)
        record.certificate_identifier = certificate_identifier
        return True

    def write_persisted_key(self, certificate_identifier: str) -> bool:
        """Store the thumbprint in the persisted key entry."""
        state = self.load_state()

        if self._should_fail(state, ConfigurationTarget.PERSISTED_KEY):
            logger.debug("Write to persisted key rejected")
            return False

        state["persisted_key"] = certificate_identifier
        self.save_state(state)
        return True

    def restart_service(self, service_name: str) -> bool:
        """Record a restart of the service."""
        state = self.load_state()

        if not any(entry["key"] == service_name for entry in state.get("services", [])):
            logger.debug(f"Cannot restart unknown service '{service_name}'")
            return False

        state.setdefault("restarts", []).append(service_name)
        self.save_state(state)
        return True
