"""
PowerShell transports for the Windows provider.

Two sessions share the pywinrm-style ``run_ps(script)`` contract:
- LocalPowerShellSession: runs powershell.exe on this machine
- RemotePowerShellSession: runs the script on a remote host over WinRM

Both bound every call by a timeout and report transport failures as
StoreError, so that a hung CIM provider never blocks a renewal run.
"""

import base64
import json
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import requests
import winrm
from loguru import logger
from winrm.exceptions import WinRMError, WinRMOperationTimeoutError, WinRMTransportError

from rdpbind.models.errors import StoreError


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


def wql_filter(property_name: str, value: str) -> str:
    """Build a WQL equality filter, e.g. ``TerminalName='RDP-Tcp'``."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"{property_name}='{escaped}'"


@dataclass
class PowerShellResult:
    """Outcome of a PowerShell invocation."""

    status_code: int
    std_out: str
    std_err: str

    @property
    def ok(self) -> bool:
        return self.status_code == 0

    def json(self) -> list[dict[str, Any]]:
        """
        Parse ConvertTo-Json output as a list of objects.

        ConvertTo-Json renders a single object without the surrounding
        array and an empty pipeline as nothing at all; both are
        normalized to a list.

        Raises:
            StoreError: If the output is not valid JSON
        """
        text = self.std_out.strip()
        if not text:
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreError(f"Unexpected PowerShell output: {text[:200]}") from e
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return data


class PowerShellSession(ABC):
    """Runs PowerShell scripts against the target host."""

    @abstractmethod
    def run_ps(self, script: str) -> PowerShellResult:
        """
        Run a PowerShell script.

        Args:
            script: Script text

        Returns:
            Exit status and captured output

        Raises:
            StoreError: If the script could not be run at all
        """
        pass


class LocalPowerShellSession(PowerShellSession):
    """Runs scripts with the local PowerShell executable."""

    def __init__(self, executable: str = "powershell.exe", timeout_seconds: int = 60):
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    def run_ps(self, script: str) -> PowerShellResult:
        # -EncodedCommand avoids any quoting of the script on the command line
        encoded = base64.b64encode(script.encode("utf-16-le")).decode("ascii")
        command = [
            self.executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-EncodedCommand",
            encoded,
        ]

        logger.debug(f"Running local PowerShell script:\n{script}")

        try:
            process = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise StoreError(
                f"PowerShell did not finish within {self.timeout_seconds}s"
            ) from e
        except OSError as e:
            raise StoreError(f"Cannot start {self.executable}: {e}") from e

        return PowerShellResult(
            status_code=process.returncode,
            std_out=process.stdout or "",
            std_err=process.stderr or "",
        )


class RemotePowerShellSession(PowerShellSession):
    """Runs scripts on a remote host through pywinrm."""

    def __init__(
        self,
        endpoint: str,
        username: str,
        password: str,
        transport: str = "ntlm",
        server_cert_validation: str = "validate",
        timeout_seconds: int = 60,
    ):
        self.endpoint = endpoint
        # pywinrm requires the read timeout to exceed the operation timeout
        self.session = winrm.Session(
            endpoint,
            auth=(username, password),
            transport=transport,
            server_cert_validation=server_cert_validation,
            operation_timeout_sec=timeout_seconds,
            read_timeout_sec=timeout_seconds + 10,
        )

        logger.debug(f"Initialized WinRM session to {endpoint} ({transport})")

    def run_ps(self, script: str) -> PowerShellResult:
        logger.debug(f"Running remote PowerShell script on {self.endpoint}:\n{script}")

        try:
            response = self.session.run_ps(script)
        except (
            WinRMError,
            WinRMTransportError,
            WinRMOperationTimeoutError,
            requests.exceptions.RequestException,
        ) as e:
            raise StoreError(f"WinRM call to {self.endpoint} failed: {e}") from e

        return PowerShellResult(
            status_code=response.status_code,
            std_out=response.std_out.decode("utf-8", errors="replace")
            if response.std_out
            else "",
            std_err=response.std_err.decode("utf-8", errors="replace")
            if response.std_err
            else "",
        )
