"""Tests for the PowerShell transports."""

import base64
import subprocess
from unittest.mock import MagicMock

import pytest
import requests
from winrm.exceptions import WinRMError, WinRMOperationTimeoutError

from rdpbind.infrastructure.implementations.windows.powershell import (
    LocalPowerShellSession,
    PowerShellResult,
    RemotePowerShellSession,
    ps_quote,
    wql_filter,
)
from rdpbind.models.errors import StoreError

MODULE = "rdpbind.infrastructure.implementations.windows.powershell"


def test_ps_quote_doubles_single_quotes():
    assert ps_quote("RDP Certificate") == "'RDP Certificate'"
    assert ps_quote("it's") == "'it''s'"


def test_wql_filter_escapes_value():
    assert wql_filter("Name", "TermService") == "Name='TermService'"
    assert wql_filter("Name", "a'b\\c") == "Name='a\\'b\\\\c'"


class TestPowerShellResultJson:
    """ConvertTo-Json output normalization."""

    @pytest.mark.parametrize("output", ["", "   \n", "null", "[]"])
    def test_empty_outputs(self, output):
        assert PowerShellResult(0, output, "").json() == []

    def test_single_object(self):
        assert PowerShellResult(0, '{"Key": "RDP-Tcp"}', "").json() == [{"Key": "RDP-Tcp"}]

    def test_array(self):
        assert PowerShellResult(0, '[{"a": 1}, {"a": 2}]\r\n', "").json() == [
            {"a": 1},
            {"a": 2},
        ]

    def test_invalid_output(self):
        with pytest.raises(StoreError):
            PowerShellResult(0, "WARNING: something", "").json()

    def test_ok(self):
        assert PowerShellResult(0, "", "").ok is True
        assert PowerShellResult(1, "", "").ok is False


class TestLocalPowerShellSession:
    """powershell.exe through subprocess."""

    def test_runs_encoded_command(self, mocker):
        run = mocker.patch(
            f"{MODULE}.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="out", stderr=""),
        )
        session = LocalPowerShellSession(executable="pwsh", timeout_seconds=5)

        result = session.run_ps("Get-Date")

        assert result == PowerShellResult(status_code=0, std_out="out", std_err="")
        command = run.call_args.args[0]
        assert command[0] == "pwsh"
        assert "-NonInteractive" in command
        encoded = command[command.index("-EncodedCommand") + 1]
        assert base64.b64decode(encoded).decode("utf-16-le") == "Get-Date"
        assert run.call_args.kwargs["timeout"] == 5

    def test_nonzero_exit_is_returned(self, mocker):
        mocker.patch(
            f"{MODULE}.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=1, stdout=None, stderr="denied"),
        )

        result = LocalPowerShellSession().run_ps("Restart-Service x")

        assert result.status_code == 1
        assert result.std_out == ""
        assert result.std_err == "denied"

    def test_timeout_raises_store_error(self, mocker):
        mocker.patch(
            f"{MODULE}.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="powershell.exe", timeout=1),
        )

        with pytest.raises(StoreError, match="did not finish"):
            LocalPowerShellSession(timeout_seconds=1).run_ps("Start-Sleep 10")

    def test_missing_executable_raises_store_error(self, mocker):
        mocker.patch(f"{MODULE}.subprocess.run", side_effect=FileNotFoundError("powershell.exe"))

        with pytest.raises(StoreError, match="Cannot start"):
            LocalPowerShellSession().run_ps("Get-Date")


class TestRemotePowerShellSession:
    """pywinrm sessions."""

    @pytest.fixture
    def winrm_session(self, mocker):
        session_cls = mocker.patch(f"{MODULE}.winrm.Session")
        return session_cls

    def test_session_configuration(self, winrm_session):
        RemotePowerShellSession(
            endpoint="https://rdp01:5986/wsman",
            username="admin",
            password="secret",
            transport="kerberos",
            server_cert_validation="ignore",
            timeout_seconds=30,
        )

        winrm_session.assert_called_once_with(
            "https://rdp01:5986/wsman",
            auth=("admin", "secret"),
            transport="kerberos",
            server_cert_validation="ignore",
            operation_timeout_sec=30,
            read_timeout_sec=40,
        )

    def test_run_ps_decodes_output(self, winrm_session):
        winrm_session.return_value.run_ps.return_value = MagicMock(
            status_code=0, std_out=b'{"Key": "RDP-Tcp"}', std_err=b""
        )
        session = RemotePowerShellSession("http://rdp01:5985/wsman", "admin", "secret")

        result = session.run_ps("Get-Date")

        assert result.ok
        assert result.json() == [{"Key": "RDP-Tcp"}]
        assert result.std_err == ""
        winrm_session.return_value.run_ps.assert_called_once_with("Get-Date")

    @pytest.mark.parametrize(
        "error",
        [
            WinRMError("bad request"),
            WinRMOperationTimeoutError(),
            requests.exceptions.ConnectionError("refused"),
        ],
    )
    def test_transport_errors_raise_store_error(self, winrm_session, error):
        winrm_session.return_value.run_ps.side_effect = error
        session = RemotePowerShellSession("http://rdp01:5985/wsman", "admin", "secret")

        with pytest.raises(StoreError, match="rdp01"):
            session.run_ps("Get-Date")
