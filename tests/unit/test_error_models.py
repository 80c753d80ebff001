"""Tests for outcome and error models."""

import os
import subprocess
import sys

import pytest

from rdpbind.infrastructure import repositories
from rdpbind.models.binding import BindingResult
from rdpbind.models.errors import (
    ApplyError,
    BindingOutcome,
    NotFoundError,
    TargetAbsent,
    ValidationError,
)
from rdpbind.models.targets import ConfigurationTarget


def test_outcome_exit_codes():
    assert [outcome.exit_code for outcome in BindingOutcome] == [0, 1, 2, 3, 4, 5, 6]


@pytest.mark.parametrize(
    ("target", "outcome"),
    [
        (ConfigurationTarget.GENERAL_SETTING, BindingOutcome.GENERAL_SETTING_FAILED),
        (ConfigurationTarget.LISTENER, BindingOutcome.LISTENER_FAILED),
        (ConfigurationTarget.SERVICE, BindingOutcome.SERVICE_FAILED),
        (ConfigurationTarget.PERSISTED_KEY, BindingOutcome.PERSISTED_KEY_FAILED),
    ],
)
def test_apply_error_outcome_per_target(target, outcome):
    error = ApplyError(target, "commit rejected")

    assert error.outcome is outcome
    assert error.message == f"Failed to apply certificate to {target.description}: commit rejected"


def test_not_found_message():
    error = NotFoundError("A1B2")

    assert error.outcome is BindingOutcome.CERTIFICATE_NOT_FOUND
    assert str(error) == "Certificate with thumbprint 'A1B2' not found"


def test_validation_error_message():
    error = ValidationError("Expected", "Actual")

    assert error.outcome is BindingOutcome.LABEL_MISMATCH
    assert "'Expected'" in error.message
    assert "'Actual'" in error.message


def test_target_absent_is_not_a_binding_error():
    error = TargetAbsent(ConfigurationTarget.SERVICE, "TermService")

    assert not isinstance(error, ApplyError)
    assert "TermService" in str(error)


def test_binding_result_defaults_to_success():
    result = BindingResult(thumbprint="A1B2", friendly_name="RDP", message="done")

    assert result.exit_code == 0
    assert result.applied_targets == []


def test_repositories_reexport_configuration_target():
    assert repositories.ConfigurationTarget is ConfigurationTarget


def test_models_import_without_infrastructure():
    # Fresh interpreter, so modules loaded by other tests do not count
    code = (
        "import sys, rdpbind.models; "
        "print(sorted(m for m in sys.modules if m.startswith('rdpbind.infrastructure')))"
    )
    completed = subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        check=True,
        env={**os.environ, "PYTHONPATH": os.pathsep.join(sys.path)},
    )

    assert completed.stdout.strip() == "[]"
