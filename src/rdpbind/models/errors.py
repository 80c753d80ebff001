"""Binding outcomes and the error taxonomy mapped onto process exit codes."""

from enum import Enum

from rdpbind.models.targets import ConfigurationTarget


class BindingOutcome(Enum):
    """Terminal condition of a binding run.

    The value of each member is the process exit code reported to the
    calling orchestrator (usually the ACME client that renewed the
    certificate).
    """

    SUCCESS = 0
    CERTIFICATE_NOT_FOUND = 1
    LABEL_MISMATCH = 2
    GENERAL_SETTING_FAILED = 3
    LISTENER_FAILED = 4
    SERVICE_FAILED = 5
    PERSISTED_KEY_FAILED = 6

    @property
    def exit_code(self) -> int:
        return self.value


# Outcome reported when the commit to a given target fails
target_failure_outcomes: dict[ConfigurationTarget, BindingOutcome] = {
    ConfigurationTarget.GENERAL_SETTING: BindingOutcome.GENERAL_SETTING_FAILED,
    ConfigurationTarget.LISTENER: BindingOutcome.LISTENER_FAILED,
    ConfigurationTarget.SERVICE: BindingOutcome.SERVICE_FAILED,
    ConfigurationTarget.PERSISTED_KEY: BindingOutcome.PERSISTED_KEY_FAILED,
}


class BindingError(Exception):
    """Base class for fatal binding failures.

    Attributes:
        outcome: Outcome (and therefore exit code) the failure maps to.
    """

    outcome: BindingOutcome = BindingOutcome.SUCCESS

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BindingError):
    """No certificate in the store matches the normalized thumbprint."""

    outcome = BindingOutcome.CERTIFICATE_NOT_FOUND

    def __init__(self, thumbprint: str, detail: str | None = None):
        message = f"Certificate with thumbprint '{thumbprint}' not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.thumbprint = thumbprint


class ValidationError(BindingError):
    """The located certificate's friendly name differs from the expected one."""

    outcome = BindingOutcome.LABEL_MISMATCH

    def __init__(self, expected_label: str, actual_label: str):
        super().__init__(
            f"Certificate friendly name mismatch: expected '{expected_label}', "
            f"found '{actual_label}'"
        )
        self.expected_label = expected_label
        self.actual_label = actual_label


class ApplyError(BindingError):
    """Committing the thumbprint to a configuration target failed."""

    def __init__(self, target: ConfigurationTarget, detail: str | None = None):
        message = f"Failed to apply certificate to {target.description}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.target = target
        self.outcome = target_failure_outcomes[target]


class TargetAbsent(Exception):
    """A configuration target has no record at all. Never fatal."""

    def __init__(self, target: ConfigurationTarget, name: str):
        super().__init__(f"No {target.description} record named '{name}' found")
        self.target = target
        self.name = name


class StoreError(Exception):
    """An infrastructure call (PowerShell, WinRM, local state file) failed."""
