"""Result model returned by a binding run."""

from pydantic import BaseModel, Field

from rdpbind.models.errors import BindingOutcome
from rdpbind.models.targets import ConfigurationTarget


class BindingResult(BaseModel):
    """Summary of a successful binding run.

    Attributes:
        outcome: Always SUCCESS for a returned result; failures are raised.
        thumbprint: Normalized thumbprint that was applied.
        friendly_name: Friendly name of the located certificate.
        message: Confirmation line written to the log and the console.
        applied_targets: Targets that received the thumbprint, in order.
        skipped_targets: Targets skipped because no record existed.
    """

    outcome: BindingOutcome = Field(default=BindingOutcome.SUCCESS)
    thumbprint: str = Field(..., description="Applied certificate thumbprint")
    friendly_name: str = Field(..., description="Certificate friendly name")
    message: str = Field(..., description="Confirmation message")
    applied_targets: list[ConfigurationTarget] = Field(default_factory=list)
    skipped_targets: list[ConfigurationTarget] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code
