"""Progress event emitted while indexing."""
from pydantic import BaseModel, ConfigDict, Field


class ProgressEvent(BaseModel):
    """Immutable snapshot of indexing progress.

    Attributes:
        title: Phase name, "Indexing" or "Optimizing".
        count: Units completed in the phase.
        total: Units in the phase.
        elapsed_ms: Milliseconds since the phase started.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(description="Phase name")
    count: int = Field(ge=0, description="Units completed")
    total: int = Field(ge=0, description="Units in the phase")
    elapsed_ms: int = Field(ge=0, description="Milliseconds since phase start")

    @property
    def fraction(self) -> float:
        """Completed share of the phase, 1.0 for an empty phase."""
        if self.total == 0:
            return 1.0
        return self.count / self.total
