from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class OutboundResult(BaseModel):
    """What the destination service answered, whatever the status."""

    model_config = ConfigDict(frozen=True)

    status_code: int = Field()
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    body: bytes = Field(default=b"")

    @property
    def is_upstream_error(self) -> bool:
        """True for a non-2xx answer from the destination."""
        return not 200 <= self.status_code < 300
