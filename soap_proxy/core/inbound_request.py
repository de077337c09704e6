from typing import List, Optional, Tuple

import fastapi
from pydantic import BaseModel, ConfigDict, Field


class InboundRequest(BaseModel):
    """The parts of an inbound HTTP request the proxy pipeline works with."""

    model_config = ConfigDict(frozen=True)

    method: str = Field()
    path: str = Field()
    query_string: str = Field(default="")
    # Ordered, repeated names allowed.
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    body: bytes = Field(default=b"")

    @classmethod
    def from_fastapi(cls, request: fastapi.Request, body: bytes) -> "InboundRequest":
        # Prefer the undecoded path so percent-escapes reach the destination unchanged
        raw_path = request.scope.get("raw_path")
        path = raw_path.decode("latin-1").split("?", 1)[0] if raw_path else request.url.path
        return cls(
            method=request.method.upper(),
            path=path,
            query_string=request.url.query,
            headers=[(name, value) for name, value in request.headers.items()],
            body=body,
        )

    def get_header(self, name: str) -> Optional[str]:
        """Returns the first value of a header, compared case-insensitively."""
        lowered = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == lowered:
                return value
        return None

    @property
    def uri(self) -> str:
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path
