"""Usage record emitted once per phase invocation."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class PhaseUsage(BaseModel):
    """Logged, never persisted. Carries no résumé text and no credentials."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    phase: str  # "analysis" | "rewrite"
    requested_provider: str
    provider: str
    model: str
    streamed: bool = False
    input_tokens: int = 0
    output_tokens: int = 0
    elapsed_seconds: float = 0.0
    estimated_cost_usd: float = 0.0
    success: bool = True
    error_kind: str | None = None

    def log_line(self) -> str:
        status = "ok" if self.success else f"failed ({self.error_kind})"
        return (
            f"phase={self.phase} provider={self.provider} model={self.model} "
            f"streamed={self.streamed} tokens={self.input_tokens}/{self.output_tokens} "
            f"cost=${self.estimated_cost_usd:.4f} elapsed={self.elapsed_seconds:.2f}s {status}"
        )
