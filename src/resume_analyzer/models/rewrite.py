"""Pydantic models for the rewrite phase output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ChangelogEntry(BaseModel):
    section: str = ""
    # added, removed, modified or restructured; other values pass through
    change_type: str = "modified"
    description: str = ""
    original: str | None = None
    improved: str | None = None

    model_config = ConfigDict(extra="allow")


class RewritePhaseResult(BaseModel):
    improved_resume_markdown: str = ""
    changelog: list[ChangelogEntry] = []
    next_steps: list[str] = []

    model_config = ConfigDict(extra="allow")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)
