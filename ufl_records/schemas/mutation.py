from __future__ import annotations

from pydantic import BaseModel, Field


class MutationResult(BaseModel):
    """Outcome of a command after the post-write reload."""

    remote_confirmed: bool = Field(
        description="False when a remote write failed and the reload may have reverted the change"
    )
    source: str = Field(
        description="Where the reloaded working set came from: remote, cache or empty"
    )
