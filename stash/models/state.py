"""
Application state and enrichment result models for Stash.
"""

import time
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .content import Block, Channel


DEFAULT_ACTIVE_CHANNEL_ID = "c_inbox"

# Fields written to the persisted snapshot; everything else is either
# secret (the credential) or session-only.
PERSISTED_FIELDS = {"blocks", "channels", "active_channel_id"}


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def default_channels() -> List[Channel]:
    """
    Build the channel set seeded on first run.

    Returns:
        A fresh list of the built-in channels
    """
    created = now_ms()
    return [
        Channel(id="c_inbox", title="Inbox", slug="inbox", created_at=created),
        Channel(id="c_design", title="Patterns", slug="patterns", vertical="Design", created_at=created),
        Channel(id="c_code", title="Snippets", slug="snippets", vertical="Code", created_at=created),
    ]


class ApplicationState(BaseModel):
    """
    The whole in-memory state of one Stash session.
    """

    model_config = ConfigDict(populate_by_name=True)

    blocks: List[Block] = Field(
        default_factory=list,
        description="Every block; order carries no meaning"
    )

    channels: List[Channel] = Field(
        default_factory=default_channels,
        description="Every channel, seeded with the built-in set"
    )

    active_channel_id: Optional[str] = Field(
        default=DEFAULT_ACTIVE_CHANNEL_ID,
        alias="activeChannelId",
        description="Selected channel filter, or None for all blocks"
    )

    api_key: str = Field(
        default="",
        alias="apiKey",
        description="Enrichment credential; never part of the snapshot"
    )

    editing_block_id: Optional[str] = Field(
        default=None,
        alias="editingBlockId",
        description="Block currently open in the editor; session-only"
    )

    def snapshot(self) -> dict:
        """Serialize the persisted subset using the stored key names."""
        return self.model_dump(by_alias=True, mode="json", include=PERSISTED_FIELDS)


class AnalysisResult(BaseModel):
    """
    The structured metadata returned by the analyze agent.
    """

    title: str = Field(
        default="Untitled",
        description="A short title, at most a few words"
    )

    summary: str = Field(
        default="",
        description="A one-sentence summary"
    )

    tags: List[str] = Field(
        default_factory=list,
        description="Three to five lowercase single-word tags"
    )
