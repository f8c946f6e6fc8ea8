"""
Content models for Stash.

This module defines the records a user captures (blocks) and the named
channels they are filed into.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class BlockType(str, Enum):
    """The kind of payload a block carries."""

    TEXT = "text"
    LINK = "link"
    IMAGE = "image"


class Block(BaseModel):
    """
    A single captured item: a piece of text, a URL, or an embedded image.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        description="Unique, stable identifier assigned at creation"
    )

    type: BlockType = Field(
        default=BlockType.TEXT,
        description="The payload kind; changed only by an explicit edit"
    )

    content: str = Field(
        ...,
        description="Raw text, URL string, or image data reference"
    )

    title: Optional[str] = Field(
        default=None,
        description="Short human- or AI-supplied title"
    )

    description: Optional[str] = Field(
        default=None,
        description="Short human- or AI-supplied summary"
    )

    tags: List[str] = Field(
        default_factory=list,
        description="Lowercase labels in display order"
    )

    channel_id: Optional[str] = Field(
        default=None,
        alias="channelId",
        description="The channel this block is filed into, or None when unfiled"
    )

    created_at: int = Field(
        ...,
        alias="createdAt",
        description="Creation time in epoch milliseconds; the default sort key"
    )


class Channel(BaseModel):
    """
    A named bucket of blocks, optionally grouped under a vertical.

    Identity is the id. Titles and slugs may collide.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique, stable identifier")

    title: str = Field(..., description="Display name")

    vertical: Optional[str] = Field(
        default=None,
        description="Group label; channels sharing it form a group"
    )

    slug: str = Field(
        default="",
        description="Lowercase form of the title, cosmetic only"
    )

    created_at: int = Field(
        ...,
        alias="createdAt",
        description="Creation time in epoch milliseconds"
    )

    @property
    def display_name(self) -> str:
        """The 'Group/Name' form used when editing the channel."""
        if self.vertical:
            return f"{self.vertical}/{self.title}"
        return self.title
