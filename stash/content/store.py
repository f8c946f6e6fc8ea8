"""
Block storage for Stash.

Create, edit and remove blocks, and compute the filtered, newest-first sequence
shown for the active channel and search term.
"""

import logging
import uuid
from typing import List, Optional

from ..models import ApplicationState, Block, BlockType, now_ms


EDITABLE_FIELDS = {"type", "content", "title", "description", "tags"}


def parse_tags(tags_text: Optional[str]) -> List[str]:
    """
    Split a comma-separated tag string.

    Segments are trimmed and empty ones dropped; order is kept and duplicates
    are not removed.
    """
    if not tags_text:
        return []
    return [tag.strip() for tag in tags_text.split(",") if tag.strip()]


def as_tag_list(tags) -> List[str]:
    """Accept either a tag list or a comma-separated tag string."""
    if isinstance(tags, str):
        return parse_tags(tags)
    return list(tags or [])


def infer_block_type(text: str) -> BlockType:
    """Guess the type of pasted text: URLs become links, anything else text."""
    if text and text.startswith("http"):
        return BlockType.LINK
    return BlockType.TEXT


def visible_blocks(blocks: List[Block], search_term: str = "",
                   active_channel_id: Optional[str] = None) -> List[Block]:
    """
    Filter blocks by search term and channel, newest first.

    Args:
        blocks: All blocks
        search_term: Case-insensitive substring of content or title; empty matches all
        active_channel_id: Only blocks of this channel, or every block when None

    Returns:
        The matching blocks sorted by creation time, descending
    """
    term = (search_term or "").lower()

    def matches(block: Block) -> bool:
        if active_channel_id and block.channel_id != active_channel_id:
            return False
        if not term:
            return True
        return term in block.content.lower() or term in (block.title or "").lower()

    return sorted((b for b in blocks if matches(b)), key=lambda b: b.created_at, reverse=True)


class ContentStore:
    """
    Owns the block list of an ApplicationState.
    """

    def __init__(self, state: ApplicationState):
        self.state = state

    def get_block(self, block_id: str) -> Optional[Block]:
        for block in self.state.blocks:
            if block.id == block_id:
                return block
        return None

    def _resolve_channel(self, channel_id: Optional[str]) -> Optional[str]:
        channel_ids = [c.id for c in self.state.channels]

        if channel_id is not None:
            return channel_id if channel_id in channel_ids else None

        if self.state.active_channel_id in channel_ids:
            return self.state.active_channel_id
        return channel_ids[0] if channel_ids else None

    def create_block(self, block_type: BlockType, content: str, title: Optional[str] = None,
                     description: Optional[str] = None, tags: Optional[List[str]] = None,
                     channel_id: Optional[str] = None) -> Optional[Block]:
        """
        Add a new block.

        Without an explicit channel the block goes to the active channel, else
        the first channel, else stays unfiled.

        Args:
            block_type: The payload kind
            content: The payload; must not be empty
            title: Optional title
            description: Optional description
            tags: Optional tag list
            channel_id: Optional target channel

        Returns:
            The new block, or None if the content was empty or the target
            channel does not exist
        """
        if not content or not content.strip():
            return None

        target = self._resolve_channel(channel_id)
        if channel_id is not None and target is None:
            logging.warning(f"Cannot file block into channel {channel_id}: not found")
            return None

        block = Block(
            id=f"b_{uuid.uuid4().hex}",
            type=BlockType(block_type),
            content=content,
            title=title or None,
            description=description or None,
            tags=as_tag_list(tags),
            channel_id=target,
            created_at=now_ms()
        )
        self.state.blocks.insert(0, block)

        logging.info(f"Created {block.type.value} block {block.id} in channel {target}")
        return block

    def update_block(self, block_id: str, **fields) -> Optional[Block]:
        """
        Replace the editable fields of a block.

        Only type, content, title, description and tags can change; the id,
        creation time and channel are kept.

        Returns:
            The updated block, or None if it was not found, the new content
            is empty or a field other than the editable ones was given
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            logging.warning(f"Cannot update block {block_id}: fields cannot be edited: {', '.join(sorted(unknown))}")
            return None

        for index, block in enumerate(self.state.blocks):
            if block.id == block_id:
                break
        else:
            logging.warning(f"Cannot update block {block_id}: not found")
            return None

        if "content" in fields and not (fields["content"] or "").strip():
            return None

        update = dict(fields)
        if "type" in update:
            update["type"] = BlockType(update["type"])
        for key in ("title", "description"):
            if key in update:
                update[key] = update[key] or None
        if "tags" in update:
            update["tags"] = as_tag_list(update["tags"])

        updated = block.model_copy(update=update)
        self.state.blocks[index] = updated

        logging.info(f"Updated block {block_id}")
        return updated

    def delete_block(self, block_id: str) -> bool:
        """
        Remove a block.

        Returns:
            True if the block existed
        """
        remaining = [b for b in self.state.blocks if b.id != block_id]
        if len(remaining) == len(self.state.blocks):
            logging.warning(f"Cannot delete block {block_id}: not found")
            return False

        self.state.blocks = remaining
        logging.info(f"Deleted block {block_id}")
        return True

    def visible_blocks(self, search_term: str = "") -> List[Block]:
        """The blocks shown for the current channel filter and search term."""
        return visible_blocks(self.state.blocks, search_term, self.state.active_channel_id)
