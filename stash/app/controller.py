"""
Application controller for Stash.

The controller is the single owner of the session state. User-facing commands
go through it; it applies them to the taxonomy and content stores, persists
after every successful mutation, and runs enrichment on request.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..agents import EnrichmentService
from ..content import ContentStore, parse_tags
from ..database import PersistenceLayer
from ..models import AnalysisResult, ApplicationState, Block, BlockType, Channel
from ..taxonomy import TaxonomyStore, group_for_display


@dataclass
class EditDraft:
    """
    The fields of the block editor while it is open.
    """
    block_type: BlockType = BlockType.TEXT
    content: str = ""
    title: str = ""
    description: str = ""
    tags_text: str = ""
    block_id: Optional[str] = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class AppController:
    """
    Ties the stores, persistence and enrichment together for one session.
    """

    def __init__(self, persistence: PersistenceLayer,
                 enrichment: Optional[EnrichmentService] = None):
        """
        Initialize the controller.

        Args:
            persistence: Where state is loaded from and saved to
            enrichment: The enrichment service (one is created when omitted)
        """
        self.persistence = persistence
        self.enrichment = enrichment or EnrichmentService(database_manager=persistence.db)
        self.state = ApplicationState()
        self.taxonomy = TaxonomyStore(self.state)
        self.content = ContentStore(self.state)
        self.draft: Optional[EditDraft] = None
        self.insight: Optional[str] = None
        self._analysis_tasks: Dict[str, asyncio.Task] = {}

    # State

    def load_state(self) -> ApplicationState:
        """Replace the session state with the stored one."""
        self.state = self.persistence.load()
        self.taxonomy = TaxonomyStore(self.state)
        self.content = ContentStore(self.state)
        self.enrichment.api_key = self.state.api_key
        self.close_editor()
        return self.state

    def save_state(self) -> bool:
        return self.persistence.save(self.state)

    def set_api_key(self, api_key: str) -> bool:
        """
        Store a new enrichment credential.

        Returns:
            True if the credential was persisted
        """
        api_key = (api_key or "").strip()
        self.state.api_key = api_key
        self.enrichment.api_key = api_key
        return self.persistence.save_api_key(api_key)

    def export_data(self, path: Optional[str] = None) -> str:
        """
        Dump the whole in-memory state as a JSON document.

        Unlike the persisted snapshot, the export is not filtered.

        Args:
            path: Optional file to write the document to

        Returns:
            The JSON document
        """
        document = json.dumps(self.state.model_dump(by_alias=True, mode="json"), indent=2)

        if path:
            export_path = Path(path)
            export_path.parent.mkdir(parents=True, exist_ok=True)
            with open(export_path, 'w', encoding='utf-8') as f:
                f.write(document)
            logging.info(f"Exported {len(self.state.blocks)} blocks to {export_path}")

        return document

    # Channels

    def list_channels(self) -> List[Channel]:
        return self.taxonomy.list_channels()

    def grouped_channels(self) -> Tuple[List[Channel], Dict[str, List[Channel]]]:
        return group_for_display(self.state.channels)

    def set_channel(self, channel_id: Optional[str]) -> bool:
        """
        Select the channel filter; None selects all blocks.

        Returns:
            True if the filter was applied
        """
        if channel_id is not None and self.taxonomy.get_channel(channel_id) is None:
            logging.warning(f"Cannot select channel {channel_id}: not found")
            return False

        self.state.active_channel_id = channel_id
        self.save_state()
        return True

    def create_channel(self, name: str) -> Optional[Channel]:
        channel = self.taxonomy.create_channel(name)
        if channel:
            self.save_state()
        return channel

    def rename_channel(self, channel_id: str, name: str) -> bool:
        changed = self.taxonomy.rename_channel(channel_id, name)
        if changed:
            self.save_state()
        return changed

    def delete_channel(self, channel_id: str) -> bool:
        deleted = self.taxonomy.delete_channel(channel_id)
        if deleted:
            self.save_state()
        return deleted

    def rename_vertical(self, old_name: str, new_name: str) -> int:
        updated = self.taxonomy.rename_vertical(old_name, new_name)
        if updated:
            self.save_state()
        return updated

    def dissolve_vertical(self, name: str) -> int:
        updated = self.taxonomy.dissolve_vertical(name)
        if updated:
            self.save_state()
        return updated

    # Blocks

    def list_visible_blocks(self, search_term: str = "") -> List[Block]:
        return self.content.visible_blocks(search_term)

    def create_block(self, block_type: BlockType, content: str, title: Optional[str] = None,
                     description: Optional[str] = None, tags: Optional[List[str]] = None,
                     channel_id: Optional[str] = None) -> Optional[Block]:
        block = self.content.create_block(block_type, content, title, description, tags, channel_id)
        if block:
            self.save_state()
        return block

    def update_block(self, block_id: str, **fields) -> Optional[Block]:
        block = self.content.update_block(block_id, **fields)
        if block:
            self.save_state()
        return block

    def delete_block(self, block_id: str) -> bool:
        deleted = self.content.delete_block(block_id)
        if deleted:
            self.save_state()
        return deleted

    def copy_block(self, block_id: str) -> Optional[str]:
        """Return a block's content for the clipboard."""
        block = self.content.get_block(block_id)
        return block.content if block else None

    # Editor sessions

    def open_editor(self, block_id: Optional[str] = None, content: str = "",
                    block_type: BlockType = BlockType.TEXT) -> Optional[EditDraft]:
        """
        Start an edit session, either for a new block or an existing one.

        Any previous session is closed first.

        Args:
            block_id: Block to edit; None starts a new block
            content: Initial content of a new block
            block_type: Initial type of a new block

        Returns:
            The draft, or None if the block to edit does not exist
        """
        if block_id is not None:
            block = self.content.get_block(block_id)
            if block is None:
                logging.warning(f"Cannot edit block {block_id}: not found")
                return None
            self.close_editor()
            self.draft = EditDraft(
                block_type=block.type,
                content=block.content,
                title=block.title or "",
                description=block.description or "",
                tags_text=", ".join(block.tags),
                block_id=block.id
            )
        else:
            self.close_editor()
            self.draft = EditDraft(block_type=BlockType(block_type), content=content)

        self.state.editing_block_id = block_id
        return self.draft

    def close_editor(self) -> None:
        """End the edit session and drop any analysis still in flight for it."""
        if self.draft is not None:
            task = self._analysis_tasks.pop(self.draft.session_id, None)
            if task is not None and not task.done():
                task.cancel()
        self.draft = None
        self.state.editing_block_id = None

    async def analyze_current_input(self) -> Optional[AnalysisResult]:
        """
        Analyze the draft content and fill in its title, description and tags.

        A newer request for the same session supersedes an older one, and a
        result arriving after its session was closed is discarded.

        Returns:
            The applied analysis, or None if nothing was analyzed or applied
        """
        draft = self.draft
        if draft is None or not draft.content or draft.block_type == BlockType.IMAGE:
            return None

        previous = self._analysis_tasks.pop(draft.session_id, None)
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(self.enrichment.analyze_content(draft.content, draft.block_type))
        self._analysis_tasks[draft.session_id] = task

        try:
            await asyncio.wait({task})
        finally:
            if self._analysis_tasks.get(draft.session_id) is task:
                del self._analysis_tasks[draft.session_id]
            # The caller itself was cancelled
            if not task.done():
                task.cancel()

        if task.cancelled():
            logging.info(f"Discarded cancelled analysis for session {draft.session_id}")
            return None

        result = task.result()
        if self.draft is not draft:
            logging.info(f"Discarded analysis for closed session {draft.session_id}")
            return None

        draft.title = result.title or ""
        draft.description = result.summary or ""
        draft.tags_text = ", ".join(result.tags)
        return result

    def submit_draft(self) -> Optional[Block]:
        """
        Save the draft as a new block or as the edit of an existing one.

        Returns:
            The saved block, or None if the draft was empty or its block is gone
        """
        draft = self.draft
        if draft is None or not draft.content:
            return None

        fields = {
            "title": draft.title,
            "description": draft.description,
            "tags": parse_tags(draft.tags_text)
        }

        if draft.block_id:
            block = self.update_block(draft.block_id, type=draft.block_type, content=draft.content, **fields)
        else:
            block = self.create_block(draft.block_type, draft.content, **fields)

        if block:
            self.close_editor()
        return block

    # Enrichment

    async def analyze_content(self, content: str, block_type: BlockType = BlockType.TEXT) -> AnalysisResult:
        return await self.enrichment.analyze_content(content, block_type)

    async def find_connections(self, blocks: List[Block]) -> str:
        return await self.enrichment.find_connections(blocks)

    async def connect_blocks(self) -> Optional[str]:
        """
        Look for a theme across the blocks of the active channel.

        Returns:
            The insight (also kept in the insight slot), the guidance message
            when no credential is set, or None when fewer than two blocks are
            available
        """
        if not self.enrichment.has_credential:
            return await self.enrichment.find_connections([])

        active = self.state.active_channel_id
        blocks = [b for b in self.state.blocks if not active or b.channel_id == active]
        if len(blocks) < 2:
            logging.info("Need at least 2 blocks to find connections")
            return None

        self.insight = await self.enrichment.find_connections(blocks)
        return self.insight
