"""Block storage and the visible-block projection."""

from .store import ContentStore, infer_block_type, parse_tags, visible_blocks

__all__ = ["ContentStore", "infer_block_type", "parse_tags", "visible_blocks"]
