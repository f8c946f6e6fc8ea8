"""
Channel taxonomy for Stash.

Channels are grouped into verticals by a shared string label. There is no
vertical record: renaming or dissolving a vertical rewrites every channel that
carries the label.
"""

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from ..models import ApplicationState, Channel, now_ms


def parse_channel_name(raw_name: str) -> Optional[Tuple[Optional[str], str]]:
    """
    Split a 'Group/Name' string into its vertical and title.

    Only the first '/' separates; the rest of the string, further slashes
    included, is the title. Both sides are trimmed.

    Args:
        raw_name: The name as typed by the user

    Returns:
        (vertical, title), with vertical None when there is no group, or None
        when the name has no usable title
    """
    if raw_name is None:
        return None

    name = raw_name.strip()
    if not name:
        return None

    vertical = None
    title = name
    if "/" in name:
        head, _, tail = name.partition("/")
        vertical = head.strip() or None
        title = tail.strip()

    if not title:
        return None
    return vertical, title


def group_for_display(channels: List[Channel]) -> Tuple[List[Channel], Dict[str, List[Channel]]]:
    """
    Partition channels into the ungrouped list and the groups by vertical.

    Args:
        channels: Channels in their stored order

    Returns:
        (general, groups) where groups maps each vertical, in sorted key
        order, to its channels in stored order
    """
    general: List[Channel] = []
    groups: Dict[str, List[Channel]] = {}

    for channel in channels:
        if channel.vertical:
            groups.setdefault(channel.vertical, []).append(channel)
        else:
            general.append(channel)

    return general, {vertical: groups[vertical] for vertical in sorted(groups)}


class TaxonomyStore:
    """
    Owns the channel list of an ApplicationState and the block cascade on
    channel deletion.
    """

    def __init__(self, state: ApplicationState):
        """
        Initialize the store.

        Args:
            state: The session state this store mutates in place
        """
        self.state = state

    def list_channels(self) -> List[Channel]:
        return list(self.state.channels)

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        for channel in self.state.channels:
            if channel.id == channel_id:
                return channel
        return None

    def create_channel(self, raw_name: str) -> Optional[Channel]:
        """
        Create a channel from a 'Group/Name' or plain name and make it active.

        Args:
            raw_name: The name as typed by the user

        Returns:
            The new channel, or None if the name was empty
        """
        parsed = parse_channel_name(raw_name)
        if parsed is None:
            return None

        vertical, title = parsed
        channel = Channel(
            id=f"c_{uuid.uuid4().hex}",
            title=title,
            vertical=vertical,
            slug=title.lower(),
            created_at=now_ms()
        )
        self.state.channels.append(channel)
        self.state.active_channel_id = channel.id

        logging.info(f"Created channel {channel.display_name} ({channel.id})")
        return channel

    def rename_channel(self, channel_id: str, new_raw_name: str) -> bool:
        """
        Rename a channel in place, regrouping it if the name carries a vertical.

        Returns:
            True if the channel changed
        """
        channel = self.get_channel(channel_id)
        if channel is None:
            logging.warning(f"Cannot rename channel {channel_id}: not found")
            return False

        parsed = parse_channel_name(new_raw_name)
        if parsed is None:
            return False

        vertical, title = parsed
        if (vertical, title) == (channel.vertical, channel.title):
            return False

        channel.vertical = vertical
        channel.title = title
        channel.slug = title.lower()

        logging.info(f"Renamed channel {channel_id} to {channel.display_name}")
        return True

    def delete_channel(self, channel_id: str) -> bool:
        """
        Delete a channel together with every block filed into it.

        Clears the active filter when the deleted channel was selected.

        Returns:
            True if the channel existed
        """
        if self.get_channel(channel_id) is None:
            logging.warning(f"Cannot delete channel {channel_id}: not found")
            return False

        remaining_blocks = [b for b in self.state.blocks if b.channel_id != channel_id]
        removed = len(self.state.blocks) - len(remaining_blocks)

        self.state.channels = [c for c in self.state.channels if c.id != channel_id]
        self.state.blocks = remaining_blocks
        if self.state.active_channel_id == channel_id:
            self.state.active_channel_id = None

        logging.info(f"Deleted channel {channel_id} and {removed} blocks")
        return True

    def rename_vertical(self, old_name: str, new_name: str) -> int:
        """
        Move every channel of one vertical to another label.

        Ungrouped channels have no vertical and are never moved.

        Returns:
            Number of channels updated
        """
        new_name = (new_name or "").strip()
        if not old_name or not new_name or new_name == old_name:
            return 0

        updated = 0
        for channel in self.state.channels:
            if channel.vertical == old_name:
                channel.vertical = new_name
                updated += 1

        logging.info(f"Renamed vertical {old_name} to {new_name} ({updated} channels)")
        return updated

    def dissolve_vertical(self, name: str) -> int:
        """
        Ungroup every channel of a vertical. Channels and blocks are kept.

        Returns:
            Number of channels moved to the general group
        """
        if not name:
            return 0

        updated = 0
        for channel in self.state.channels:
            if channel.vertical == name:
                channel.vertical = None
                updated += 1

        logging.info(f"Dissolved vertical {name} ({updated} channels)")
        return updated
