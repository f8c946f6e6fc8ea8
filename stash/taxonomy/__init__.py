"""Channel taxonomy: channels and the verticals grouping them."""

from .store import TaxonomyStore, group_for_display, parse_channel_name

__all__ = ["TaxonomyStore", "group_for_display", "parse_channel_name"]
