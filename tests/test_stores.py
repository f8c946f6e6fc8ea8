"""
Tests for the channel taxonomy and block stores.
"""

import unittest

from stash.content import ContentStore, infer_block_type, parse_tags, visible_blocks
from stash.models import ApplicationState, Block, BlockType, Channel
from stash.taxonomy import TaxonomyStore, group_for_display, parse_channel_name


def make_block(block_id, created_at, content="text", title=None, channel_id="c_inbox"):
    return Block(id=block_id, content=content, title=title, channel_id=channel_id, created_at=created_at)


class TestParseChannelName(unittest.TestCase):
    """Test 'Group/Name' parsing."""

    def test_grouped_name(self):
        self.assertEqual(parse_channel_name("Design/Patterns"), ("Design", "Patterns"))

    def test_plain_name(self):
        self.assertEqual(parse_channel_name("Reading"), (None, "Reading"))

    def test_whitespace_is_trimmed(self):
        self.assertEqual(parse_channel_name("  Design  /  Patterns "), ("Design", "Patterns"))

    def test_only_first_slash_separates(self):
        self.assertEqual(parse_channel_name("Code / Python/Async"), ("Code", "Python/Async"))

    def test_empty_names_are_rejected(self):
        for raw in ["", "   ", "Design/", "Design/   ", None]:
            self.assertIsNone(parse_channel_name(raw), raw)

    def test_empty_group_means_ungrouped(self):
        self.assertEqual(parse_channel_name("/Loose"), (None, "Loose"))


class TestGroupForDisplay(unittest.TestCase):

    def test_partition_and_sorted_groups(self):
        channels = [
            Channel(id="c_1", title="Inbox", created_at=1),
            Channel(id="c_2", title="Snippets", vertical="Code", created_at=1),
            Channel(id="c_3", title="Patterns", vertical="Design", created_at=1),
            Channel(id="c_4", title="Async", vertical="Code", created_at=1),
            Channel(id="c_5", title="Books", vertical="Art", created_at=1),
        ]

        general, groups = group_for_display(channels)

        self.assertEqual([c.id for c in general], ["c_1"])
        self.assertEqual(list(groups), ["Art", "Code", "Design"])
        self.assertEqual([c.id for c in groups["Code"]], ["c_2", "c_4"])

    def test_no_channels(self):
        self.assertEqual(group_for_display([]), ([], {}))


class TestTaxonomyStore(unittest.TestCase):
    """Test channel and vertical operations."""

    def setUp(self):
        self.state = ApplicationState()
        self.taxonomy = TaxonomyStore(self.state)
        self.content = ContentStore(self.state)

    def test_create_channel(self):
        channel = self.taxonomy.create_channel("Design/Typography")

        self.assertEqual(channel.vertical, "Design")
        self.assertEqual(channel.title, "Typography")
        self.assertEqual(channel.slug, "typography")
        self.assertIn(channel, self.state.channels)
        self.assertEqual(self.state.active_channel_id, channel.id)

    def test_create_plain_channel_has_no_vertical(self):
        channel = self.taxonomy.create_channel("Name")

        self.assertIsNone(channel.vertical)

    def test_create_channel_rejects_empty_name(self):
        before = len(self.state.channels)

        self.assertIsNone(self.taxonomy.create_channel("   "))
        self.assertEqual(len(self.state.channels), before)
        self.assertEqual(self.state.active_channel_id, "c_inbox")

    def test_channel_titles_may_collide(self):
        first = self.taxonomy.create_channel("Notes")
        second = self.taxonomy.create_channel("Notes")

        self.assertNotEqual(first.id, second.id)

    def test_rename_channel(self):
        created_at = self.taxonomy.get_channel("c_inbox").created_at

        self.assertTrue(self.taxonomy.rename_channel("c_inbox", "Later/Queue"))

        channel = self.taxonomy.get_channel("c_inbox")
        self.assertEqual((channel.vertical, channel.title, channel.slug), ("Later", "Queue", "queue"))
        self.assertEqual(channel.created_at, created_at)

    def test_rename_channel_can_ungroup(self):
        self.assertTrue(self.taxonomy.rename_channel("c_design", "Patterns"))
        self.assertIsNone(self.taxonomy.get_channel("c_design").vertical)

    def test_rename_channel_no_ops(self):
        self.assertFalse(self.taxonomy.rename_channel("c_design", "Design/Patterns"))
        self.assertFalse(self.taxonomy.rename_channel("c_design", ""))
        self.assertFalse(self.taxonomy.rename_channel("c_missing", "Anything"))
        self.assertEqual(self.taxonomy.get_channel("c_design").title, "Patterns")

    def test_delete_channel_cascades_to_blocks(self):
        self.content.create_block(BlockType.TEXT, "one", channel_id="c_design")
        self.content.create_block(BlockType.TEXT, "two", channel_id="c_design")
        kept = self.content.create_block(BlockType.TEXT, "three", channel_id="c_code")

        self.assertTrue(self.taxonomy.delete_channel("c_design"))

        self.assertIsNone(self.taxonomy.get_channel("c_design"))
        self.assertFalse(any(b.channel_id == "c_design" for b in self.state.blocks))
        self.assertEqual(self.state.blocks, [kept])

    def test_delete_active_channel_resets_filter(self):
        self.assertTrue(self.taxonomy.delete_channel("c_inbox"))
        self.assertIsNone(self.state.active_channel_id)

    def test_delete_other_channel_keeps_filter(self):
        self.taxonomy.delete_channel("c_code")
        self.assertEqual(self.state.active_channel_id, "c_inbox")

    def test_delete_missing_channel(self):
        self.assertFalse(self.taxonomy.delete_channel("c_missing"))
        self.assertEqual(len(self.state.channels), 3)

    def test_zero_channels_leaves_new_blocks_unfiled(self):
        for channel in self.taxonomy.list_channels():
            self.taxonomy.delete_channel(channel.id)

        self.assertEqual(self.state.channels, [])
        block = self.content.create_block(BlockType.TEXT, "orphan-safe")
        self.assertIsNone(block.channel_id)

    def test_rename_vertical_regroups_channels(self):
        self.taxonomy.create_channel("Design/Color")

        self.assertEqual(self.taxonomy.rename_vertical("Design", "Visual"), 2)

        _, groups = group_for_display(self.state.channels)
        self.assertNotIn("Design", groups)
        self.assertEqual({c.title for c in groups["Visual"]}, {"Patterns", "Color"})

    def test_rename_vertical_no_ops(self):
        self.assertEqual(self.taxonomy.rename_vertical("Design", ""), 0)
        self.assertEqual(self.taxonomy.rename_vertical("Design", "Design"), 0)
        self.assertEqual(self.taxonomy.get_channel("c_design").vertical, "Design")

    def test_ungrouped_channels_are_not_regrouped(self):
        self.state.channels.append(Channel(id="c_legacy", title="Legacy", vertical="", created_at=1))

        self.assertEqual(self.taxonomy.rename_vertical(None, "Work"), 0)
        self.assertEqual(self.taxonomy.rename_vertical("", "Work"), 0)
        self.assertEqual(self.taxonomy.dissolve_vertical(None), 0)
        self.assertEqual(self.taxonomy.dissolve_vertical(""), 0)

        self.assertIsNone(self.taxonomy.get_channel("c_inbox").vertical)
        self.assertEqual(self.taxonomy.get_channel("c_legacy").vertical, "")
        self.assertEqual(self.taxonomy.get_channel("c_design").vertical, "Design")

    def test_dissolve_vertical_keeps_channels_and_blocks(self):
        self.content.create_block(BlockType.TEXT, "inside", channel_id="c_design")
        blocks_before = list(self.state.blocks)

        self.assertEqual(self.taxonomy.dissolve_vertical("Design"), 1)

        self.assertFalse(any(c.vertical == "Design" for c in self.state.channels))
        self.assertIsNotNone(self.taxonomy.get_channel("c_design"))
        self.assertEqual(self.state.blocks, blocks_before)

        general, groups = group_for_display(self.state.channels)
        self.assertIn("c_design", [c.id for c in general])
        self.assertEqual(list(groups), ["Code"])


class TestContentStore(unittest.TestCase):
    """Test block operations."""

    def setUp(self):
        self.state = ApplicationState()
        self.content = ContentStore(self.state)

    def test_create_block(self):
        block = self.content.create_block(
            BlockType.LINK, "https://example.com", title="Example",
            description="A site", tags=["web"], channel_id="c_code"
        )

        self.assertTrue(block.id.startswith("b_"))
        self.assertEqual(block.type, BlockType.LINK)
        self.assertEqual(block.channel_id, "c_code")
        self.assertEqual(block.tags, ["web"])
        self.assertIs(self.state.blocks[0], block)

    def test_new_blocks_are_prepended(self):
        first = self.content.create_block(BlockType.TEXT, "first")
        second = self.content.create_block(BlockType.TEXT, "second")

        self.assertEqual(self.state.blocks, [second, first])

    def test_create_block_rejects_empty_content(self):
        self.assertIsNone(self.content.create_block(BlockType.TEXT, ""))
        self.assertIsNone(self.content.create_block(BlockType.TEXT, "  \n "))
        self.assertEqual(self.state.blocks, [])

    def test_create_block_rejects_unknown_channel(self):
        self.assertIsNone(self.content.create_block(BlockType.TEXT, "x", channel_id="c_missing"))
        self.assertEqual(self.state.blocks, [])

    def test_channel_falls_back_to_active(self):
        self.state.active_channel_id = "c_code"
        self.assertEqual(self.content.create_block(BlockType.TEXT, "x").channel_id, "c_code")

    def test_channel_falls_back_to_first_channel(self):
        self.state.active_channel_id = None
        self.assertEqual(self.content.create_block(BlockType.TEXT, "x").channel_id, "c_inbox")

    def test_stale_active_channel_is_ignored(self):
        self.state.active_channel_id = "c_gone"
        self.assertEqual(self.content.create_block(BlockType.TEXT, "x").channel_id, "c_inbox")

    def test_empty_title_is_stored_as_none(self):
        block = self.content.create_block(BlockType.TEXT, "x", title="", description="")

        self.assertIsNone(block.title)
        self.assertIsNone(block.description)

    def test_update_block(self):
        block = self.content.create_block(BlockType.TEXT, "draft", channel_id="c_code")

        updated = self.content.update_block(
            block.id, type="link", content="https://example.com",
            title="Example", description="Now a link", tags=["a", "b"]
        )

        self.assertEqual(updated.type, BlockType.LINK)
        self.assertEqual(updated.content, "https://example.com")
        self.assertEqual(updated.tags, ["a", "b"])
        self.assertEqual((updated.id, updated.created_at, updated.channel_id),
                         (block.id, block.created_at, "c_code"))
        self.assertEqual(self.content.get_block(block.id), updated)

    def test_update_missing_block(self):
        self.content.create_block(BlockType.TEXT, "x")

        self.assertIsNone(self.content.update_block("b_missing", tags=["a", "b"]))
        self.assertEqual(len(self.state.blocks), 1)

    def test_update_rejects_empty_content(self):
        block = self.content.create_block(BlockType.TEXT, "keep")

        self.assertIsNone(self.content.update_block(block.id, content=""))
        self.assertEqual(self.content.get_block(block.id).content, "keep")

    def test_update_rejects_fixed_fields(self):
        block = self.content.create_block(BlockType.TEXT, "x")

        self.assertIsNone(self.content.update_block(block.id, channel_id="c_code"))
        self.assertEqual(self.content.get_block(block.id).channel_id, "c_inbox")

    def test_update_accepts_tag_string(self):
        block = self.content.create_block(BlockType.TEXT, "x", tags="ab, cd")
        self.assertEqual(block.tags, ["ab", "cd"])

        updated = self.content.update_block(block.id, tags="ef")
        self.assertEqual(updated.tags, ["ef"])

    def test_delete_block(self):
        block = self.content.create_block(BlockType.TEXT, "x")

        self.assertTrue(self.content.delete_block(block.id))
        self.assertFalse(self.content.delete_block(block.id))
        self.assertEqual(self.state.blocks, [])


class TestVisibleBlocks(unittest.TestCase):
    """Test the filtered, sorted projection."""

    def setUp(self):
        self.blocks = [
            make_block("b_old", 100, content="Old note about Python"),
            make_block("b_new", 300, content="https://example.com", title="Example Site", channel_id="c_code"),
            make_block("b_mid", 200, content="middle"),
        ]

    def test_all_blocks_newest_first(self):
        result = visible_blocks(self.blocks, "", None)
        self.assertEqual([b.id for b in result], ["b_new", "b_mid", "b_old"])

    def test_channel_filter(self):
        result = visible_blocks(self.blocks, "", "c_inbox")
        self.assertEqual([b.id for b in result], ["b_mid", "b_old"])

    def test_search_matches_content_case_insensitively(self):
        result = visible_blocks(self.blocks, "PYTHON", None)
        self.assertEqual([b.id for b in result], ["b_old"])

    def test_search_matches_title(self):
        result = visible_blocks(self.blocks, "site", None)
        self.assertEqual([b.id for b in result], ["b_new"])

    def test_search_and_channel_combine(self):
        self.assertEqual(visible_blocks(self.blocks, "site", "c_inbox"), [])

    def test_does_not_reorder_input(self):
        visible_blocks(self.blocks, "", None)
        self.assertEqual([b.id for b in self.blocks], ["b_old", "b_new", "b_mid"])


class TestParsing(unittest.TestCase):

    def test_parse_tags(self):
        self.assertEqual(parse_tags(" a, b ,, c,a "), ["a", "b", "c", "a"])
        self.assertEqual(parse_tags(""), [])
        self.assertEqual(parse_tags(None), [])
        self.assertEqual(parse_tags(" , "), [])

    def test_infer_block_type(self):
        self.assertEqual(infer_block_type("https://example.com"), BlockType.LINK)
        self.assertEqual(infer_block_type("just words"), BlockType.TEXT)
        self.assertEqual(infer_block_type(""), BlockType.TEXT)


if __name__ == '__main__':
    unittest.main()
