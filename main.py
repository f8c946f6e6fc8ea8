#!/usr/bin/env python3
"""
Stash - Personal Content Capture

Command-line entry point for Stash. Each invocation loads the stored state,
applies one command through the application controller and exits; the
controller persists after every change.
"""

import asyncio
import logging
import sys
import argparse
from typing import List, Optional

from stash.models import Block, BlockType
from stash.app import AppController
from stash.agents import EnrichmentService
from stash.content import infer_block_type, parse_tags
from stash.database import DatabaseManager, PersistenceLayer
from stash.config import config


def setup_logging():
    """Configure logging for the application."""
    level = getattr(logging, config.get("logging.level", "INFO").upper())
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )


def confirm(question: str) -> bool:
    """
    Ask the user to confirm a destructive action.

    Args:
        question: What is about to happen

    Returns:
        True if user confirms, False otherwise
    """
    while True:
        response = input(f"\n{question} (yes/no): ").strip().lower()
        if response in ['yes', 'y']:
            return True
        elif response in ['no', 'n']:
            return False
        else:
            print("Please enter 'yes' or 'no'")


def format_block(block: Block) -> str:
    """Render a block as a few lines of plain text."""
    lines = [f"[{block.id}] {block.type.value.upper()} {block.title or ''}".rstrip()]

    content = block.content
    if block.type == BlockType.IMAGE:
        content = f"<image, {len(content)} bytes>"
    lines.append(f"    {content}")

    if block.description:
        lines.append(f"    {block.description}")
    if block.tags:
        lines.append("    " + " ".join(f"#{tag}" for tag in block.tags))
    return "\n".join(lines)


def print_channels(controller: AppController):
    """Print channels grouped by vertical, marking the active one."""
    active = controller.state.active_channel_id
    general, groups = controller.grouped_channels()

    print(f"{'*' if active is None else ' '} All Blocks")

    def print_group(label: str, channels):
        print(f"\n{label.upper()}")
        for channel in channels:
            marker = "*" if channel.id == active else " "
            print(f"{marker} {channel.title}  ({channel.id})")

    if general:
        print_group("General", general)
    for vertical, channels in groups.items():
        print_group(vertical, channels)


async def add_block(controller: AppController, args) -> Optional[Block]:
    """Create a block, optionally prefilled by the analyze agent."""
    block_type = BlockType(args.type) if args.type else infer_block_type(args.content)

    if not args.analyze:
        return controller.create_block(
            block_type, args.content, args.title, args.description,
            parse_tags(args.tags), args.channel
        )

    draft = controller.open_editor(content=args.content, block_type=block_type)
    async with controller.enrichment:
        await controller.analyze_current_input()

    # Explicit options win over the suggestions
    if args.title:
        draft.title = args.title
    if args.description:
        draft.description = args.description
    if args.tags:
        draft.tags_text = args.tags

    if args.channel:
        block = controller.create_block(
            draft.block_type, draft.content, draft.title, draft.description,
            parse_tags(draft.tags_text), args.channel
        )
        controller.close_editor()
        return block
    return controller.submit_draft()


async def edit_block(controller: AppController, args) -> Optional[Block]:
    """Edit a block, optionally re-running the analyze agent first."""
    draft = controller.open_editor(block_id=args.block_id)
    if draft is None:
        return None

    if args.type:
        draft.block_type = BlockType(args.type)
    if args.content:
        draft.content = args.content

    if args.analyze:
        async with controller.enrichment:
            await controller.analyze_current_input()

    if args.title is not None:
        draft.title = args.title
    if args.description is not None:
        draft.description = args.description
    if args.tags is not None:
        draft.tags_text = args.tags

    return controller.submit_draft()


async def connect_blocks(controller: AppController) -> Optional[str]:
    async with controller.enrichment:
        return await controller.connect_blocks()


def run_command(controller: AppController, args) -> int:
    """
    Execute one parsed command.

    Returns:
        Process exit code
    """
    command = args.command

    if command == "channels":
        print_channels(controller)

    elif command == "channel-add":
        channel = controller.create_channel(args.name)
        if not channel:
            print("Channel name cannot be empty.")
            return 1
        print(f"Created channel {channel.display_name} ({channel.id})")

    elif command == "channel-rename":
        if not controller.rename_channel(args.channel_id, args.name):
            print("Nothing renamed.")
            return 1

    elif command == "channel-delete":
        if not args.yes and not confirm("Delete channel? Blocks inside will be removed."):
            return 0
        if not controller.delete_channel(args.channel_id):
            print(f"Channel {args.channel_id} not found.")
            return 1

    elif command == "vertical-rename":
        count = controller.rename_vertical(args.old_name, args.new_name)
        print(f"Moved {count} channels to {args.new_name}.")

    elif command == "vertical-dissolve":
        if not args.yes and not confirm(f'Dissolve "{args.name}" group? Channels will be moved to General.'):
            return 0
        count = controller.dissolve_vertical(args.name)
        print(f"Moved {count} channels to General.")

    elif command == "use":
        channel_id = None if args.channel_id == "all" else args.channel_id
        if not controller.set_channel(channel_id):
            print(f"Channel {args.channel_id} not found.")
            return 1

    elif command == "list":
        blocks = controller.list_visible_blocks(args.search or "")
        if not blocks:
            print("No blocks found.")
        for block in blocks:
            print(format_block(block))

    elif command == "add":
        block = asyncio.run(add_block(controller, args))
        if not block:
            print("Block not added.")
            return 1
        print(format_block(block))

    elif command == "edit":
        block = asyncio.run(edit_block(controller, args))
        if not block:
            print(f"Block {args.block_id} not updated.")
            return 1
        print(format_block(block))

    elif command == "delete":
        if not args.yes and not confirm("Remove this block?"):
            return 0
        if not controller.delete_block(args.block_id):
            print(f"Block {args.block_id} not found.")
            return 1

    elif command == "copy":
        content = controller.copy_block(args.block_id)
        if content is None:
            print(f"Block {args.block_id} not found.")
            return 1
        print(content)

    elif command == "connect":
        insight = asyncio.run(connect_blocks(controller))
        if insight is None:
            print("Need at least 2 blocks to find connections.")
            return 1
        print(insight)

    elif command == "set-key":
        controller.set_api_key(args.api_key)

    elif command == "export":
        path = args.path or config.export_filename
        controller.export_data(path)
        print(f"Exported to {path}")

    return 0


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Stash - Personal Content Capture",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py channel-add "Design/Patterns"      # Create a grouped channel
  python main.py add "https://example.com"          # Add a link to the active channel
  python main.py add "some note" --analyze          # Add a note with AI title, summary and tags
  python main.py list --search pattern              # Search the active channel
  python main.py connect                            # Ask for a theme across the active channel
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Stash 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    type_choices = [t.value for t in BlockType]

    subparsers.add_parser("channels", help="List channels grouped by vertical")

    p = subparsers.add_parser("channel-add", help="Create a channel ('Group/Name' to group it)")
    p.add_argument("name")

    p = subparsers.add_parser("channel-rename", help="Rename a channel")
    p.add_argument("channel_id")
    p.add_argument("name")

    p = subparsers.add_parser("channel-delete", help="Delete a channel and its blocks")
    p.add_argument("channel_id")
    p.add_argument("--yes", action="store_true", help="Skip confirmation")

    p = subparsers.add_parser("vertical-rename", help="Rename a group of channels")
    p.add_argument("old_name")
    p.add_argument("new_name")

    p = subparsers.add_parser("vertical-dissolve", help="Move a group's channels to General")
    p.add_argument("name")
    p.add_argument("--yes", action="store_true", help="Skip confirmation")

    p = subparsers.add_parser("use", help="Select a channel, or 'all'")
    p.add_argument("channel_id")

    p = subparsers.add_parser("list", help="List visible blocks, newest first")
    p.add_argument("--search", type=str, help="Filter by content or title")

    p = subparsers.add_parser("add", help="Add a block")
    p.add_argument("content")
    p.add_argument("--type", choices=type_choices, help="Block type (guessed when omitted)")
    p.add_argument("--title", type=str)
    p.add_argument("--description", type=str)
    p.add_argument("--tags", type=str, help="Comma-separated tags")
    p.add_argument("--channel", type=str, help="Target channel id")
    p.add_argument("--analyze", action="store_true", help="Prefill title, summary and tags with AI")

    p = subparsers.add_parser("edit", help="Edit a block")
    p.add_argument("block_id")
    p.add_argument("--content", type=str)
    p.add_argument("--type", choices=type_choices)
    p.add_argument("--title", type=str)
    p.add_argument("--description", type=str)
    p.add_argument("--tags", type=str, help="Comma-separated tags")
    p.add_argument("--analyze", action="store_true", help="Refill title, summary and tags with AI")

    p = subparsers.add_parser("delete", help="Delete a block")
    p.add_argument("block_id")
    p.add_argument("--yes", action="store_true", help="Skip confirmation")

    p = subparsers.add_parser("copy", help="Print a block's content")
    p.add_argument("block_id")

    subparsers.add_parser("connect", help="Find a theme across the active channel")

    p = subparsers.add_parser("set-key", help="Store the Gemini API key")
    p.add_argument("api_key")

    p = subparsers.add_parser("export", help="Write the full state to a JSON file")
    p.add_argument("path", nargs="?", help="Output file (default from config)")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging()

    try:
        with DatabaseManager(config.database_filename) as db:
            db.initialize_database()
            controller = AppController(PersistenceLayer(db), EnrichmentService(database_manager=db))
            controller.load_state()
            exit_code = run_command(controller, args)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        print("\nInterrupted.")
        exit_code = 130

    except Exception as e:
        logging.error(f"Command failed: {e}")
        print(f"\nCommand failed: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
