#!/usr/bin/env python3
"""BookVault CLI - browse, add and delete books in the shared catalog."""
import argparse
import asyncio
import sys
from bookvault.async_gateway import AsyncRemoteGateway
from bookvault.async_sync import AsyncSyncController
from bookvault.config import Config
from bookvault.database import PostgresSnapshotStore
from bookvault.errors import PersistenceError
from bookvault.gateway import RemoteGateway
from bookvault.models import BookDraft
from bookvault.render import display_books
from bookvault.store import FileSnapshotStore, SnapshotStore
from bookvault.sync import SyncController, SyncResult
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def setup_store(config: Config) -> SnapshotStore:
    """
    Open the configured snapshot backend.

    An unreachable database falls back to the device file so that
    remote operations still work.
    """
    if config.SNAPSHOT_BACKEND == "postgres":
        try:
            store = PostgresSnapshotStore(config.DATABASE_URL, slot=config.SNAPSHOT_SLOT)
        except PersistenceError as e:
            logger.warning(f"Snapshot database unavailable, using {config.SNAPSHOT_PATH}: {e}")
            return FileSnapshotStore(config.SNAPSHOT_PATH)
        try:
            store.init_schema()
        except PersistenceError as e:
            logger.warning(f"Snapshot schema unavailable, using {config.SNAPSHOT_PATH}: {e}")
            store.close()
            return FileSnapshotStore(config.SNAPSHOT_PATH)
        return store
    return FileSnapshotStore(config.SNAPSHOT_PATH)


def close_store(store: SnapshotStore):
    if isinstance(store, PostgresSnapshotStore):
        store.close()


def report(result: SyncResult) -> int:
    """Print the result message and turn it into an exit code."""
    if result.message:
        print(result.message)
    return 0 if result.ok else 1


def confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def list_books(args, controller: SyncController) -> int:
    """Show the device copy right away, then fetch if it was empty."""
    restored = controller.restore()
    if restored.count:
        print(restored.message)
        display_books(controller.books(), args.format)

    result = controller.ensure_loaded()
    if result.source == "server" or not result.ok:
        if result.ok:
            display_books(controller.books(), args.format)
        return report(result)
    return 0


def refresh_books(args, controller: SyncController) -> int:
    result = controller.load()
    if result.ok:
        display_books(controller.books(), args.format)
    return report(result)


def add_book(args, controller: SyncController) -> int:
    controller.restore()
    draft = BookDraft.from_form({
        "title": args.title,
        "author": args.author,
        "year": args.year,
        "imageUrl": args.image_url,
        "description": args.description,
    })
    result = controller.insert(draft)
    if result.ok:
        display_books(controller.books(), args.format)
    return report(result)


def delete_books(args, controller: SyncController) -> int:
    controller.restore()
    exit_code = 0
    for book_id in confirmed_ids(args):
        exit_code = max(exit_code, report(controller.delete(book_id)))
    return exit_code


def confirmed_ids(args) -> list:
    """Ask for confirmation of each id unless --yes was given."""
    return [book_id for book_id in args.ids if args.yes or confirm(f"Delete this book ({book_id})?")]


async def delete_books_async(ids, config: Config, store: SnapshotStore) -> int:
    """Delete already confirmed books concurrently; the controller serializes cache updates."""
    async with AsyncRemoteGateway(config.BOOKS_ENDPOINT, timeout=config.DEFAULT_TIMEOUT) as gateway:
        controller = AsyncSyncController(gateway, store)
        await controller.restore()
        results = await controller.delete_many(ids)

    exit_code = 0
    for book_id, result in zip(ids, results):
        print(f"{book_id}: {result.message}")
        if not result.ok:
            exit_code = 1
    return exit_code


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="BookVault - shared book catalog client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show books (device copy first, server if nothing is cached)
  %(prog)s list

  # Fetch the latest list from the server
  %(prog)s refresh --format compact

  # Add a book
  %(prog)s add --title "Dune" --author "Frank Herbert" --year 1965

  # Delete books without prompting, concurrently
  %(prog)s delete 64a1 64a2 --yes --async
        """
    )
    parser.add_argument("--format", choices=["table", "json", "compact", "html"], default="table",
                        help="Output format")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("list", help="Show cached books, loading them if none are cached")
    subparsers.add_parser("refresh", help="Reload books from the server")

    add_parser = subparsers.add_parser("add", help="Add a book")
    add_parser.add_argument("--title", default="", help="Book title (required)")
    add_parser.add_argument("--author", default="", help="Book author (required)")
    add_parser.add_argument("--year", help="Publication year")
    add_parser.add_argument("--image-url", help="Cover image URL")
    add_parser.add_argument("--description", help="Short description")

    delete_parser = subparsers.add_parser("delete", help="Delete books by id")
    delete_parser.add_argument("ids", nargs="+", help="Book ids")
    delete_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    delete_parser.add_argument("--async", dest="use_async", action="store_true",
                               help="Delete concurrently using the async client")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    exit_code = 0

    try:
        store = setup_store(config)
        try:
            if args.command == "delete" and args.use_async:
                ids = confirmed_ids(args)
                exit_code = asyncio.run(delete_books_async(ids, config, store))
            else:
                with RemoteGateway(config.BOOKS_ENDPOINT, timeout=config.DEFAULT_TIMEOUT) as gateway:
                    controller = SyncController(
                        gateway, store, on_status=lambda message: logger.info(message)
                    )
                    handlers = {
                        "list": list_books,
                        "refresh": refresh_books,
                        "add": add_book,
                        "delete": delete_books,
                    }
                    exit_code = handlers[args.command](args, controller)
        finally:
            close_store(store)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
