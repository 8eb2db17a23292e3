#!/usr/bin/env python3
"""
chatsync - Main Entry Point

Backs up, restores and syncs the local chat app state with a WebDAV
server or an Upstash key-value store.

Usage:
    chatsync sync                 # Merge with the remote copy
    chatsync upload               # Overwrite the remote copy
    chatsync download             # Overwrite local state
    chatsync export               # Write a local backup file
    chatsync import backup.json   # Merge a backup file
    chatsync configure --provider webdav --endpoint https://dav.example.com \\
        --username me --password secret

Environment Variables:
    CHATSYNC_DATABASE_PATH    - Local SQLite store (default: data/chatsync.db)
    CHATSYNC_EXPORT_DIR       - Backup directory (default: backups)
    CHATSYNC_HTTP_TIMEOUT     - Request timeout in seconds (default: 30)
    CHATSYNC_HTTP_MAX_RETRIES - Transport retries (default: 0)
    CHATSYNC_LOCALE           - Notification language: en, cn (default: en)
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config.settings import ConfigurationError, Settings, load_settings
from .locales import get_text
from .remote.client import RemoteAPIError
from .storage.app_state import AppStateStore
from .storage.config_store import SyncConfigStore
from .storage.models import ProviderType
from .storage.state_store import StateStore, StateStoreError
from .sync.engine import SyncAction, SyncEngine


def setup_logging(verbose: bool = False, level_name: str = "INFO") -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, enable DEBUG level logging
        level_name: Level used when not verbose
    """
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="chatsync",
        description="Back up and sync chat app state with WebDAV or Upstash",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    chatsync status                       # Show sync configuration
    chatsync check                        # Test the remote connection
    chatsync sync                         # Merge local and remote state
    chatsync --env .env.local upload      # Use custom env file
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )

    parser.add_argument(
        "--env",
        type=Path,
        help="Path to .env file (default: .env in current directory)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sync", help="Merge remote state into local state and upload the result")
    commands.add_parser("upload", help="Overwrite remote state with local state")
    commands.add_parser("download", help="Overwrite local state with remote state")
    commands.add_parser("check", help="Check that the remote backend is reachable")
    commands.add_parser("status", help="Show sync configuration without secrets")

    export_parser = commands.add_parser("export", help="Write local state to a backup file")
    export_parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for the backup (default: CHATSYNC_EXPORT_DIR)",
    )

    import_parser = commands.add_parser("import", help="Merge a backup file into local state")
    import_parser.add_argument("file", type=Path, help="Backup file to import")

    configure_parser = commands.add_parser("configure", help="Edit sync settings")
    configure_parser.add_argument(
        "--provider",
        choices=[p.value for p in ProviderType],
        help="Select the active provider; credentials below apply to it",
    )
    configure_parser.add_argument("--endpoint", help="Server or REST endpoint URL")
    configure_parser.add_argument("--username", help="Account name / store key")
    configure_parser.add_argument("--password", help="WebDAV password")
    configure_parser.add_argument("--api-key", help="Upstash API key")
    configure_parser.add_argument("--proxy-url", help="Sync proxy base URL")
    configure_parser.add_argument(
        "--use-proxy",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Route requests through the sync proxy",
    )

    return parser.parse_args(argv)


def configure(config_store: SyncConfigStore, args: argparse.Namespace) -> int:
    """
    Apply ``configure`` options to the sync config and save it.

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)
    config = config_store.config

    if args.provider:
        config.provider = ProviderType(args.provider)
    if args.proxy_url is not None:
        config.proxy_url = args.proxy_url
    if args.use_proxy is not None:
        config.use_proxy = args.use_proxy

    active = config.active_config
    if args.endpoint is not None:
        active.endpoint = args.endpoint
    if args.username is not None:
        active.username = args.username

    if config.provider is ProviderType.WEBDAV:
        if args.api_key is not None:
            logger.error("--api-key applies to the upstash provider only")
            return 1
        if args.password is not None:
            config.webdav.password = args.password
    else:
        if args.password is not None:
            logger.error("--password applies to the webdav provider only")
            return 1
        if args.api_key is not None:
            config.upstash.api_key = args.api_key

    config_store.save()
    logger.info(f"Sync config saved for provider {config.provider.value}")
    return 0


def show_status(engine: SyncEngine) -> None:
    """
    Display current sync configuration.

    Args:
        engine: Sync engine to query
    """
    logger = logging.getLogger(__name__)
    config = engine.config

    last_sync = "never"
    if config.last_sync_time:
        last_sync = datetime.fromtimestamp(config.last_sync_time / 1000).strftime("%Y-%m-%d %H:%M:%S")

    logger.info("=" * 50)
    logger.info("Sync Status")
    logger.info("=" * 50)
    logger.info(f"Provider:            {config.provider.value}")
    logger.info(f"Endpoint:            {config.active_config.endpoint or '-'}")
    logger.info(f"Username:            {config.active_config.username or '-'}")
    logger.info(f"Proxy:               {config.effective_proxy_url or 'off'}")
    logger.info(f"Cloud sync enabled:  {engine.cloud_sync()}")
    logger.info(f"Account configured:  {engine.has_account()}")
    logger.info(f"Last sync:           {last_sync} ({config.last_provider or '-'})")

    state_store = engine.config_store.state_store
    logger.info(f"Stored records:      {state_store.count()}")
    for name in state_store.names():
        logger.info(f"  - {name}")
    logger.info("=" * 50)


def build_engine(settings: Settings, state_store: StateStore) -> SyncEngine:
    """Wire the engine to the local store and CLI notifications."""
    logger = logging.getLogger(__name__)

    return SyncEngine(
        config_store=SyncConfigStore(state_store),
        app_state=AppStateStore(state_store),
        export_dir=settings.storage.export_dir,
        timeout=settings.http.timeout,
        max_retries=settings.http.max_retries,
        locale=settings.locale,
        notify=lambda message: logger.warning(message),
        on_reload=lambda: logger.info(get_text("import_success", settings.locale)),
    )


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    try:
        settings = load_settings(env_file=args.env)
    except ConfigurationError as e:
        setup_logging(verbose=args.verbose)
        logging.getLogger(__name__).error(f"Configuration error: {e}")
        return 1

    setup_logging(verbose=args.verbose, level_name=settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        state_store = StateStore(settings.storage.database_path)

        if args.command == "configure":
            return configure(SyncConfigStore(state_store), args)

        engine = build_engine(settings, state_store)

        if args.command == "status":
            show_status(engine)
            return 0

        if args.command == "export":
            if args.output_dir:
                engine.export_dir = args.output_dir
            path = engine.export_backup()
            logger.info(get_text("export_saved", settings.locale, path=path))
            return 0

        if args.command == "import":
            return 0 if engine.import_backup(args.file) else 1

        if args.command == "check":
            ok = engine.check()
            key = "check_success" if ok else "check_failed"
            logger.info(get_text(key, settings.locale))
            return 0 if ok else 1

        if not engine.has_account():
            logger.warning(get_text("no_account", settings.locale))
            return 1

        engine.sync(SyncAction(args.command.upper()))
        logger.info(f"{args.command.capitalize()} completed")
        return 0

    except RemoteAPIError as e:
        logger.error(f"Remote error: {e}")
        return 1
    except StateStoreError as e:
        logger.error(f"Local store error: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid state data: {e}")
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
