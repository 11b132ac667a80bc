"""
familymem CLI - Command-line interface for the familymem package

Provides commands for initialization, health validation, and exporting and
importing memory collections.
"""

import argparse
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

CONFIG_FILE = "familymem.json"
MAX_PRINTED_ERRORS = 10


def get_version() -> str:
    """Get the familymem package version."""
    try:
        from importlib.metadata import version

        return version("familymem")
    except Exception:
        # Fallback to __init__.py version if metadata not available
        try:
            from familymem import __version__

            return __version__
        except ImportError:
            return "unknown"


def _parse_date(value: str) -> datetime:
    from familymem.utils.helpers import DateTimeUtils

    parsed = DateTimeUtils.parse_timestamp(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"Invalid date: {value}")
    return parsed


def _parse_until(value: str) -> datetime:
    """Like _parse_date, but a bare YYYY-MM-DD covers the whole day"""
    parsed = _parse_date(value)
    if len(value.strip()) == 10:
        parsed = parsed + timedelta(days=1) - timedelta(milliseconds=1)
    return parsed


def _load_settings(config_path: Optional[str]) -> Any:
    from familymem.config import ConfigManager, FamilyMemSettings
    from familymem.utils.exceptions import ConfigurationError

    if not config_path:
        manager = ConfigManager()
        manager.auto_load()
        return manager.get_settings()

    try:
        return FamilyMemSettings.from_file(config_path)
    except FileNotFoundError as e:
        raise ConfigurationError(str(e), cause=e)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}", cause=e)


def _build_store(settings: Any) -> Any:
    """Mem0 API when configured, local database otherwise"""
    if settings.mem0.is_configured:
        from familymem.integrations import Mem0Client

        return Mem0Client.from_settings(settings.mem0)

    from familymem.database import SQLAlchemyMemoryStore

    return SQLAlchemyMemoryStore.from_url(
        settings.database.connection_string, echo_sql=settings.database.echo_sql
    )


def _open_memory(args: argparse.Namespace) -> Any:
    from familymem.core.memory import FamilyMemory
    from familymem.utils.logging import LoggingManager

    settings = _load_settings(args.config)
    LoggingManager.setup_logging(settings.logging, verbose=args.verbose)
    return FamilyMemory(
        _build_store(settings),
        user_id=args.user_id,
        family=args.family,
        settings=settings,
    )


def cmd_version(args: argparse.Namespace) -> int:
    """Handle --version command."""
    version = get_version()
    print(f"familymem version {version}")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """
    Handle init command - creates a starter familymem.json config.

    Returns:
        0 on success, 1 on failure
    """
    from familymem.config import FamilyMemSettings

    config_path = Path(CONFIG_FILE)

    if config_path.exists() and not args.force:
        print(f"Error: {config_path} already exists. Use --force to overwrite.")
        return 1

    action = "Overwritten" if config_path.exists() else "Created"
    try:
        FamilyMemSettings().to_file(config_path)
    except OSError as e:
        print(f"Error: Failed to create {config_path}: {e}")
        return 1

    print(f"✓ {action} {config_path}")
    print("\nNext steps:")
    print("  1. Edit familymem.json (user_id, family, database connection)")
    print("  2. To use a Mem0 API instead, set MEM0_API_URL and MEM0_API_KEY")
    print("  3. Export your memories:")
    print("\n     familymem export --format csv")
    return 0


def cmd_health(args: argparse.Namespace) -> int:
    """
    Handle health command - validates environment and configuration.

    Returns:
        0 if all checks pass, non-zero otherwise
    """
    print("familymem Health Check")
    print("=" * 50)

    exit_code = 0

    print("\n1. Package Import Check...")
    try:
        import familymem  # noqa: F401

        print(f"   ✓ familymem {get_version()} imported successfully")
    except ImportError as e:
        print(f"   ✗ Failed to import familymem: {e}")
        exit_code = 1

    print("\n2. Core Dependencies Check...")
    required_deps = [
        ("pydantic", "Pydantic"),
        ("sqlalchemy", "SQLAlchemy"),
        ("loguru", "Loguru"),
        ("dotenv", "python-dotenv"),
        ("requests", "Requests"),
    ]
    for module_name, display_name in required_deps:
        try:
            __import__(module_name)
            print(f"   ✓ {display_name} available")
        except ImportError:
            print(f"   ✗ {display_name} not installed")
            exit_code = 1

    print("\n3. Configuration File Check...")
    config_path = Path(args.config if args.config else CONFIG_FILE)
    settings = None

    if not config_path.exists():
        print(f"   ⚠ Config file not found: {config_path}")
        print("     Run 'familymem init' to create a starter configuration")
    else:
        try:
            settings = _load_settings(str(config_path))
            print(f"   ✓ Config file valid: {config_path}")
            print(f"   ✓ Database: {settings.database.connection_string.split(':')[0]}")
            print(f"   ✓ Owner: {settings.user_id}/{settings.family}")
            if settings.mem0.is_configured:
                print(f"   ✓ Mem0 API: {settings.mem0.api_url}")
        except Exception as e:
            print(f"   ✗ Invalid config file: {e}")
            exit_code = 1

    if args.check_store and settings is not None:
        print("\n4. Memory Store Connectivity Check...")
        try:
            store = _build_store(settings)
            if hasattr(store, "db_manager"):
                reachable = store.db_manager.check_connection()
            else:
                reachable = store.check_connection() == "connected"

            if reachable:
                print(f"   ✓ {type(store).__name__} reachable")
            else:
                print(f"   ✗ {type(store).__name__} not reachable")
                exit_code = 1
        except Exception as e:
            print(f"   ✗ Store check failed: {e}")
            exit_code = 1

    print("\n" + "=" * 50)
    if exit_code == 0:
        print("✓ All health checks passed!")
    else:
        print("✗ Some health checks failed. Please review the output above.")

    return exit_code


def cmd_export(args: argparse.Namespace) -> int:
    """
    Handle export command - writes an export file for the configured owner.

    Returns:
        0 on success, 1 when nothing could be exported
    """
    from familymem.utils.exceptions import FamilyMemError

    try:
        memory = _open_memory(args)
        records = memory.load_memories(limit=args.limit)
        path = memory.export_to_path(
            output_dir=args.output_dir,
            format=args.format,
            types=args.types,
            start=args.since,
            end=args.until,
            records=records,
        )
    except FamilyMemError as e:
        print(f"Error: {e}")
        return 1

    print(f"✓ Exported memories to {path}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """
    Handle import command - loads a JSON or CSV file into the memory store.

    Returns:
        0 on success, 1 on structural failure, 2 if some memories failed
    """
    from familymem.utils.exceptions import FamilyMemError

    try:
        memory = _open_memory(args)
        options = memory.default_import_options()
        updates = {}
        if args.mode:
            updates["import_mode"] = args.mode
        if args.allow_duplicates:
            updates["skip_duplicates"] = False
        if args.skip_validation:
            updates["validate_before_import"] = False
        if args.duplicate_match:
            updates["duplicate_match"] = args.duplicate_match
        options = options.model_validate({**options.model_dump(), **updates})

        outcome = memory.import_file(args.path, options=options, validate_only=args.dry_run)
    except FamilyMemError as e:
        print(f"Error: {e}")
        return 1

    print(f"✓ {outcome.summary()}")
    for message in outcome.errors[:MAX_PRINTED_ERRORS]:
        print(f"   ✗ {message}")
    if len(outcome.errors) > MAX_PRINTED_ERRORS:
        print(f"   ... and {len(outcome.errors) - MAX_PRINTED_ERRORS} more")

    return 2 if outcome.has_failures else 0


def _add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to configuration file (default: auto-detect {CONFIG_FILE})",
    )
    parser.add_argument("--user-id", default=None, help="Owner of the memories")
    parser.add_argument("--family", default=None, help="AI family member id")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="familymem",
        description="familymem - Export, import and reconcile AI family member memories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  familymem --version                       Show version information
  familymem init                            Create a starter familymem.json config
  familymem health --check-store            Check configuration and store access
  familymem export --format csv             Export all memories as CSV
  familymem export --type preference --since 2024-01-01
  familymem import backup.json --mode replace
        """,
    )

    parser.add_argument("--version", action="store_true", help="Show version information")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser(
        "init", help=f"Create a starter {CONFIG_FILE} configuration file"
    )
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite existing configuration file"
    )

    health_parser = subparsers.add_parser(
        "health", help="Check environment, dependencies, and configuration"
    )
    health_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to configuration file (default: {CONFIG_FILE})",
    )
    health_parser.add_argument(
        "--check-store", action="store_true", help="Include memory store connectivity check"
    )

    export_parser = subparsers.add_parser("export", help="Export memories to a file")
    _add_store_arguments(export_parser)
    export_parser.add_argument(
        "--format",
        choices=["json", "json-pretty", "csv"],
        default=None,
        help="Export format (default from settings)",
    )
    export_parser.add_argument(
        "--type",
        dest="types",
        action="append",
        choices=["file_operation", "search", "preference", "custom"],
        default=None,
        help="Only export this memory type (repeatable)",
    )
    export_parser.add_argument("--since", type=_parse_date, default=None, help="Start date")
    export_parser.add_argument(
        "--until",
        type=_parse_until,
        default=None,
        help="End date (a bare date includes that whole day)",
    )
    export_parser.add_argument(
        "--output-dir", default=None, help="Directory for the export file"
    )
    export_parser.add_argument(
        "--limit", type=int, default=None, help="Maximum memories to load from the store"
    )

    import_parser = subparsers.add_parser("import", help="Import memories from a file")
    _add_store_arguments(import_parser)
    import_parser.add_argument("path", help="JSON or CSV file to import")
    import_parser.add_argument(
        "--mode", choices=["merge", "append", "replace"], default=None, help="Import mode"
    )
    import_parser.add_argument(
        "--allow-duplicates", action="store_true", help="Do not skip duplicate memories"
    )
    import_parser.add_argument(
        "--skip-validation",
        action="store_true",
        help="Import even if some records have no content",
    )
    import_parser.add_argument(
        "--duplicate-match",
        choices=["exact", "trimmed", "case_insensitive"],
        default=None,
        help="How memory texts are compared for duplicates",
    )
    import_parser.add_argument(
        "--dry-run", action="store_true", help="Validate the file without importing"
    )

    args = parser.parse_args()

    if args.version:
        return cmd_version(args)

    if args.command == "init":
        return cmd_init(args)
    elif args.command == "health":
        return cmd_health(args)
    elif args.command == "export":
        return cmd_export(args)
    elif args.command == "import":
        return cmd_import(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
