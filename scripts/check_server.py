#!/usr/bin/env python3
"""
Server check script for the palace sync client

Runs the connection check, fetches statistics and optionally downloads the
markers of one territory, using the local client configuration. Useful for
verifying an environment before wiring the client into a host application.

Usage:
    python scripts/check_server.py [OPTIONS]

Examples:
    # Verify the connection only
    python scripts/check_server.py

    # Also download markers for territory 561
    python scripts/check_server.py --territory 561

    # Use another configuration file
    python scripts/check_server.py --config ./palsync.json --verbose
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from palsync.config import ClientConfiguration, ConfigurationError, get_settings
from palsync.core import RemoteApi, CONNECTION_SUCCESSFUL
from palsync.utils.logging import setup_logging


def _print_success(message: str):
    print(f"   ✅ {message}")


def _print_error(message: str):
    print(f"   ❌ {message}")


async def check_server(config_path: str, territory: Optional[int] = None) -> bool:
    """Run the checks and print a short report."""
    settings = get_settings()
    configuration = ClientConfiguration.load(config_path)

    print(f"\n🧪 Checking {settings.endpoint} as {settings.user_agent}")
    print("=" * 50)

    async with RemoteApi.from_settings(configuration, settings) as api:
        status = await api.verify_connection()
        if status != CONNECTION_SUCCESSFUL:
            _print_error(status)
            return False
        _print_success(status)

        success, statistics = await api.fetch_statistics()
        if not success:
            _print_error("Could not fetch statistics")
            return False
        _print_success(f"Statistics for {len(statistics)} territories")
        for entry in statistics:
            print(f"      {entry.territory_type}: {entry.trap_count} traps, {entry.hoard_count} hoards")

        if territory is not None:
            success, markers = await api.download_markers(territory)
            if not success:
                _print_error(f"Could not download markers for territory {territory}")
                return False
            _print_success(f"Downloaded {len(markers)} markers for territory {territory}")

    return True


async def main():
    parser = argparse.ArgumentParser(
        description="Check connectivity to the palace sync server",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--config", "-c",
        help="Client configuration file (default: PALSYNC_CONFIG_PATH or ./palsync.json)"
    )
    parser.add_argument(
        "--territory", "-t",
        type=int,
        help="Territory type to download markers for"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging"
    )

    args = parser.parse_args()

    setup_logging(log_level="DEBUG" if args.verbose else "WARNING", log_format="console")

    try:
        ok = await check_server(args.config or get_settings().config_path, args.territory)
    except ConfigurationError as e:
        print(f"❌ Error loading configuration: {e}")
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n\n⏹️  Check interrupted by user")
        sys.exit(130)
