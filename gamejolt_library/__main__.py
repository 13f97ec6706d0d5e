#!/usr/bin/env python3
"""
Run one Game Jolt library sync from the command line.

Usage: python -m gamejolt_library [--user NAME] [--library] [--followed] [--no-installed]
Outputs: The sync result as JSON
"""

import argparse
import asyncio
import json
import logging
import sys

from .api.site_api import GameJoltSiteApi
from .controllers.notifications import NotificationCenter
from .registry.games_registry import JsonGamesDatabase
from .services.sync_service import SyncService
from .settings import load_settings
from .stores.gamejolt import GameJoltConnector
from .utils.cancellation import CancelToken
from .utils.paths import GAMES_DATABASE_PATH, SETTINGS_PATH

logger = logging.getLogger("gamejolt_library")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gamejolt-library",
        description="Import installed and owned Game Jolt games into the local game database.",
    )
    parser.add_argument("--user", help="Game Jolt user name (overrides settings)")
    parser.add_argument("--library", action="store_true", help="Import owned library games")
    parser.add_argument("--followed", action="store_true", help="Treat followed games as library games")
    parser.add_argument("--no-installed", action="store_true", help="Skip installed games")
    parser.add_argument("--settings", default=SETTINGS_PATH, help="Settings file")
    parser.add_argument("--database", default=GAMES_DATABASE_PATH, help="Game database file")
    parser.add_argument("--data-dir", help="Game Jolt client profile directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def run(args: argparse.Namespace, cancel_token: CancelToken) -> dict:
    settings = load_settings(args.settings)
    changes = {}
    if args.user:
        changes['user_name'] = args.user.lstrip('@')
    if args.library:
        changes['import_library_games'] = True
    if args.followed:
        changes['treat_followed_games_as_library_games'] = True
    if args.no_installed:
        changes['import_installed_games'] = False
    settings = settings.replace(**changes)

    notifications = NotificationCenter()
    async with GameJoltSiteApi() as api:
        connector = GameJoltConnector(api=api, data_dir=args.data_dir)
        service = SyncService(connector, JsonGamesDatabase(args.database), notifications)
        result = await service.sync(settings, cancel_token)

    output = result.to_dict()
    output['notifications'] = [n.to_dict() for n in notifications.all()]
    return output


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        output = asyncio.run(run(args, CancelToken()))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    print(json.dumps(output, indent=2))
    if output['cancelled']:
        return 130
    return 0 if output['success'] else 1


if __name__ == "__main__":
    sys.exit(main())
