"""
Normalization of Game Jolt source records into canonical Game records.

Installed games combine the client's package registry with its metadata
cache; library games come from site API metadata alone. Both paths share
the metadata mapping so a game looks the same whichever source it came from.
"""

import logging
import os
from collections import OrderedDict
from typing import Dict, List, Optional

from .base import Game, GameAction, Link
from ..models import GameMetadataRecord, InstalledPackage
from ..utils.cancellation import CancelToken
from ..utils.launch import executable_full_path, resolve_launch_option
from ..utils.platform import HostEnvironment

logger = logging.getLogger(__name__)

SOURCE_NAME = "Game Jolt"


def group_packages_by_game(packages: List[InstalledPackage]) -> "OrderedDict[str, List[InstalledPackage]]":
    """Group packages by game id, keeping the order games were first seen."""
    grouped: "OrderedDict[str, List[InstalledPackage]]" = OrderedDict()
    for package in packages:
        grouped.setdefault(package.game_id, []).append(package)
    return grouped


def _apply_metadata(game: Game, metadata: GameMetadataRecord) -> None:
    game.cover_image = metadata.cover_image_url
    game.background_image = metadata.background_image_url
    game.category = metadata.category
    game.store_page_link = metadata.store_page_link
    game.links = [Link("Store Page", metadata.store_page_link)]

    developer = metadata.developer
    if developer is not None:
        if developer.label:
            game.developers = [developer.label]
        if developer.developer_link:
            game.links.append(Link("Developer", developer.developer_link))


def build_game_action(
    package: InstalledPackage,
    game_name: str,
    host: Optional[HostEnvironment] = None,
) -> Optional[GameAction]:
    """Resolve the play action of one package; None when it has no launchable executable."""
    option = resolve_launch_option(package, host)
    if option is None:
        return None

    path = executable_full_path(package, option)
    if not os.path.isfile(path):
        logger.warning(f"[GameJolt] Game executable does not exist ({path})")
        return None

    return GameAction(
        name=package.title or game_name,
        path=path,
        working_dir=os.path.dirname(path),
    )


def build_installed_game(
    game_id: str,
    packages: List[InstalledPackage],
    metadata: Optional[GameMetadataRecord] = None,
    host: Optional[HostEnvironment] = None,
) -> Game:
    """Build the record of an installed game from all of its packages.

    A game may have several packages (e.g. demo and full version); each
    launchable one contributes a play action, in registry order.
    """
    name = (metadata.title if metadata else None) \
        or next((p.title for p in packages if p.title), None) \
        or game_id

    game = Game(
        source=SOURCE_NAME,
        game_id=game_id,
        name=name,
        is_installed=True,
        install_directory=packages[0].install_dir if packages else None,
    )
    if metadata is not None:
        _apply_metadata(game, metadata)

    for package in packages:
        action = build_game_action(package, name, host)
        if action is not None:
            game.game_actions.append(action)

    if game.game_actions:
        game.icon = game.game_actions[0].path
    else:
        logger.warning(f"[GameJolt] Installed game {game_id} ({name}) has no play action")

    return game


def build_library_game(metadata: GameMetadataRecord) -> Game:
    """Build the record of a game known only from the user's remote library."""
    game = Game(
        source=SOURCE_NAME,
        game_id=metadata.id,
        name=metadata.title or metadata.id,
        is_installed=False,
    )
    _apply_metadata(game, metadata)
    return game


def build_installed_games(
    packages: List[InstalledPackage],
    metadata: Dict[str, GameMetadataRecord],
    host: Optional[HostEnvironment] = None,
    cancel_token: Optional[CancelToken] = None,
) -> List[Game]:
    """Build one installed Game per game id found in the package registry."""
    games = []
    for game_id, game_packages in group_packages_by_game(packages).items():
        if cancel_token:
            cancel_token.raise_if_cancelled()
        games.append(build_installed_game(game_id, game_packages, metadata.get(game_id), host))
    return games
