"""
Game Jolt store connector.

Installed games come from the native client's state files in its profile
directory; the remote library comes from the gamejolt.com site API.
"""
import logging
from typing import List, Optional

from .base import Store, Game
from .normalizer import SOURCE_NAME, build_installed_games, build_library_game
from ..api.site_api import GameJoltSiteApi
from ..cache.client_state import read_installed_metadata, read_installed_packages
from ..utils.cancellation import CancelToken
from ..utils.paths import get_client_data_dir
from ..utils.platform import HostEnvironment, detect_host_environment

logger = logging.getLogger(__name__)


class GameJoltConnector(Store):
    """Handles Game Jolt via the client's state files and the site API"""

    def __init__(
        self,
        api: Optional[GameJoltSiteApi] = None,
        host: Optional[HostEnvironment] = None,
        data_dir: Optional[str] = None,
    ):
        self.host = host or detect_host_environment()
        self.data_dir = data_dir or get_client_data_dir(self.host)
        self.api = api or GameJoltSiteApi()
        logger.info(f"[GameJolt] Client data directory: {self.data_dir}")

    @property
    def store_name(self) -> str:
        return SOURCE_NAME

    async def get_installed(self, cancel_token: Optional[CancelToken] = None) -> List[Game]:
        """Get installed Game Jolt games. Re-reads the client files on every call."""
        metadata = read_installed_metadata(self.data_dir)
        packages = read_installed_packages(self.data_dir)

        games = build_installed_games(packages, metadata, self.host, cancel_token)
        logger.info(f"[GameJolt] Found {len(games)} installed games ({len(packages)} packages)")
        return games

    async def get_library(
        self,
        user_name: str,
        include_followed: bool = False,
        cancel_token: Optional[CancelToken] = None,
    ) -> List[Game]:
        """Get the user's owned (and optionally followed) games from the site API."""
        records = await self.api.fetch_library_games(user_name, include_followed, cancel_token)

        games = []
        for record in records:
            if cancel_token:
                cancel_token.raise_if_cancelled()
            games.append(build_library_game(record))
        return games

    async def close(self) -> None:
        await self.api.close()
