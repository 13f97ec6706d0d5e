"""
Base Store class and the canonical game record every store produces.

Store implementations turn their own sources (local client files, web APIs)
into Game records; the sync service only ever works with these.
"""
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, asdict, field
import logging

from ..utils.cancellation import CancelToken


logger = logging.getLogger(__name__)


@dataclass
class GameAction:
    """A way to start a game (one per launchable package)"""
    name: str
    path: str
    working_dir: str
    is_play_action: bool = True


@dataclass
class Link:
    name: str
    url: str


@dataclass
class Game:
    """Represents a game from the store, installed or library-only"""
    source: str
    game_id: str
    name: str
    is_installed: bool = False
    cover_image: Optional[str] = None
    background_image: Optional[str] = None
    icon: Optional[str] = None  # Executable the host extracts the icon from
    install_directory: Optional[str] = None
    game_actions: List[GameAction] = field(default_factory=list)
    developers: List[str] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    store_page_link: Optional[str] = None
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Store(ABC):
    """
    Abstract base class for game store connectors.

    A store reports the games installed through its native client and the
    games in the user's remote library, both as canonical Game records.
    """

    @property
    @abstractmethod
    def store_name(self) -> str:
        """Return the source tag written on every record (e.g. 'Game Jolt')"""
        pass

    @abstractmethod
    async def get_installed(self, cancel_token: Optional[CancelToken] = None) -> List[Game]:
        """
        Get the games installed through the store's native client.

        Args:
            cancel_token: Checked once per game.

        Returns:
            List of installed Game records.
        """
        pass

    @abstractmethod
    async def get_library(
        self,
        user_name: str,
        include_followed: bool = False,
        cancel_token: Optional[CancelToken] = None,
    ) -> List[Game]:
        """
        Get the user's remote game library.

        Args:
            user_name: Store account name.
            include_followed: Also include games the user follows.
            cancel_token: Checked once per page and per game.

        Returns:
            List of library Game records (not installed).
        """
        pass
