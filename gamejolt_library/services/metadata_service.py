"""
MetadataService - Metadata lookup for single Game Jolt games.

Looks a game up in the client's local metadata cache first and asks the
site API only for games the client does not know.
"""

import logging
from typing import Optional

from ..api.site_api import GameJoltSiteApi
from ..cache.client_state import read_installed_metadata
from ..models import GameMetadataRecord, normalize_game_id
from ..stores.base import Game
from ..stores.normalizer import build_library_game

logger = logging.getLogger(__name__)


class MetadataService:
    """Service for fetching metadata of individual games."""

    def __init__(self, api: GameJoltSiteApi, data_dir: Optional[str] = None):
        self.api = api
        self.data_dir = data_dir

    async def get_metadata_record(self, game_id) -> Optional[GameMetadataRecord]:
        """Get the raw metadata record of a game, local cache first."""
        normalized_id = normalize_game_id(game_id)
        if not normalized_id:
            return None

        cached = read_installed_metadata(self.data_dir).get(normalized_id)
        if cached is not None:
            logger.debug(f"[Metadata] Using cached metadata for {normalized_id}")
            return cached

        logger.info(f"[Metadata] Fetching metadata for {normalized_id} from site API")
        return await self.api.fetch_game(normalized_id)

    async def get_metadata(self, game_id) -> Optional[Game]:
        """Get display metadata (images, developer, links) for a game.

        The returned record carries metadata only; its installed flag is
        always False.

        Returns:
            A Game record, or None when the game is unknown.
        """
        record = await self.get_metadata_record(game_id)
        if record is None:
            return None
        return build_library_game(record)
