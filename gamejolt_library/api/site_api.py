"""
Game Jolt site API client.

Reads the owned and followed games of a user and single-game metadata from
the JSON web API the gamejolt.com site itself uses. Every request is retried
on transient failures; library pages are fetched one after another.
"""
import asyncio
import logging
import math
import ssl
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiohttp
import certifi

from ..errors import FetchError, SyncCancelled, UserNotFoundError
from ..models import GameMetadataRecord
from ..utils.cancellation import CancelToken
from ..utils.retry import RetryError, retry_async

logger = logging.getLogger(__name__)

SITE_API_BASE = "https://gamejolt.com/site-api/web/"

OWNED_GAMES = "owned"
FOLLOWED_GAMES = "followed"

_NOT_FOUND = object()


def _is_transient(exc: BaseException) -> bool:
    return not isinstance(exc, (UserNotFoundError, SyncCancelled))


def _extract_payload(data: Any) -> Optional[Dict[str, Any]]:
    """Return the 'payload' object of a site API envelope, or None."""
    if not isinstance(data, dict):
        return None
    payload = data.get('payload')
    if not isinstance(payload, dict):
        return None
    return payload


def _extract_library_page(data: Any, page: int) -> Optional[Dict[str, Any]]:
    """Return the payload of a library page, or None when it is not a usable page.

    A page must carry a games list; the first page must also report
    gamesCount, which drives pagination.
    """
    payload = _extract_payload(data)
    if payload is None or not isinstance(payload.get('games'), list):
        return None
    if page == 1 and payload.get('gamesCount') is None:
        return None
    return payload


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def count_pages(games_count: int, per_page: int) -> int:
    """Number of library pages for a result set, at least one."""
    if games_count <= 0 or per_page <= 0:
        return 1
    return math.ceil(games_count / per_page)


class GameJoltSiteApi:
    """Client for the Game Jolt site API"""

    def __init__(
        self,
        base_url: str = SITE_API_BASE,
        attempts: int = 5,
        delay: float = 1.0,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url if base_url.endswith('/') else base_url + '/'
        self.attempts = attempts
        self.delay = delay
        self.timeout = timeout
        self._sleep = sleep
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "GameJoltSiteApi":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self.session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": "gamejolt-library/1.0", "Accept": "application/json"},
            )
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        if self._owns_session and self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    def library_url(self, kind: str, user_name: str, page: int) -> str:
        return f"{self.base_url}library/games/{kind}/@{quote(user_name, safe='')}?page={page}"

    def game_url(self, game_id: str) -> str:
        return f"{self.base_url}discover/games/{quote(str(game_id), safe='')}"

    async def _get_json(self, url: str) -> Tuple[int, Any]:
        """GET a URL. Returns (status, json) for 200 and (404, None) for not found.

        Raises:
            FetchError: On any other status.
        """
        session = await self._get_session()
        logger.debug(f"[GameJolt] GET {url}")
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as response:
            if response.status == 404:
                return 404, None
            if response.status != 200:
                raise FetchError(f"HTTP {response.status} from {url}", url)
            return response.status, await response.json(content_type=None)

    async def _retrying(self, url: str, request: Callable[[], Awaitable[Any]]) -> Any:
        """Run request under the retry policy, converting exhaustion into FetchError."""
        policy = retry_async(
            attempts=self.attempts,
            delay=self.delay,
            retry_on=_is_transient,
            sleep=self._sleep,
        )
        try:
            return await policy(request)()
        except RetryError as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url) from e.last_exception

    async def fetch_library_page(self, kind: str, user_name: str, page: int) -> Dict[str, Any]:
        """Fetch one page of a user's owned or followed games.

        Returns:
            The page payload ({'games': [...], 'gamesCount': n, 'perPage': m}).

        Raises:
            UserNotFoundError: The API answered 404 (not retried).
            FetchError: Every attempt failed.
        """
        url = self.library_url(kind, user_name, page)

        async def request():
            status, data = await self._get_json(url)
            if status == 404:
                raise UserNotFoundError(user_name)
            return _extract_library_page(data, page)

        return await self._retrying(url, request)

    async def _fetch_library(
        self,
        kind: str,
        user_name: str,
        cancel_token: Optional[CancelToken],
    ) -> List[GameMetadataRecord]:
        records = []
        current_page = 1
        total_pages = 1  # Will be updated from first response

        while current_page <= total_pages:
            if cancel_token:
                cancel_token.raise_if_cancelled()

            payload = await self.fetch_library_page(kind, user_name, current_page)

            if current_page == 1:
                games_count = _as_int(payload.get('gamesCount'))
                per_page = _as_int(payload.get('perPage'))
                total_pages = count_pages(games_count, per_page)
                logger.info(
                    f"[GameJolt] {kind} games of {user_name}: {games_count} games, {total_pages} pages"
                )

            games = payload.get('games') or []
            for item in games:
                if cancel_token:
                    cancel_token.raise_if_cancelled()
                if not isinstance(item, dict):
                    continue
                record = GameMetadataRecord.from_dict(item)
                if record is not None:
                    records.append(record)

            logger.info(
                f"[GameJolt] Fetched {kind} page {current_page}/{total_pages}: "
                f"{len(games)} games (total so far: {len(records)})"
            )
            current_page += 1

        return records

    async def fetch_library_games(
        self,
        user_name: str,
        include_followed: bool = False,
        cancel_token: Optional[CancelToken] = None,
    ) -> List[GameMetadataRecord]:
        """Get the games a user owns and, optionally, follows.

        Args:
            user_name: Game Jolt user name (without '@').
            include_followed: Also fetch followed games.
            cancel_token: Checked before every page and every game.

        Returns:
            Games deduplicated by id; owned games come first.

        Raises:
            UserNotFoundError: The user does not exist.
            FetchError: A page could not be fetched.
            SyncCancelled: Cancellation was requested.
        """
        games = await self._fetch_library(OWNED_GAMES, user_name, cancel_token)
        if include_followed:
            games.extend(await self._fetch_library(FOLLOWED_GAMES, user_name, cancel_token))

        seen = set()
        unique = []
        for game in games:
            if game.id in seen:
                continue
            seen.add(game.id)
            unique.append(game)

        logger.info(f"[GameJolt] Found {len(unique)} library games for {user_name}")
        return unique

    async def fetch_game(self, game_id: str) -> Optional[GameMetadataRecord]:
        """Get metadata of a single game; None when the game does not exist."""
        url = self.game_url(game_id)

        async def request():
            status, data = await self._get_json(url)
            if status == 404:
                return _NOT_FOUND
            return _extract_payload(data)

        payload = await self._retrying(url, request)
        if payload is _NOT_FOUND:
            logger.info(f"[GameJolt] Game {game_id} not found")
            return None

        game = payload.get('game')
        if not isinstance(game, dict):
            return None
        return GameMetadataRecord.from_dict(game, game_id=game_id)
