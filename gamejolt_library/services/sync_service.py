"""
SyncService - Handles library synchronization orchestration.

Responsibilities:
- Fetch installed games (client state files) and library games (site API)
  as two independent failure domains
- Reconcile both against the persisted game database in one batch
- Raise and clear user notifications for import problems
- Track sync progress and handle cancellation
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..controllers.notifications import (
    NotificationCenter,
    notify_import_error,
    notify_user_not_found,
    remove_import_error,
    remove_user_not_found,
)
from ..controllers.sync_progress_tracker import SyncProgress
from ..errors import SyncCancelled, UserNotFoundError
from ..registry.games_registry import GamesDatabase
from ..settings import LibrarySettings
from ..stores.base import Game, Store
from ..utils.cancellation import CancelToken
from .reconciler import (
    ReconcileStats,
    apply_installed_games,
    apply_library_games,
    merge_games,
    remove_library_only_games,
)

logger = logging.getLogger(__name__)

# Outcomes of the library pipeline
LIBRARY_OK = "ok"
LIBRARY_DISABLED = "disabled"
LIBRARY_NO_USER = "no_user"
LIBRARY_USER_NOT_FOUND = "user_not_found"
LIBRARY_FAILED = "failed"


@dataclass
class SyncResult:
    success: bool = True
    games: List[Game] = field(default_factory=list)
    installed_count: int = 0
    library_count: int = 0
    stats: ReconcileStats = field(default_factory=ReconcileStats)
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False
    user_not_found: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'games': [game.to_dict() for game in self.games],
            'installed_count': self.installed_count,
            'library_count': self.library_count,
            'stats': self.stats.to_dict(),
            'errors': list(self.errors),
            'cancelled': self.cancelled,
            'user_not_found': self.user_not_found,
        }


class SyncService:
    """Service for orchestrating library synchronization."""

    def __init__(
        self,
        connector: Store,
        database: GamesDatabase,
        notifications: NotificationCenter,
        sync_progress: Optional[SyncProgress] = None,
    ):
        """Initialize SyncService with all required dependencies.

        Args:
            connector: Store producing installed and library games
            database: Persisted game database
            notifications: Sink for user-visible import errors
            sync_progress: SyncProgress tracker instance
        """
        self.connector = connector
        self.database = database
        self.notifications = notifications
        self.sync_progress = sync_progress or SyncProgress()

        # Sync state
        self._sync_lock = asyncio.Lock()
        self._is_syncing = False
        self._cancel_token: Optional[CancelToken] = None

    @property
    def is_syncing(self) -> bool:
        return self._is_syncing

    def cancel_sync(self):
        """Request cancellation of current sync operation."""
        if self._is_syncing and self._cancel_token is not None:
            self._cancel_token.cancel()
            logger.info("Sync cancellation requested")

    async def sync(self, settings: LibrarySettings, cancel_token: Optional[CancelToken] = None) -> SyncResult:
        """Import installed and library games and reconcile the database.

        Args:
            settings: Import settings for this pass
            cancel_token: Optional token; cancel_sync() uses it as well

        Returns:
            SyncResult with the final game set, counts and any errors
        """
        # Check if sync already running (non-blocking check)
        if self._is_syncing:
            logger.warning("Sync already in progress, ignoring request")
            return SyncResult(success=False, errors=['errors.syncInProgress'])

        # Acquire lock (prevents concurrent syncs)
        async with self._sync_lock:
            self._is_syncing = True
            self._cancel_token = cancel_token or CancelToken()
            try:
                return await self._sync(settings, self._cancel_token)
            except SyncCancelled:
                return self._handle_cancellation()
            finally:
                self._is_syncing = False
                self._cancel_token = None

    async def _fetch_installed(self, cancel_token: CancelToken, result: SyncResult):
        """Installed-games pipeline. Returns (games, error); games is None when it failed."""
        self.sync_progress.set_phase("fetching_installed", "sync.fetchingInstalledGames")
        try:
            games = await self.connector.get_installed(cancel_token)
        except SyncCancelled:
            raise
        except Exception as e:
            logger.error(f"Error fetching installed games: {e}", exc_info=True)
            result.errors.append(f"Installed games: {e}")
            return None, e
        result.installed_count = len(games)
        return games, None

    async def _fetch_library(self, settings: LibrarySettings, cancel_token: CancelToken, result: SyncResult):
        """Library-games pipeline. Returns (outcome, games, error)."""
        if not settings.import_library_games:
            return LIBRARY_DISABLED, None, None
        if not settings.user_name:
            logger.warning("Library import is enabled but no user name is configured")
            return LIBRARY_NO_USER, None, None

        self.sync_progress.set_phase("fetching_library", "sync.fetchingLibraryGames", user=settings.user_name)
        try:
            games = await self.connector.get_library(
                settings.user_name,
                settings.treat_followed_games_as_library_games,
                cancel_token,
            )
        except SyncCancelled:
            raise
        except UserNotFoundError as e:
            logger.error(f"Library import failed: {e}")
            result.user_not_found = True
            result.errors.append(str(e))
            return LIBRARY_USER_NOT_FOUND, None, e
        except Exception as e:
            logger.error(f"Error fetching library games: {e}", exc_info=True)
            result.errors.append(f"Library games: {e}")
            return LIBRARY_FAILED, None, e
        result.library_count = len(games)
        return LIBRARY_OK, games, None

    async def _sync(self, settings: LibrarySettings, cancel_token: CancelToken) -> SyncResult:
        logger.info("Syncing Game Jolt library...")
        result = SyncResult()
        source = self.connector.store_name
        self.sync_progress.reset()
        import_error: Optional[BaseException] = None

        # === PHASE 1: FETCH GAME LISTS ===
        installed = None
        if settings.import_installed_games:
            installed, import_error = await self._fetch_installed(cancel_token, result)

        library_outcome, library, library_error = await self._fetch_library(settings, cancel_token, result)
        if library_outcome == LIBRARY_FAILED and import_error is None:
            import_error = library_error

        # Nothing has been written yet; this is the last point to stop cleanly
        cancel_token.raise_if_cancelled()

        # === PHASE 2: RECONCILE ===
        installed_games = installed or []
        library_games = library or []
        result.games = merge_games(installed_games, library_games)
        installed_ids = {game.game_id for game in installed_games}

        self.sync_progress.total_games = len(result.games)
        self.sync_progress.set_phase("reconciling", "sync.updatingDatabase")

        with self.database.buffered_update():
            library_only_ids = {
                entry.game_id for entry in self.database.query(
                    lambda e: e.source == source and not e.is_installed
                )
            }

            if installed is not None:
                result.stats.merge(apply_installed_games(self.database, installed, source))
            self.sync_progress.synced_games = len(installed_games)

            if library_outcome == LIBRARY_OK:
                result.stats.merge(apply_library_games(
                    self.database,
                    library_games,
                    source,
                    skip_ids=installed_ids,
                    removable_ids=library_only_ids,
                ))
            elif library_outcome in (LIBRARY_DISABLED, LIBRARY_USER_NOT_FOUND):
                result.stats.merge(remove_library_only_games(
                    self.database,
                    source,
                    removable_ids=library_only_ids,
                ))
            self.sync_progress.synced_games = len(result.games)

        # === PHASE 3: NOTIFICATIONS ===
        if library_outcome == LIBRARY_USER_NOT_FOUND:
            notify_user_not_found(self.notifications, settings.user_name)
        elif library_outcome in (LIBRARY_OK, LIBRARY_DISABLED):
            remove_user_not_found(self.notifications)

        if import_error is not None:
            notify_import_error(self.notifications, import_error)
        else:
            remove_import_error(self.notifications)

        result.success = not result.errors
        if result.success:
            self.sync_progress.set_phase("complete", "sync.complete")
        else:
            self.sync_progress.error = result.errors[0]
            self.sync_progress.set_phase("error", "sync.completedWithErrors")

        logger.info(
            f"Sync complete: {result.installed_count} installed, {result.library_count} library, "
            f"{len(result.games)} total, stats={result.stats.to_dict()}"
        )
        return result

    def _handle_cancellation(self) -> SyncResult:
        """Report a cancelled sync; nothing was written to the database."""
        logger.warning("Sync cancelled by user")
        self.sync_progress.set_phase("cancelled", "sync.cancelled")
        return SyncResult(success=False, cancelled=True, errors=['errors.syncCancelled'])
