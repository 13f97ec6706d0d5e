"""
Reconciliation of fetched games against the persisted game database.

Installed games and library games are applied separately so a failure to
fetch one source never blocks applying the other. Callers run these inside
one database.buffered_update() so the whole pass emits a single change.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional, Set

from ..registry.games_registry import GameEntry, GamesDatabase
from ..stores.base import Game
from ..stores.normalizer import SOURCE_NAME

logger = logging.getLogger(__name__)


@dataclass
class ReconcileStats:
    added: int = 0
    updated: int = 0
    uninstalled: int = 0
    removed: int = 0

    def merge(self, other: "ReconcileStats") -> "ReconcileStats":
        self.added += other.added
        self.updated += other.updated
        self.uninstalled += other.uninstalled
        self.removed += other.removed
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def merge_games(installed: List[Game], library: List[Game]) -> List[Game]:
    """Installed games plus library games not already installed, each id once."""
    merged = []
    seen: Set[str] = set()
    for game in list(installed) + list(library):
        if game.game_id in seen:
            continue
        seen.add(game.game_id)
        merged.append(game)
    return merged


def _upsert(database: GamesDatabase, game: Game, include_install_state: bool, stats: ReconcileStats) -> None:
    entry = database.get(game.source, game.game_id)
    if entry is None:
        database.add(GameEntry.from_game(game))
        stats.added += 1
        return
    entry.apply_game(game, include_install_state=include_install_state)
    if database.update(entry):
        stats.updated += 1


def apply_installed_games(
    database: GamesDatabase,
    installed: List[Game],
    source: str = SOURCE_NAME,
) -> ReconcileStats:
    """Store the installed games and mark vanished ones as uninstalled.

    Entries are never deleted here: an uninstalled game keeps its play
    time, tags and other user data.
    """
    stats = ReconcileStats()
    installed_ids = set()
    for game in installed:
        installed_ids.add(game.game_id)
        _upsert(database, game, True, stats)

    stale = database.query(
        lambda e: e.source == source and e.is_installed and e.game_id not in installed_ids
    )
    for entry in stale:
        entry.is_installed = False
        database.update(entry)
        stats.uninstalled += 1
        logger.info(f"[Sync] {entry.name} ({entry.game_id}) is no longer installed")

    return stats


def apply_library_games(
    database: GamesDatabase,
    library: List[Game],
    source: str = SOURCE_NAME,
    skip_ids: Iterable[str] = (),
    removable_ids: Optional[Iterable[str]] = None,
) -> ReconcileStats:
    """Store library games and delete library-only entries no longer owned or followed.

    Args:
        database: The game database.
        library: Every game of the fetched library.
        source: Source tag of the entries this store owns.
        skip_ids: Games not to write (already written as installed games).
        removable_ids: Ids that were library-only before this pass; when
            given, only these may be deleted.
    """
    stats = ReconcileStats()
    skip = set(skip_ids)
    library_ids = set()
    for game in library:
        library_ids.add(game.game_id)
        if game.game_id in skip:
            continue
        _upsert(database, game, False, stats)

    allowed = set(removable_ids) if removable_ids is not None else None
    stale = database.query(
        lambda e: e.source == source and not e.is_installed and e.game_id not in library_ids
        and (allowed is None or e.game_id in allowed)
    )
    for entry in stale:
        database.remove(entry.source, entry.game_id)
        stats.removed += 1
        logger.info(f"[Sync] Removed {entry.name} ({entry.game_id}), no longer in library")

    return stats


def remove_library_only_games(
    database: GamesDatabase,
    source: str = SOURCE_NAME,
    removable_ids: Optional[Iterable[str]] = None,
) -> ReconcileStats:
    """Delete every not-installed entry of the source.

    Args:
        removable_ids: Ids that were library-only before this pass; when
            given, only these may be deleted, so a game found uninstalled
            in the same pass keeps its user data.
    """
    stats = ReconcileStats()
    allowed = set(removable_ids) if removable_ids is not None else None
    stale = database.query(
        lambda e: e.source == source and not e.is_installed
        and (allowed is None or e.game_id in allowed)
    )
    for entry in stale:
        database.remove(entry.source, entry.game_id)
        stats.removed += 1
    if stats.removed:
        logger.info(f"[Sync] Removed {stats.removed} library games")
    return stats
