"""
Persisted game database with JSON storage.

Holds every game the library sync ever imported, together with the data the
user attached to it (play time, tags, favourites) which sync never touches.
Bulk changes go through a batch so subscribers get one aggregate change
event instead of one per game.
"""
import copy
import json
import os
import shutil
import logging
from contextlib import contextmanager
from dataclasses import dataclass, asdict, field, fields
from typing import Callable, Dict, Iterator, List, Optional, Any, Protocol
from datetime import datetime

from ..stores.base import Game, GameAction, Link
from ..utils.paths import GAMES_DATABASE_PATH

logger = logging.getLogger(__name__)

# Game fields owned by the store; everything else on an entry belongs to the user
SYNCED_FIELDS = tuple(f.name for f in fields(Game) if f.name not in ('source', 'game_id'))


def _action_from_dict(data: Dict[str, Any]) -> GameAction:
    """Build a GameAction from the keys it knows; unknown keys are ignored."""
    return GameAction(
        name=data.get('name') or '',
        path=data['path'],
        working_dir=data.get('working_dir') or '',
        is_play_action=bool(data.get('is_play_action', True)),
    )


def _link_from_dict(data: Dict[str, Any]) -> Link:
    return Link(name=data.get('name') or '', url=data['url'])


@dataclass
class GameEntry:
    """A game persisted in the database"""
    source: str
    game_id: str
    name: str
    is_installed: bool = False
    cover_image: Optional[str] = None
    background_image: Optional[str] = None
    icon: Optional[str] = None
    install_directory: Optional[str] = None
    game_actions: List[GameAction] = field(default_factory=list)
    developers: List[str] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    store_page_link: Optional[str] = None
    category: Optional[str] = None
    # User data
    playtime: int = 0
    tags: List[str] = field(default_factory=list)
    favorite: bool = False
    added_at: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.source}:{self.game_id}"

    @classmethod
    def from_game(cls, game: Game) -> "GameEntry":
        entry = cls(source=game.source, game_id=game.game_id, name=game.name,
                    added_at=datetime.now().isoformat())
        entry.apply_game(game)
        return entry

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "GameEntry":
        # Handle missing fields gracefully
        source, _, game_id = key.partition(':')
        return cls(
            source=data.get('source', source),
            game_id=str(data.get('game_id', game_id)),
            name=data.get('name', ''),
            is_installed=bool(data.get('is_installed', False)),
            cover_image=data.get('cover_image'),
            background_image=data.get('background_image'),
            icon=data.get('icon'),
            install_directory=data.get('install_directory'),
            game_actions=[_action_from_dict(a) for a in data.get('game_actions') or []],
            developers=list(data.get('developers') or []),
            links=[_link_from_dict(l) for l in data.get('links') or []],
            store_page_link=data.get('store_page_link'),
            category=data.get('category'),
            playtime=int(data.get('playtime', 0) or 0),
            tags=list(data.get('tags') or []),
            favorite=bool(data.get('favorite', False)),
            added_at=data.get('added_at'),
        )

    def apply_game(self, game: Game, include_install_state: bool = True) -> None:
        """Copy the store-owned fields of a game onto this entry.

        With include_install_state=False the installed flag, install
        directory, play actions and icon are left as they are.
        """
        install_fields = ('is_installed', 'install_directory', 'game_actions', 'icon')
        for name in SYNCED_FIELDS:
            if not include_install_state and name in install_fields:
                continue
            setattr(self, name, copy.deepcopy(getattr(game, name)))


@dataclass
class DatabaseChange:
    """Keys of the entries touched by one mutation or one batch"""
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.removed)

    def record(self, kind: str, key: str) -> None:
        if kind == 'removed':
            if key in self.updated:
                self.updated.remove(key)
            if key in self.added:
                self.added.remove(key)
                return
        if kind == 'updated' and key in self.added:
            return
        target = getattr(self, kind)
        if key not in target:
            target.append(key)


class BatchHandle:
    """An open batch of the database; changes are collected until commit."""

    def __init__(self):
        self.change = DatabaseChange()
        self.open = True


class GamesDatabase(Protocol):
    """What the sync needs from the database holding imported games"""

    def get(self, source: str, game_id: str) -> Optional[GameEntry]: ...

    def query(self, predicate: Callable[[GameEntry], bool]) -> List[GameEntry]: ...

    def add(self, entry: GameEntry) -> None: ...

    def update(self, entry: GameEntry) -> bool: ...

    def remove(self, source: str, game_id: str) -> bool: ...

    def begin_batch(self) -> BatchHandle: ...

    def commit(self, handle: BatchHandle) -> DatabaseChange: ...

    def buffered_update(self): ...


class JsonGamesDatabase:
    """
    Game database stored in a single JSON file.

    Reads return copies; callers change a copy and hand it to update().
    """

    def __init__(self, path: str = GAMES_DATABASE_PATH):
        self.path = path
        self._data: Dict[str, GameEntry] = {}
        self._batch: Optional[BatchHandle] = None
        self._listeners: List[Callable[[DatabaseChange], None]] = []
        self._load()

    def _load(self):
        """Load the database from disk.

        Unreadable entries are skipped; whenever anything could not be
        loaded the file is copied to <path>.bak first, since the next save
        rewrites it with the loaded entries only.
        """
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top level is not an object")
        except (OSError, ValueError) as e:
            logger.error(f"[Database] Failed to load {self.path}: {e}")
            self._backup()
            return

        skipped = 0
        for key, entry_dict in data.items():
            try:
                self._data[key] = GameEntry.from_dict(key, entry_dict)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                skipped += 1
                logger.error(f"[Database] Skipping unreadable entry {key}: {e}")
        if skipped:
            self._backup()
        logger.info(f"[Database] Loaded {len(self._data)} entries from {self.path}")

    def _backup(self):
        backup_path = self.path + ".bak"
        try:
            shutil.copy2(self.path, backup_path)
            logger.warning(f"[Database] Copied {self.path} to {backup_path}")
        except OSError as e:
            logger.error(f"[Database] Failed to back up {self.path}: {e}")

    def _save(self):
        """Persist the database to disk"""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump({k: asdict(v) for k, v in self._data.items()}, f, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug(f"[Database] Saved {len(self._data)} entries to {self.path}")

    def subscribe(self, listener: Callable[[DatabaseChange], None]) -> None:
        """Register a callback receiving a DatabaseChange after each write."""
        self._listeners.append(listener)

    def _emit(self, change: DatabaseChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    def _record(self, kind: str, key: str) -> None:
        if self._batch is not None:
            self._batch.change.record(kind, key)
            return
        self._save()
        change = DatabaseChange()
        change.record(kind, key)
        self._emit(change)

    def get(self, source: str, game_id: str) -> Optional[GameEntry]:
        """Get a copy of an entry by source and game id"""
        entry = self._data.get(f"{source}:{game_id}")
        return copy.deepcopy(entry) if entry else None

    def query(self, predicate: Callable[[GameEntry], bool]) -> List[GameEntry]:
        """Get copies of all entries matching predicate"""
        return [copy.deepcopy(e) for e in self._data.values() if predicate(e)]

    def all_entries(self) -> Dict[str, GameEntry]:
        return copy.deepcopy(self._data)

    def count(self) -> int:
        return len(self._data)

    def add(self, entry: GameEntry) -> None:
        if entry.key in self._data:
            raise ValueError(f"Entry {entry.key} already exists")
        self._data[entry.key] = copy.deepcopy(entry)
        logger.debug(f"[Database] Added {entry.key}: {entry.name}")
        self._record('added', entry.key)

    def update(self, entry: GameEntry) -> bool:
        """Replace a stored entry. Returns False (and emits nothing) when unchanged."""
        current = self._data.get(entry.key)
        if current is None:
            raise KeyError(entry.key)
        if current == entry:
            return False
        self._data[entry.key] = copy.deepcopy(entry)
        logger.debug(f"[Database] Updated {entry.key}")
        self._record('updated', entry.key)
        return True

    def remove(self, source: str, game_id: str) -> bool:
        key = f"{source}:{game_id}"
        if key not in self._data:
            return False
        del self._data[key]
        logger.debug(f"[Database] Removed {key}")
        self._record('removed', key)
        return True

    def begin_batch(self) -> BatchHandle:
        """Start collecting changes. Batches do not nest."""
        if self._batch is not None:
            raise RuntimeError("A batch is already open on this database")
        self._batch = BatchHandle()
        return self._batch

    def commit(self, handle: BatchHandle) -> DatabaseChange:
        """Close a batch: save once and emit one aggregate change."""
        if handle is not self._batch or not handle.open:
            raise RuntimeError("Batch handle is not the open batch of this database")
        handle.open = False
        self._batch = None

        change = handle.change
        if not change.is_empty():
            self._save()
            logger.info(
                f"[Database] Batch committed: {len(change.added)} added, "
                f"{len(change.updated)} updated, {len(change.removed)} removed"
            )
            self._emit(change)
        return change

    @contextmanager
    def buffered_update(self) -> Iterator[BatchHandle]:
        """Group all mutations made inside the block into one batch."""
        handle = self.begin_batch()
        try:
            yield handle
        finally:
            self.commit(handle)
