# Game Jolt library backend
# Imports installed and owned Game Jolt games and keeps a game database in sync with them.

from .errors import GameJoltError, FetchError, UserNotFoundError, SyncCancelled
from .settings import LibrarySettings, load_settings, save_settings
from .stores import Game, GameAction, GameJoltConnector
from .registry import GameEntry, JsonGamesDatabase
from .controllers import NotificationCenter, SyncProgress
from .services import MetadataService, SyncService, SyncResult
from .utils import CancelToken

__version__ = "1.0.0"
