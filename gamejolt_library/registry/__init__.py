# Registry package
from .games_registry import (
    GameEntry,
    GamesDatabase,
    JsonGamesDatabase,
    DatabaseChange,
    BatchHandle,
)
