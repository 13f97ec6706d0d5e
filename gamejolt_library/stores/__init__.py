# Stores package
from .base import Store, Game, GameAction, Link
from .gamejolt import GameJoltConnector
