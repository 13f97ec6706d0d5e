"""Business logic services for the Game Jolt library."""

from .metadata_service import MetadataService
from .reconciler import ReconcileStats, merge_games
from .sync_service import SyncService, SyncResult

__all__ = ['MetadataService', 'ReconcileStats', 'merge_games', 'SyncService', 'SyncResult']
