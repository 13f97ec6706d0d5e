"""Sync progress tracking for library synchronization.

Tracks progress through the sync phases with a percentage per phase, so a
host can show a progress bar while a sync runs.
"""

from typing import Dict, Any, Optional


class SyncProgress:
    """Track library sync progress with phase-based percentage tracking."""

    # Phase percentage allocations: (start_pct, end_pct)
    PHASE_RANGES = {
        'idle': (0, 0),
        'fetching_installed': (0, 20),
        'fetching_library': (20, 80),
        'reconciling': (80, 95),
        'complete': (100, 100),
        'error': (100, 100),
        'cancelled': (100, 100)
    }

    def __init__(self):
        self.total_games = 0
        self.synced_games = 0
        self.status = "idle"
        self.current_game = {
            "label": None,     # i18n key
            "values": {}       # dynamic values
        }
        self.error: Optional[str] = None

    def set_phase(self, status: str, label: Optional[str] = None, **values) -> None:
        if status not in self.PHASE_RANGES:
            raise ValueError(f"Unknown sync phase: {status}")
        self.status = status
        self.current_game = {"label": label, "values": values}

    def reset(self) -> None:
        self.__init__()

    def _calculate_progress(self) -> int:
        """Calculate progress based on current phase and its percentage allocation."""
        start_pct, end_pct = self.PHASE_RANGES.get(self.status, (0, 0))

        # Reconciling advances with the number of games written
        if self.status == 'reconciling' and self.total_games > 0:
            sub_progress = min(self.synced_games / self.total_games, 1.0)
            return int(start_pct + (end_pct - start_pct) * sub_progress)

        return start_pct

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_games': self.total_games,
            'synced_games': self.synced_games,
            'current_game': self.current_game,
            'status': self.status,
            'progress_percent': self._calculate_progress(),
            'error': self.error,
        }
