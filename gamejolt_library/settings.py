"""Library import settings.

Settings are an immutable value handed to every sync; editing them is the
host's business. They persist as a small JSON file in the library data
directory.
"""
import dataclasses
import json
import logging
import os
from dataclasses import dataclass, asdict
from typing import Optional

from .utils.paths import SETTINGS_PATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LibrarySettings:
    user_name: Optional[str] = None
    import_installed_games: bool = True
    import_library_games: bool = False
    treat_followed_games_as_library_games: bool = False

    def replace(self, **changes) -> "LibrarySettings":
        return dataclasses.replace(self, **changes)


def load_settings(path: Optional[str] = None) -> LibrarySettings:
    """Load settings, falling back to defaults when the file is missing or broken."""
    path = path or SETTINGS_PATH
    if not os.path.exists(path):
        logger.info(f"No settings file at {path}, using defaults")
        return LibrarySettings()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading settings from {path}: {e}")
        return LibrarySettings()

    if not isinstance(data, dict):
        logger.error(f"Unexpected settings content in {path}, using defaults")
        return LibrarySettings()

    defaults = LibrarySettings()
    user_name = str(data.get('user_name') or '').strip().lstrip('@')
    return LibrarySettings(
        user_name=user_name or None,
        import_installed_games=bool(data.get('import_installed_games', defaults.import_installed_games)),
        import_library_games=bool(data.get('import_library_games', defaults.import_library_games)),
        treat_followed_games_as_library_games=bool(
            data.get('treat_followed_games_as_library_games', defaults.treat_followed_games_as_library_games)
        ),
    )


def save_settings(settings: LibrarySettings, path: Optional[str] = None) -> bool:
    """Save settings."""
    path = path or SETTINGS_PATH
    try:
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(asdict(settings), f, indent=2)
        logger.info(f"Saved settings to {path}")
        return True
    except OSError as e:
        logger.error(f"Error saving settings to {path}: {e}")
        return False
