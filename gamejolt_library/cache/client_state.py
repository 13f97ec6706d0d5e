"""Native Game Jolt client state.

Reads the package registry (packages.wttf) and the game metadata cache
(games.wttf) the client keeps in its profile directory. Both are JSON
documents of the form {"version": ..., "objects": {key: object}}.

NOTE: These files belong to the client and may be rewritten at any time, so
they are re-read on every call and never modified.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models import GameMetadataRecord, InstalledPackage
from ..utils.paths import GAMES_FILE, PACKAGES_FILE, get_client_data_dir

logger = logging.getLogger(__name__)


def _load_objects(path: Path) -> Dict[str, Any]:
    """Load the 'objects' map of a client state file, or {} when unusable."""
    if not path.exists():
        logger.warning(f"[GameJolt] Client file not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"[GameJolt] Failed to read client file {path}: {e}")
        return {}

    objects = data.get("objects") if isinstance(data, dict) else None
    if not isinstance(objects, dict):
        logger.error(f"[GameJolt] Client file {path} has no objects")
        return {}

    logger.info(f"[GameJolt] Read client file {path}")
    return objects


def read_installed_metadata(data_dir: Optional[str] = None) -> Dict[str, GameMetadataRecord]:
    """Read cached game metadata. Returns {game_id: GameMetadataRecord}."""
    path = Path(data_dir or get_client_data_dir()) / GAMES_FILE
    metadata = {}
    for key, value in _load_objects(path).items():
        if not value or not isinstance(value, dict):
            continue
        record = GameMetadataRecord.from_dict(value, game_id=key)
        if record is None:
            logger.warning(f"[GameJolt] Skipping game entry without id in {path}: {key}")
            continue
        metadata[record.id] = record
    return metadata


def read_installed_packages(data_dir: Optional[str] = None) -> List[InstalledPackage]:
    """Read the installed package registry."""
    path = Path(data_dir or get_client_data_dir()) / PACKAGES_FILE
    packages = []
    for key, value in _load_objects(path).items():
        if not value or not isinstance(value, dict):
            continue
        package = InstalledPackage.from_dict(value)
        if package is None:
            logger.warning(f"[GameJolt] Skipping incomplete package entry in {path}: {key}")
            continue
        packages.append(package)
    return packages
