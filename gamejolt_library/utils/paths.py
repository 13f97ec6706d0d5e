"""Game Jolt library file path constants and utilities."""

import os
from typing import Optional

from .platform import HostEnvironment, detect_host_environment


# Library data directory (settings and the persisted game database)
DATA_DIR = os.environ.get(
    "GAMEJOLT_LIBRARY_DATA_DIR",
    os.path.expanduser("~/.local/share/gamejolt-library"),
)

SETTINGS_PATH = os.path.join(DATA_DIR, "settings.json")
GAMES_DATABASE_PATH = os.path.join(DATA_DIR, "games.json")

# Files maintained by the native Game Jolt client
CLIENT_DIR_NAME = "game-jolt-client"
CLIENT_PROFILE_PATH = os.path.join("User Data", "Default")
PACKAGES_FILE = "packages.wttf"
GAMES_FILE = "games.wttf"
MANIFEST_FILE = ".manifest"

# Executables live below this folder of a package install directory
PACKAGE_DATA_DIR = "data"


def get_client_data_dir(host: Optional[HostEnvironment] = None) -> str:
    """Get the native client's profile directory holding packages.wttf and games.wttf.

    Args:
        host: Host description; detected when omitted.

    Returns:
        Absolute path to the client's 'User Data/Default' directory
    """
    host = host or detect_host_environment()
    return os.path.join(host.local_app_data, CLIENT_DIR_NAME, CLIENT_PROFILE_PATH)

