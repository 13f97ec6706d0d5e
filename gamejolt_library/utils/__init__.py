# Utils package
from .paths import (
    get_client_data_dir,
    DATA_DIR,
    SETTINGS_PATH,
    GAMES_DATABASE_PATH,
    PACKAGES_FILE,
    GAMES_FILE,
    MANIFEST_FILE,
)
from .platform import HostEnvironment, detect_host_environment
from .cancellation import CancelToken
from .retry import retry_async, RetryError
from .launch import resolve_launch_option, read_game_manifest, executable_full_path

__all__ = [
    'get_client_data_dir',
    'DATA_DIR',
    'SETTINGS_PATH',
    'GAMES_DATABASE_PATH',
    'PACKAGES_FILE',
    'GAMES_FILE',
    'MANIFEST_FILE',
    'HostEnvironment',
    'detect_host_environment',
    'CancelToken',
    'retry_async',
    'RetryError',
    'resolve_launch_option',
    'read_game_manifest',
    'executable_full_path',
]
