"""Host operating system facts used to pick launch options and locate client files."""

import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class HostEnvironment:
    """Where and on what the native Game Jolt client runs.

    os_family is the lowercase tag Game Jolt uses in launch options
    ('windows', 'linux' or 'mac').
    """
    os_family: str
    is_64bit: bool
    local_app_data: str


def _detect_os_family() -> str:
    if sys.platform.startswith('win'):
        return 'windows'
    if sys.platform == 'darwin':
        return 'mac'
    return 'linux'


def _detect_is_64bit() -> bool:
    # PROCESSOR_ARCHITEW6432 is set for 32-bit processes on 64-bit Windows
    if os.environ.get('PROCESSOR_ARCHITEW6432'):
        return True
    machine = platform.machine().lower()
    return machine.endswith('64') or machine in ('arm64', 'aarch64')


def _default_app_data(os_family: str) -> str:
    if os_family == 'windows':
        return os.environ.get('LOCALAPPDATA') or str(Path.home() / "AppData" / "Local")
    if os_family == 'mac':
        return str(Path.home() / "Library" / "Application Support")
    return os.environ.get('XDG_CONFIG_HOME') or str(Path.home() / ".config")


def detect_host_environment() -> HostEnvironment:
    """Describe the machine this process is running on."""
    os_family = _detect_os_family()
    return HostEnvironment(
        os_family=os_family,
        is_64bit=_detect_is_64bit(),
        local_app_data=_default_app_data(os_family),
    )
